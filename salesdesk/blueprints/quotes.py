"""Quotes (cotizaciones) blueprint."""
from flask import Blueprint, request, g, jsonify

from salesdesk.blueprints.document_helpers import (
    read_document_form, read_payment_options, pdf_response, preview_response, share_response,
)
from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services import quote_service
from salesdesk.services.cache_service import invalidate_dashboard_cache
from salesdesk.utils.request_data import get_payload

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')


@quotes_bp.route('/')
@require_login
def list_quotes():
    """List quotes, newest first; optional ?status= and ?q= (client name)."""
    status = request.args.get('status', '').strip().lower() or None
    search = request.args.get('q', '').strip() or None
    quotes = quote_service.list_quotes(get_session(), g.user_id, status=status, search=search)
    return jsonify({'status': 'ok', 'quotes': [q.to_dict() for q in quotes]})


@quotes_bp.route('/', methods=['POST'])
@require_login
def create_quote():
    form = read_document_form(get_payload())
    quote = quote_service.create_quote(get_session(), g.user_id, **form)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'quote': quote.to_dict()}), 201


@quotes_bp.route('/<quote_id>')
@require_login
def get_quote(quote_id):
    quote = quote_service.get_quote(get_session(), g.user_id, quote_id)
    return jsonify({'status': 'ok', 'quote': quote.to_dict()})


@quotes_bp.route('/<quote_id>', methods=['PUT', 'POST'])
@require_login
def update_quote(quote_id):
    db_session = get_session()
    quote = quote_service.get_quote(db_session, g.user_id, quote_id)
    form = read_document_form(get_payload(), existing_items=quote.line_items)
    quote = quote_service.update_quote(db_session, g.user_id, quote_id, **form)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'quote': quote.to_dict()})


@quotes_bp.route('/<quote_id>/send', methods=['POST'])
@require_login
def mark_sent(quote_id):
    quote = quote_service.mark_quote_sent(get_session(), g.user_id, quote_id)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'quote': quote.to_dict()})


@quotes_bp.route('/<quote_id>/convert', methods=['POST'])
@require_login
def convert_to_sale(quote_id):
    """Create a sale from the quote; a quote converts only once."""
    payment = read_payment_options(get_payload())
    sale = quote_service.convert_quote_to_sale(get_session(), g.user_id, quote_id, payment)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()}), 201


@quotes_bp.route('/<quote_id>/pdf')
@require_login
def download_pdf(quote_id):
    return pdf_response(quote_service.get_quote(get_session(), g.user_id, quote_id))


@quotes_bp.route('/<quote_id>/preview')
@require_login
def preview(quote_id):
    return preview_response(quote_service.get_quote(get_session(), g.user_id, quote_id))


@quotes_bp.route('/<quote_id>/share', methods=['POST'])
@require_login
def share(quote_id):
    return share_response(quote_service.get_quote(get_session(), g.user_id, quote_id))
