"""Sales (pedidos) blueprint."""
from flask import Blueprint, request, g, jsonify

from salesdesk.blueprints.document_helpers import (
    read_document_form, read_payment_options, pdf_response, preview_response, share_response,
)
from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services import sale_service
from salesdesk.services.cache_service import invalidate_dashboard_cache
from salesdesk.utils.request_data import get_payload

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


@sales_bp.route('/')
@require_login
def list_sales():
    """Nearest delivery first, undated last; optional ?status=."""
    status = request.args.get('status', '').strip().lower() or None
    sales = sale_service.list_sales(get_session(), g.user_id, status=status)
    return jsonify({'status': 'ok', 'sales': [s.to_dict() for s in sales]})


@sales_bp.route('/', methods=['POST'])
@require_login
def create_sale():
    data = get_payload()
    form = read_document_form(data)
    sale = sale_service.create_sale(get_session(), g.user_id, form.pop('client_id'), form.pop('items'),
                                    **form, **read_payment_options(data))
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()}), 201


@sales_bp.route('/<sale_id>')
@require_login
def get_sale(sale_id):
    sale = sale_service.get_sale(get_session(), g.user_id, sale_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()})


@sales_bp.route('/<sale_id>', methods=['PUT', 'POST'])
@require_login
def update_sale(sale_id):
    db_session = get_session()
    data = get_payload()
    sale = sale_service.get_sale(db_session, g.user_id, sale_id)
    form = read_document_form(data, existing_items=sale.line_items)
    sale = sale_service.update_sale(db_session, g.user_id, sale_id, **form, **read_payment_options(data))
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()})


@sales_bp.route('/<sale_id>/status', methods=['POST'])
@require_login
def change_status(sale_id):
    status = (get_payload().get('status') or '').strip().lower()
    sale = sale_service.change_sale_status(get_session(), g.user_id, sale_id, status)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'sale': sale.to_dict()})


@sales_bp.route('/<sale_id>', methods=['DELETE'])
@require_login
def delete_sale(sale_id):
    """Only cancelled sales can be deleted."""
    sale_service.delete_sale(get_session(), g.user_id, sale_id)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok'})


@sales_bp.route('/<sale_id>/pdf')
@require_login
def download_pdf(sale_id):
    return pdf_response(sale_service.get_sale(get_session(), g.user_id, sale_id))


@sales_bp.route('/<sale_id>/preview')
@require_login
def preview(sale_id):
    return preview_response(sale_service.get_sale(get_session(), g.user_id, sale_id))


@sales_bp.route('/<sale_id>/share', methods=['POST'])
@require_login
def share(sale_id):
    return share_response(sale_service.get_sale(get_session(), g.user_id, sale_id))
