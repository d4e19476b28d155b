"""
Drafts blueprint: the quote/sale form kept in the session.

Every mutation returns the live summary so the form can redraw totals.
"""
from flask import Blueprint, session, g, jsonify

from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services import catalog_service, quote_service, sale_service
from salesdesk.services.cache_service import invalidate_dashboard_cache
from salesdesk.services.draft_service import DocumentDraft, load_draft, save_draft, clear_draft
from salesdesk.utils.request_data import get_payload

drafts_bp = Blueprint('drafts', __name__, url_prefix='/drafts/<kind>')


def _summary_response(draft, status=200):
    return jsonify({'status': 'ok', 'draft': draft.summary()}), status


@drafts_bp.route('/')
@require_login
def show(kind):
    return _summary_response(load_draft(session, kind))


@drafts_bp.route('/client', methods=['POST'])
@require_login
def select_client(kind):
    draft = load_draft(session, kind)
    client_id = get_payload().get('client_id')
    if client_id:
        catalog_service.get_client(get_session(), g.user_id, client_id)
    draft.select_client(client_id)
    save_draft(session, draft)
    return _summary_response(draft)


@drafts_bp.route('/items', methods=['POST'])
@require_login
def add_item(kind):
    draft = load_draft(session, kind)
    product = catalog_service.get_product(get_session(), g.user_id, get_payload().get('product_id'))
    draft.add_item(product)
    save_draft(session, draft)
    return _summary_response(draft, 201)


@drafts_bp.route('/items/<int:index>', methods=['PATCH', 'POST'])
@require_login
def update_item(kind, index):
    draft = load_draft(session, kind)
    data = get_payload()
    draft.update_item(index, data.get('field'), data.get('value'))
    save_draft(session, draft)
    return _summary_response(draft)


@drafts_bp.route('/items/<int:index>', methods=['DELETE'])
@require_login
def remove_item(kind, index):
    draft = load_draft(session, kind)
    draft.remove_item(index)
    save_draft(session, draft)
    return _summary_response(draft)


@drafts_bp.route('/options', methods=['POST'])
@require_login
def set_options(kind):
    draft = load_draft(session, kind)
    draft.set_options(**get_payload())
    save_draft(session, draft)
    return _summary_response(draft)


@drafts_bp.route('/edit/<document_id>', methods=['POST'])
@require_login
def edit_document(kind, document_id):
    """Load an existing quote or sale into the draft for editing."""
    load_draft(session, kind)
    if kind == 'quote':
        document = quote_service.get_quote(get_session(), g.user_id, document_id)
    else:
        document = sale_service.get_sale(get_session(), g.user_id, document_id)
    draft = DocumentDraft.from_document(document)
    save_draft(session, draft)
    return _summary_response(draft)


@drafts_bp.route('/submit', methods=['POST'])
@require_login
def submit(kind):
    draft = load_draft(session, kind)
    document = draft.submit(get_session(), g.user_id)
    clear_draft(session, kind)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', kind: document.to_dict()}), 200 if draft.document_id else 201


@drafts_bp.route('/', methods=['DELETE'])
@require_login
def clear(kind):
    clear_draft(session, kind)
    return _summary_response(DocumentDraft(kind=kind))
