"""Shared request parsing, PDF download, preview and share responses for quotes and sales."""
import logging
from functools import partial

from flask import current_app, g, jsonify, send_file

from salesdesk.blueprints.metrics import documents_rendered_total, documents_shared_total
from salesdesk.database import get_session
from salesdesk.exceptions import SalesDeskError, ValidationError
from salesdesk.services.catalog_service import build_line_items
from salesdesk.services.pdf_service import render_document, fetch_logo
from salesdesk.services.settings_service import get_settings
from salesdesk.services.share_service import share_document
from salesdesk.services.storage_service import get_storage_service
from salesdesk.utils.request_data import get_payload, parse_bool

logger = logging.getLogger(__name__)

PAYMENT_FIELDS = ('payment_method', 'amount_paid', 'advance', 'delivery_date')


def read_document_form(data, existing_items=None) -> dict:
    """client_id, line items, tax flag and discount from a request body."""
    items_data = data.get('items') or []
    if not isinstance(items_data, list):
        raise ValidationError("items debe ser una lista")
    return {
        'client_id': data.get('client_id'),
        'items': build_line_items(get_session(), g.user_id, items_data, existing=existing_items),
        'include_tax': parse_bool(data.get('include_tax'), default=True),
        'discount_percent': data.get('discount_percent') or 0,
    }


def read_payment_options(data) -> dict:
    """Payment method, amounts, delivery date and optional bank override."""
    options = {key: data.get(key) for key in PAYMENT_FIELDS if key in data}
    bank = data.get('bank')
    if isinstance(bank, dict):
        options['bank'] = bank
    return options


def render_for_current_user(document):
    settings = get_settings(get_session(), g.user_id)
    loader = partial(fetch_logo, timeout=current_app.config.get('LOGO_FETCH_TIMEOUT', 5))
    rendered = render_document(document, settings, logo_loader=loader)
    documents_rendered_total.labels(
        kind=document.kind,
        outcome='error' if rendered.is_error else 'ok'
    ).inc()
    return rendered


def pdf_response(document):
    rendered = render_for_current_user(document)
    return send_file(
        rendered.as_buffer(),
        mimetype=rendered.mimetype,
        as_attachment=True,
        download_name=rendered.filename
    )


def preview_response(document):
    rendered = render_for_current_user(document)
    return jsonify({
        'status': 'ok',
        'filename': rendered.filename,
        'page_count': rendered.page_count,
        'is_error': rendered.is_error,
        'error_message': rendered.error_message,
        'data_uri': rendered.data_uri(),
    })


def share_response(document):
    data = get_payload()
    method = (data.get('method') or 'download').strip().lower()
    snapshot = document.client_snapshot
    target = data.get('email') if method == 'email' else data.get('phone')
    if not target:
        target = snapshot.email if method == 'email' else snapshot.phone

    rendered = render_for_current_user(document)
    try:
        result = share_document(
            rendered, method, g.user_id, document.id, get_storage_service,
            target=target or '',
            message=data.get('message') or '',
            subject=data.get('subject') or f"{document.display_number}",
        )
    except SalesDeskError as e:
        documents_shared_total.labels(method=method, outcome='error').inc()
        logger.warning(f"[SHARE] {document.kind} {document.id} via {method} failed: {e.message}")
        raise

    documents_shared_total.labels(method=method, outcome='ok').inc()
    return jsonify({'status': 'ok', **result.to_dict()})
