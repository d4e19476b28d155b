"""Clients blueprint."""
from flask import Blueprint, request, g, jsonify

from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services import catalog_service
from salesdesk.services.cache_service import invalidate_dashboard_cache
from salesdesk.utils.request_data import get_payload

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


@clients_bp.route('/')
@require_login
def list_clients():
    search = request.args.get('q', '').strip()
    clients = catalog_service.list_clients(get_session(), g.user_id, search or None)
    return jsonify({'status': 'ok', 'clients': [c.to_dict() for c in clients]})


@clients_bp.route('/', methods=['POST'])
@require_login
def create_client():
    client = catalog_service.create_client(get_session(), g.user_id, get_payload())
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'client': client.to_dict()}), 201


@clients_bp.route('/<client_id>')
@require_login
def get_client(client_id):
    client = catalog_service.get_client(get_session(), g.user_id, client_id)
    return jsonify({'status': 'ok', 'client': client.to_dict()})


@clients_bp.route('/<client_id>', methods=['PUT', 'POST'])
@require_login
def update_client(client_id):
    client = catalog_service.update_client(get_session(), g.user_id, client_id, get_payload())
    return jsonify({'status': 'ok', 'client': client.to_dict()})


@clients_bp.route('/<client_id>', methods=['DELETE'])
@require_login
def delete_client(client_id):
    catalog_service.delete_client(get_session(), g.user_id, client_id)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok'})
