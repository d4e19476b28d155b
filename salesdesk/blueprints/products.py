"""Products (and processes) catalog blueprint."""
from flask import Blueprint, request, g, jsonify

from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services import catalog_service
from salesdesk.services.cache_service import invalidate_dashboard_cache
from salesdesk.utils.request_data import get_payload

products_bp = Blueprint('products', __name__, url_prefix='/products')


@products_bp.route('/')
@require_login
def list_products():
    category = request.args.get('category', '').strip() or None
    products = catalog_service.list_products(get_session(), g.user_id, category)
    return jsonify({'status': 'ok', 'products': [p.to_dict() for p in products]})


@products_bp.route('/', methods=['POST'])
@require_login
def create_product():
    product = catalog_service.create_product(get_session(), g.user_id, get_payload())
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok', 'product': product.to_dict()}), 201


@products_bp.route('/<product_id>')
@require_login
def get_product(product_id):
    product = catalog_service.get_product(get_session(), g.user_id, product_id)
    return jsonify({'status': 'ok', 'product': product.to_dict()})


@products_bp.route('/<product_id>', methods=['PUT', 'POST'])
@require_login
def update_product(product_id):
    product = catalog_service.update_product(get_session(), g.user_id, product_id, get_payload())
    return jsonify({'status': 'ok', 'product': product.to_dict()})


@products_bp.route('/<product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id):
    catalog_service.delete_product(get_session(), g.user_id, product_id)
    invalidate_dashboard_cache(g.user_id)
    return jsonify({'status': 'ok'})
