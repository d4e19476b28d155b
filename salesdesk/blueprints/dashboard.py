"""Dashboard blueprint: home counters and sales analytics."""
from datetime import date

from flask import Blueprint, request, g, jsonify

from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services.dashboard_service import get_home_stats, get_sales_summary, DEFAULT_RANGE


dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


@dashboard_bp.route('/')
@require_login
def index():
    stats = get_home_stats(get_session(), g.user_id)
    return jsonify({
        'status': 'ok',
        'stats': dict(stats, total_revenue=str(stats['total_revenue'])),
    })


@dashboard_bp.route('/analytics')
@require_login
def analytics():
    """Sales totals for ?range=day|week|month|semester|year."""
    range_name = request.args.get('range', DEFAULT_RANGE).strip().lower()
    summary = get_sales_summary(get_session(), g.user_id, range_name, today=date.today())
    return jsonify({
        'status': 'ok',
        'range': summary['range'],
        'start': summary['start'],
        'end': summary['end'],
        'total': str(summary['total']),
        'count': summary['count'],
        'average': str(summary['average']),
        'sales': [sale.to_dict() for sale in summary['sales']],
    })
