"""
Dashboard service.
Home counters and sales totals per period, cached per user in Redis.
"""

from datetime import datetime, date, time, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy import func

from salesdesk.models import Client, Product, Quote, QuoteStatus, Sale, SaleStatus
from salesdesk.services.cache_service import get_cache, DASHBOARD_MODULE

TIME_RANGES = ('day', 'week', 'month', 'semester', 'year')
DEFAULT_RANGE = 'month'


def get_period_range(range_name: str, today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """
    [start, end) datetimes for a named period around ``today``.

    week starts on Monday; semester is January-June or July-December;
    unknown names fall back to the current month.
    """
    today = today or date.today()
    if range_name not in TIME_RANGES:
        range_name = DEFAULT_RANGE

    if range_name == 'day':
        start = today
        end = today + timedelta(days=1)
    elif range_name == 'week':
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
    elif range_name == 'month':
        start = today.replace(day=1)
        end = (start.replace(year=start.year + 1, month=1) if start.month == 12
               else start.replace(month=start.month + 1))
    elif range_name == 'semester':
        if today.month <= 6:
            start, end = date(today.year, 1, 1), date(today.year, 7, 1)
        else:
            start, end = date(today.year, 7, 1), date(today.year + 1, 1, 1)
    else:
        start, end = date(today.year, 1, 1), date(today.year + 1, 1, 1)

    return datetime.combine(start, time.min), datetime.combine(end, time.min)


def _load_home_stats(session, owner_id: str) -> dict:
    def count(model, *criteria):
        return session.query(func.count(model.id)).filter(model.owner_id == owner_id, *criteria).scalar() or 0

    revenue = session.query(func.coalesce(func.sum(Sale.total), 0)).filter(
        Sale.owner_id == owner_id,
        Sale.status != SaleStatus.CANCELLED.value
    ).scalar()

    return {
        'clients': count(Client),
        'products': count(Product),
        'quotes': count(Quote),
        'pending_quotes': count(Quote, Quote.status == QuoteStatus.PENDING.value),
        'sales': count(Sale),
        'total_revenue': Decimal(str(revenue or 0)),
    }


def get_home_stats(session, owner_id: str) -> dict:
    """Counters for the home screen; cancelled sales do not add revenue."""
    ttl = current_app.config.get('CACHE_DASHBOARD_TTL', 60)
    return get_cache().memoize(owner_id, DASHBOARD_MODULE, 'home',
                               lambda: _load_home_stats(session, owner_id), ttl)


def get_sales_summary(session, owner_id: str, range_name: str = DEFAULT_RANGE,
                      today: Optional[date] = None) -> dict:
    """Total, count and average of the sales created in the period."""
    if range_name not in TIME_RANGES:
        range_name = DEFAULT_RANGE
    start, end = get_period_range(range_name, today)

    sales = session.query(Sale).filter(
        Sale.owner_id == owner_id,
        Sale.created_at >= start,
        Sale.created_at < end
    ).order_by(Sale.created_at.desc()).all()

    total = sum((Decimal(s.total or 0) for s in sales), Decimal('0'))
    average = (total / len(sales)).quantize(Decimal('0.01')) if sales else Decimal('0.00')

    return {
        'range': range_name,
        'start': start.date().isoformat(),
        'end': end.date().isoformat(),
        'total': total,
        'count': len(sales),
        'average': average,
        'sales': sales,
    }
