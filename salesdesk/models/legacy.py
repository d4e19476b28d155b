"""
Adapter for records exported from the old document store.

Old exports use camelCase keys and several alternative field names per
line item (``productName``/``name``, ``productType`` in ``m2``/``ml``,
``productPrice``/``price``). They are mapped here, once, to the strict
models; nothing else in the code base reads legacy field names.
"""
from datetime import datetime, date, timezone
from decimal import Decimal

from salesdesk.models.line_item import LineItem, UnitType, to_decimal, ONE

LEGACY_UNIT_TYPES = {
    'm2': UnitType.AREA,
    'area': UnitType.AREA,
    'ml': UnitType.LINEAR,
    'linear': UnitType.LINEAR,
}


def legacy_unit_type(value):
    """Map ``m2``/``ml`` (or already-new values) to a UnitType; unknown -> area."""
    return LEGACY_UNIT_TYPES.get((value or '').strip().lower(), UnitType.AREA)


def _first(data, *keys, default=None):
    for key in keys:
        value = data.get(key)
        if value not in (None, ''):
            return value
    return default


def parse_legacy_datetime(value):
    """Accept ISO strings, epoch millis or ``{"seconds": ...}`` timestamp dicts."""
    if value in (None, ''):
        return None
    if isinstance(value, dict) and 'seconds' in value:
        return datetime.fromtimestamp(int(value['seconds']), tz=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def parse_legacy_date(value):
    parsed = parse_legacy_datetime(value)
    if parsed is None:
        return None
    return parsed.date() if isinstance(parsed, datetime) else parsed


def _positive_or_one(value):
    number = to_decimal(value, ONE)
    return number if number > 0 else ONE


def line_item_from_legacy(data):
    """Build a LineItem from any of the historical item shapes."""
    product = data.get('product') or {}
    return LineItem(
        product_id=_first(data, 'productId', 'product_id'),
        product_name=_first(data, 'productName', 'name', default=product.get('name') or ''),
        unit_type=legacy_unit_type(_first(data, 'productType', 'type', default=product.get('type'))),
        unit_price=to_decimal(_first(data, 'productPrice', 'price', default=product.get('price')), Decimal('0')),
        length=_positive_or_one(data.get('length')),
        width=_positive_or_one(data.get('width')),
        quantity=_positive_or_one(data.get('quantity')),
        observations=data.get('observations') or '',
    )


def product_fields_from_legacy(data):
    category = (data.get('category') or 'product').lower()
    return {
        'name': data.get('name') or 'Sin nombre',
        'description': data.get('description') or None,
        'category': 'process' if category.startswith('proce') else 'product',
        'unit_type': legacy_unit_type(_first(data, 'unitType', 'type')).value,
        'unit_price': to_decimal(_first(data, 'unitPrice', 'price'), Decimal('0')),
    }


def client_fields_from_legacy(data):
    return {
        'name': data.get('name') or 'Sin nombre',
        'email': data.get('email') or None,
        'phone': data.get('phone') or None,
        'address': data.get('address') or None,
    }


def document_fields_from_legacy(data):
    """Common quote/sale fields; ``client_id`` is the legacy id, resolved by the caller."""
    return {
        'legacy_client_id': data.get('clientId'),
        'client_name': data.get('clientName'),
        'client_email': data.get('clientEmail') or None,
        'client_phone': data.get('clientPhone') or None,
        'line_items': [line_item_from_legacy(item) for item in data.get('items') or []],
        'include_tax': bool(_first(data, 'includeIVA', 'includeTax', default=False)),
        'discount_percent': to_decimal(_first(data, 'discountPercentage', 'discountPercent'), Decimal('0')),
        'total': to_decimal(data.get('total'), Decimal('0')),
        'status': data.get('status') or 'pending',
        'created_at': parse_legacy_datetime(data.get('createdAt')),
    }


def sale_fields_from_legacy(data):
    fields = document_fields_from_legacy(data)
    bank = data.get('bankData') or {}
    delivery = parse_legacy_date(data.get('deliveryDate'))
    fields.update({
        'order_number': data.get('orderNumber'),
        'payment_method': data.get('paymentMethod') or 'cash',
        'amount_paid': to_decimal(data.get('amountPaid')),
        'change_amount': to_decimal(data.get('change')),
        'advance': to_decimal(data.get('advance')),
        'bank_name': bank.get('bank') or None,
        'bank_account_number': bank.get('accountNumber') or None,
        'bank_account_holder': bank.get('accountHolder') or None,
        'delivery_date': delivery if isinstance(delivery, date) else None,
    })
    return fields
