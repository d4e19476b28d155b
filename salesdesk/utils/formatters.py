"""
Utilidades de formateo para documentos y respuestas.
Montos con símbolo y código de moneda, fechas dd/mm/aaaa y medidas.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

CURRENCY_SYMBOLS = {
    'MXN': '$',
    'USD': '$',
}

UNIT_LABELS = {
    'area': 'm²',
    'linear': 'ml',
}


def _to_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def money(value: Union[int, float, Decimal, str, None], currency: str = 'MXN') -> str:
    """
    Formatea un monto con símbolo, separador de miles y código de moneda.

    Examples:
        money(1500) -> "$1,500.00 MXN"
        money(626.4, 'USD') -> "$626.40 USD"
        money(None) -> "$0.00 MXN"
    """
    num = _to_decimal(value) or Decimal('0')
    num = num.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency, '$')
    sign = '-' if num < 0 else ''
    return f"{sign}{symbol}{abs(num):,.2f} {currency}"


def quantity(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Número sin ceros decimales innecesarios.

    Examples:
        quantity(Decimal('2.00')) -> "2"
        quantity('1.50') -> "1.5"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"
    if num == num.to_integral_value():
        return str(num.to_integral_value())
    return format(num.normalize(), 'f')


def dimensions(unit_type: str, length, width=None) -> str:
    """Medidas según el tipo de unidad: "2m x 3m" (área) o "2m" (lineal)."""
    if unit_type == 'area':
        return f"{quantity(length)}m x {quantity(width)}m"
    return f"{quantity(length)}m"


def unit_label(unit_type: str) -> str:
    return UNIT_LABELS.get(unit_type, unit_type or '-')


def date_short(value: Union[date, datetime, str, None]) -> str:
    """
    Fecha en formato dd/mm/aaaa.

    Examples:
        date_short(date(2026, 1, 5)) -> "05/01/2026"
        date_short("2026-01-05") -> "05/01/2026"
        date_short(None) -> "-"
    """
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime('%d/%m/%Y')


def truncate(text: Optional[str], max_length: int) -> str:
    text = (text or '').strip()
    if len(text) <= max_length:
        return text
    return text[:max_length - 3].rstrip() + '...'
