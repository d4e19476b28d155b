"""
Pricing engine for quotes and sales.

Every amount shown on screen, stored in ``total`` or printed on a PDF
comes from these functions, so the database and the documents always
agree on rounding.

Line totals:
    area   -> unit_price * length * width * quantity
    linear -> unit_price * length * quantity

Document total:
    subtotal * (1 - discount/100) * 1.16 (when tax is included),
    rounded half-up to cents.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from salesdesk.exceptions import InvalidInputError, ValidationError
from salesdesk.models.line_item import LineItem, UnitType, to_decimal
from salesdesk.models.sale import PaymentMethod

TAX_RATE = Decimal('0.16')
TAX_MULTIPLIER = Decimal('1') + TAX_RATE
HUNDRED = Decimal('100')
ZERO = Decimal('0')
CENTS = Decimal('0.01')
# Largest amount a Numeric(14, 2) column holds
MAX_AMOUNT = Decimal('999999999999.99')


def round_money(value) -> Decimal:
    """Round half-up to 2 decimal places; out-of-range amounts are a ValidationError."""
    try:
        amount = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("El importe es demasiado grande")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError("El importe es demasiado grande")
    return amount


def _non_negative(value, label) -> Decimal:
    try:
        number = to_decimal(value, ZERO)
    except ValueError:
        raise InvalidInputError(f"{label} debe ser un número")
    if number < 0:
        raise InvalidInputError(f"{label} no puede ser negativo")
    return number


def validate_discount(discount_percent) -> Decimal:
    try:
        discount = to_decimal(discount_percent, ZERO)
    except ValueError:
        raise ValidationError("El descuento debe ser un número")
    if discount < 0 or discount > HUNDRED:
        raise ValidationError("El descuento debe estar entre 0 y 100")
    return discount


def compute_line_item_total(item: LineItem) -> Decimal:
    """
    Unrounded total of one line item.

    A missing or zero price yields 0. Negative dimensions, quantities or
    prices raise InvalidInputError.
    """
    price = _non_negative(item.unit_price, "El precio")
    length = _non_negative(item.length, "El largo")
    quantity = _non_negative(item.quantity, "La cantidad")

    if item.unit_type == UnitType.AREA:
        width = _non_negative(item.width, "El ancho")
        return price * length * width * quantity
    return price * length * quantity


def compute_subtotal(items: Iterable[LineItem]) -> Decimal:
    return sum((compute_line_item_total(item) for item in items), ZERO)


def apply_discount_and_tax(subtotal, discount_percent, include_tax) -> Decimal:
    """Forward steps 2-3 of the total, without rounding."""
    discount = validate_discount(discount_percent)
    amount = Decimal(subtotal)
    if discount > 0:
        amount = amount * (1 - discount / HUNDRED)
    if include_tax:
        amount = amount * TAX_MULTIPLIER
    return amount


def compute_document_total(items: Iterable[LineItem], discount_percent=0, include_tax=False) -> Decimal:
    """Total persisted on a quote or sale, rounded half-up to cents."""
    subtotal = compute_subtotal(items)
    return round_money(apply_discount_and_tax(subtotal, discount_percent, include_tax))


@dataclass
class TotalsBreakdown:
    """Amounts printed in the totals block of a document."""
    subtotal: Decimal
    discount_amount: Decimal
    pre_tax_subtotal: Decimal
    tax_amount: Decimal
    total: Decimal

    def to_dict(self):
        return {
            'subtotal': str(self.subtotal),
            'discount_amount': str(self.discount_amount),
            'pre_tax_subtotal': str(self.pre_tax_subtotal),
            'tax_amount': str(self.tax_amount),
            'total': str(self.total),
        }


def invert_document_total(total, discount_percent=0, include_tax=False,
                          subtotal_hint: Optional[Decimal] = None) -> TotalsBreakdown:
    """
    Rebuild subtotal, discount and tax from a stored total.

    At a 100% discount the total is 0 and the original subtotal cannot be
    recovered; ``subtotal_hint`` (the items subtotal) is used when given,
    otherwise the discount amount is reported as 0.
    """
    total = to_decimal(total, ZERO)
    discount = validate_discount(discount_percent)

    pre_tax = total / TAX_MULTIPLIER if include_tax else total
    tax_amount = total - pre_tax

    if discount <= 0:
        discount_amount = ZERO
    elif discount >= HUNDRED:
        discount_amount = Decimal(subtotal_hint) if subtotal_hint is not None else ZERO
    else:
        discount_amount = pre_tax / (1 - discount / HUNDRED) - pre_tax

    return TotalsBreakdown(
        subtotal=round_money(pre_tax + discount_amount),
        discount_amount=round_money(discount_amount),
        pre_tax_subtotal=round_money(pre_tax),
        tax_amount=round_money(tax_amount),
        total=round_money(total),
    )


@dataclass
class PaymentSummary:
    """Payment fields stored on a sale."""
    method: str
    amount_paid: Optional[Decimal] = None
    change: Optional[Decimal] = None
    advance: Optional[Decimal] = None
    balance: Optional[Decimal] = None


def compute_change(total, amount_paid) -> Decimal:
    return round_money(to_decimal(amount_paid, ZERO) - to_decimal(total, ZERO))


def compute_credit_balance(total, advance) -> Decimal:
    return round_money(to_decimal(total, ZERO) - to_decimal(advance, ZERO))


def settle_payment(total, method, amount_paid=None, advance=None) -> PaymentSummary:
    """
    Validate the payment fields of a sale and derive change/balance.

    cash:     amount_paid >= total, change = amount_paid - total
    credit:   0 < advance <= total (advance may be 0 only when total is 0)
    transfer: no amounts
    """
    try:
        method = PaymentMethod(method).value
    except ValueError:
        raise ValidationError("Método de pago inválido")

    total = to_decimal(total, ZERO)
    try:
        amount_paid = to_decimal(amount_paid)
        advance = to_decimal(advance)
    except ValueError as e:
        raise ValidationError(str(e))

    if method == PaymentMethod.CASH.value:
        if amount_paid is None or amount_paid < total:
            raise ValidationError("El monto pagado debe ser mayor o igual al total")
        return PaymentSummary(method=method, amount_paid=round_money(amount_paid),
                              change=compute_change(total, amount_paid))

    if method == PaymentMethod.CREDIT.value:
        advance = advance if advance is not None else ZERO
        if advance < 0:
            raise ValidationError("El anticipo no puede ser negativo")
        if advance > total:
            raise ValidationError("El anticipo no puede ser mayor al total")
        if advance == 0 and total > 0:
            raise ValidationError("Debes ingresar un anticipo para ventas a fiado si el total es mayor a 0")
        return PaymentSummary(method=method, advance=round_money(advance),
                              balance=compute_credit_balance(total, advance))

    return PaymentSummary(method=method)
