"""LineItem - one product/process entry embedded in a quote or sale."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import enum
from typing import Any, Dict, Optional


class UnitType(str, enum.Enum):
    """Pricing basis of a product."""
    AREA = 'area'
    LINEAR = 'linear'


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Coerce a number-like value to Decimal; blank values return default.

    NaN and Infinity are rejected like any other non-number.
    """
    if value is None or value == '':
        return default
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Valor numérico inválido: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Valor numérico inválido: {value!r}")
    return number


ONE = Decimal('1')


@dataclass
class LineItem:
    """
    Snapshot of a product at the moment it was added to a document.

    Never persisted on its own: quotes and sales keep a JSON list of
    these. Name, unit type and unit price are copied from the product so
    later catalog edits do not rewrite historical documents.
    """
    product_id: Optional[str]
    product_name: str
    unit_type: UnitType
    unit_price: Decimal
    length: Decimal = ONE
    width: Decimal = ONE
    quantity: Decimal = ONE
    observations: str = ''

    @classmethod
    def from_product(cls, product, length=None, width=None, quantity=None, observations=''):
        """Build a line item snapshotting the product's current fields."""
        return cls(
            product_id=product.id,
            product_name=product.name,
            unit_type=UnitType(product.unit_type),
            unit_price=to_decimal(product.unit_price, Decimal('0')),
            length=to_decimal(length, ONE),
            width=to_decimal(width, ONE),
            quantity=to_decimal(quantity, ONE),
            observations=(observations or '').strip(),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        """Load a line item stored by :meth:`to_dict`."""
        return cls(
            product_id=data.get('product_id'),
            product_name=data.get('product_name') or '',
            unit_type=UnitType(data.get('unit_type') or UnitType.AREA.value),
            unit_price=to_decimal(data.get('unit_price'), Decimal('0')),
            length=to_decimal(data.get('length'), ONE),
            width=to_decimal(data.get('width'), ONE),
            quantity=to_decimal(data.get('quantity'), ONE),
            observations=data.get('observations') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'unit_type': self.unit_type.value,
            'unit_price': str(self.unit_price),
            'length': str(self.length),
            'width': str(self.width),
            'quantity': str(self.quantity),
            'observations': self.observations,
        }

    @property
    def is_area(self) -> bool:
        return self.unit_type == UnitType.AREA
