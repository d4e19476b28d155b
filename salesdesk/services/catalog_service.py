"""Clients and products: CRUD plus line-item snapshots for documents."""
import logging
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.exceptions import ValidationError, NotFoundError, PersistenceError
from salesdesk.models import Client, Product, ProductCategory, UnitType, LineItem
from salesdesk.models.line_item import to_decimal, ONE

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

# Upper bounds keep line totals well inside Decimal precision
MAX_DIMENSION = Decimal('10000')
MAX_UNIT_PRICE = Decimal('100000000')


def _clean(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip() or None


def _commit(session: Session, action: str):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error al {action}: {e}", exc_info=True)
        raise PersistenceError() from e


# =====================================================
# CLIENTS
# =====================================================

def _client_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    fields = {
        'name': _clean(data, 'name'),
        'email': _clean(data, 'email'),
        'phone': _clean(data, 'phone'),
        'address': _clean(data, 'address'),
    }
    if not fields['name']:
        raise ValidationError("El nombre del cliente es obligatorio")
    if fields['email'] and not re.match(EMAIL_PATTERN, fields['email']):
        raise ValidationError("Email inválido")
    return fields


def list_clients(session: Session, owner_id: str, search: Optional[str] = None) -> List[Client]:
    query = session.query(Client).filter(Client.owner_id == owner_id)
    if search:
        term = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Client.name).like(term),
            func.lower(Client.email).like(term),
            func.lower(Client.phone).like(term),
        ))
    return query.order_by(Client.name).all()


def get_client(session: Session, owner_id: str, client_id: str) -> Client:
    client = session.query(Client).filter_by(id=client_id, owner_id=owner_id).first()
    if not client:
        raise NotFoundError("Cliente no encontrado", payload={'redirect': '/clients/'})
    return client


def create_client(session: Session, owner_id: str, data: Dict[str, Any]) -> Client:
    client = Client(owner_id=owner_id, **_client_fields(data))
    session.add(client)
    _commit(session, "crear cliente")
    return client


def update_client(session: Session, owner_id: str, client_id: str, data: Dict[str, Any]) -> Client:
    client = get_client(session, owner_id, client_id)
    for key, value in _client_fields(data).items():
        setattr(client, key, value)
    _commit(session, "actualizar cliente")
    return client


def delete_client(session: Session, owner_id: str, client_id: str) -> None:
    """Existing quotes and sales keep their client snapshot."""
    client = get_client(session, owner_id, client_id)
    session.delete(client)
    _commit(session, "eliminar cliente")


# =====================================================
# PRODUCTS
# =====================================================

def _product_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    name = _clean(data, 'name')
    if not name:
        raise ValidationError("El nombre del producto es obligatorio")

    category = _clean(data, 'category') or ProductCategory.PRODUCT.value
    if category not in {c.value for c in ProductCategory}:
        raise ValidationError("Categoría inválida. Usa product o process.")

    unit_type = _clean(data, 'unit_type') or UnitType.AREA.value
    if unit_type not in {u.value for u in UnitType}:
        raise ValidationError("Tipo de unidad inválido. Usa area o linear.")

    try:
        unit_price = to_decimal(data.get('unit_price'), Decimal('0'))
    except ValueError:
        raise ValidationError("El precio debe ser un número")
    if unit_price < 0:
        raise ValidationError("El precio no puede ser negativo")
    if unit_price > MAX_UNIT_PRICE:
        raise ValidationError(f"El precio no puede ser mayor a {MAX_UNIT_PRICE}")

    return {
        'name': name,
        'description': _clean(data, 'description'),
        'category': category,
        'unit_type': unit_type,
        'unit_price': unit_price,
    }


def list_products(session: Session, owner_id: str, category: Optional[str] = None) -> List[Product]:
    query = session.query(Product).filter(Product.owner_id == owner_id)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.name).all()


def get_product(session: Session, owner_id: str, product_id: str) -> Product:
    product = session.query(Product).filter_by(id=product_id, owner_id=owner_id).first()
    if not product:
        raise NotFoundError("Producto no encontrado", payload={'redirect': '/products/'})
    return product


def create_product(session: Session, owner_id: str, data: Dict[str, Any]) -> Product:
    product = Product(owner_id=owner_id, **_product_fields(data))
    session.add(product)
    _commit(session, "crear producto")
    return product


def update_product(session: Session, owner_id: str, product_id: str, data: Dict[str, Any]) -> Product:
    """Documents already holding this product keep their snapshot."""
    product = get_product(session, owner_id, product_id)
    for key, value in _product_fields(data).items():
        setattr(product, key, value)
    _commit(session, "actualizar producto")
    return product


def delete_product(session: Session, owner_id: str, product_id: str) -> None:
    product = get_product(session, owner_id, product_id)
    session.delete(product)
    _commit(session, "eliminar producto")


# =====================================================
# LINE ITEMS
# =====================================================

def parse_dimension(value, label: str) -> Decimal:
    """Blank means 1; anything else must be a number in (0, MAX_DIMENSION]."""
    try:
        number = to_decimal(value, ONE)
    except ValueError:
        raise ValidationError(f"{label} debe ser un número")
    if number <= 0:
        raise ValidationError(f"{label} debe ser mayor a 0")
    if number > MAX_DIMENSION:
        raise ValidationError(f"{label} no puede ser mayor a {MAX_DIMENSION}")
    return number


def build_line_items(session: Session, owner_id: str, items_data: Iterable[Dict[str, Any]],
                     existing: Optional[List[LineItem]] = None) -> List[LineItem]:
    """
    Turn ``{product_id, length, width, quantity, observations}`` dicts into
    LineItems.

    Lines whose product was already on the document (``existing``) keep
    their original name/unit/price snapshot; new lines snapshot the
    product as it is now.
    """
    items_data = list(items_data or [])
    snapshots = {item.product_id: item for item in (existing or []) if item.product_id}

    needed = {d.get('product_id') for d in items_data if d.get('product_id') not in snapshots}
    products = {}
    if needed:
        rows = session.query(Product).filter(
            Product.owner_id == owner_id,
            Product.id.in_([pid for pid in needed if pid])
        ).all()
        products = {p.id: p for p in rows}

    items = []
    for position, data in enumerate(items_data, start=1):
        product_id = data.get('product_id')
        length = parse_dimension(data.get('length'), f"El largo del producto {position}")
        width = parse_dimension(data.get('width'), f"El ancho del producto {position}")
        quantity = parse_dimension(data.get('quantity'), f"La cantidad del producto {position}")
        observations = (data.get('observations') or '').strip()

        if product_id in snapshots:
            previous = snapshots[product_id]
            items.append(LineItem(
                product_id=product_id,
                product_name=previous.product_name,
                unit_type=previous.unit_type,
                unit_price=previous.unit_price,
                length=length, width=width, quantity=quantity,
                observations=observations,
            ))
            continue

        product = products.get(product_id)
        if not product:
            raise NotFoundError(f"Producto {position} no encontrado")
        items.append(LineItem.from_product(product, length, width, quantity, observations))
    return items
