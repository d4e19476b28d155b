"""Quote service: creating, editing, sending and converting quotes."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session

from salesdesk.exceptions import BusinessLogicError, NotFoundError, ValidationError, PersistenceError
from salesdesk.models import Quote, QuoteStatus, Sale, LineItem, ClientSnapshot
from salesdesk.services.catalog_service import get_client
from salesdesk.services.pricing_service import compute_document_total, validate_discount

logger = logging.getLogger(__name__)


def _validate_document(client_id: Optional[str], items: List[LineItem]):
    if not client_id:
        raise ValidationError("Por favor selecciona un cliente")
    if not items:
        raise ValidationError("Por favor agrega al menos un producto")


def apply_document_fields(session: Session, owner_id: str, document, client_id: str,
                          items: List[LineItem], include_tax: bool, discount_percent) -> None:
    """Copy client snapshot, items and the computed total onto a quote or sale."""
    _validate_document(client_id, items)
    discount = validate_discount(discount_percent)
    client = get_client(session, owner_id, client_id)

    document.client_id = client.id
    document.client_snapshot = ClientSnapshot.from_client(client)
    document.line_items = items
    document.include_tax = bool(include_tax)
    document.discount_percent = discount
    document.total = compute_document_total(items, discount, include_tax)


def get_quote(session: Session, owner_id: str, quote_id: str) -> Quote:
    quote = session.query(Quote).filter_by(id=quote_id, owner_id=owner_id).first()
    if not quote:
        raise NotFoundError("Cotización no encontrada", payload={'redirect': '/quotes/'})
    return quote


def list_quotes(session: Session, owner_id: str, status: Optional[str] = None,
                search: Optional[str] = None) -> List[Quote]:
    query = session.query(Quote).filter(Quote.owner_id == owner_id)
    if status:
        query = query.filter(Quote.status == status)
    if search:
        query = query.filter(func.lower(Quote.client_name).like(f"%{search.strip().lower()}%"))
    return query.order_by(Quote.created_at.desc()).all()


def create_quote(session: Session, owner_id: str, client_id: str, items: List[LineItem],
                 include_tax: bool = True, discount_percent=0) -> Quote:
    try:
        quote = Quote(owner_id=owner_id, status=QuoteStatus.PENDING.value)
        apply_document_fields(session, owner_id, quote, client_id, items, include_tax, discount_percent)
        session.add(quote)
        session.commit()
        logger.info(f"Quote {quote.id} created for user {owner_id} (total {quote.total})")
        return quote
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating quote: {e}", exc_info=True)
        raise PersistenceError() from e


def update_quote(session: Session, owner_id: str, quote_id: str, client_id: str, items: List[LineItem],
                 include_tax: bool = True, discount_percent=0) -> Quote:
    """Edit a pending or sent quote; converted quotes are read-only."""
    try:
        quote = get_quote(session, owner_id, quote_id)
        if not quote.is_editable:
            raise BusinessLogicError("No se puede editar una cotización convertida en venta.")
        apply_document_fields(session, owner_id, quote, client_id, items, include_tax, discount_percent)
        session.commit()
        return quote
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating quote {quote_id}: {e}", exc_info=True)
        raise PersistenceError() from e


def mark_quote_sent(session: Session, owner_id: str, quote_id: str) -> Quote:
    quote = get_quote(session, owner_id, quote_id)
    if quote.status == QuoteStatus.CONVERTED.value:
        raise BusinessLogicError("La cotización ya fue convertida en venta.")
    if quote.status == QuoteStatus.PENDING.value:
        quote.status = QuoteStatus.SENT.value
        try:
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError() from e
    return quote


def convert_quote_to_sale(session: Session, owner_id: str, quote_id: str,
                          payment: Optional[Dict[str, Any]] = None) -> Sale:
    """
    Create a sale from a quote and mark the quote converted, in one commit.

    The sale carries the quote's client snapshot and line items as
    they were quoted, not the current client record.

    The quote row is locked while converting and a quote that is already
    converted is rejected, so calling this twice never creates two sales.
    ``payment`` carries payment_method, amount_paid, advance, delivery_date
    and an optional bank override, as accepted by ``create_sale``.
    """
    from salesdesk.services.sale_service import build_sale

    payment = dict(payment or {})
    try:
        quote = session.query(Quote).filter(
            Quote.id == quote_id, Quote.owner_id == owner_id
        ).with_for_update().first()
        if not quote:
            raise NotFoundError("Cotización no encontrada", payload={'redirect': '/quotes/'})
        if not quote.is_convertible:
            raise BusinessLogicError("Esta cotización ya fue convertida en venta.", status_code=409)
        if not quote.client_id:
            raise ValidationError("El cliente de la cotización ya no existe. Edita la cotización antes de convertirla.")

        sale = build_sale(
            session, owner_id,
            client_id=quote.client_id,
            items=quote.line_items,
            include_tax=quote.include_tax,
            discount_percent=quote.discount_percent,
            quote_id=quote.id,
            **payment
        )
        sale.client_snapshot = quote.client_snapshot
        session.add(sale)
        session.flush()

        quote.status = QuoteStatus.CONVERTED.value
        quote.sale_id = sale.id
        quote.converted_at = datetime.now(timezone.utc)

        session.commit()
        logger.info(f"Quote {quote.id} converted to sale {sale.id} ({sale.order_number})")
        return sale
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Duplicate conversion of quote {quote_id} rejected: {e}")
        raise BusinessLogicError("Esta cotización ya fue convertida en venta.", status_code=409)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error converting quote {quote_id}: {e}", exc_info=True)
        raise PersistenceError() from e
