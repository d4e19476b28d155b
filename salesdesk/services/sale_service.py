"""Sale service: orders with payment and delivery tracking."""
import logging
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.exceptions import BusinessLogicError, NotFoundError, ValidationError, PersistenceError
from salesdesk.models import Sale, SaleStatus, PaymentMethod, LineItem
from salesdesk.services.pricing_service import settle_payment
from salesdesk.services.quote_service import apply_document_fields
from salesdesk.services.settings_service import get_settings

logger = logging.getLogger(__name__)


def generate_order_number(session: Session, owner_id: str, now_ms: Optional[int] = None) -> str:
    """PED- followed by the last 8 digits of the current time in milliseconds."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    while True:
        number = f"PED-{str(stamp)[-8:]}"
        exists = session.query(Sale.id).filter_by(owner_id=owner_id, order_number=number).first()
        if not exists:
            return number
        stamp += 1


def parse_delivery_date(value) -> Optional[date]:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError("Fecha de entrega inválida (usa AAAA-MM-DD)")


def _apply_payment(session: Session, owner_id: str, sale: Sale, payment_method, amount_paid, advance,
                   bank: Optional[Dict[str, Any]]):
    summary = settle_payment(sale.total, payment_method, amount_paid=amount_paid, advance=advance)
    sale.payment_method = summary.method
    sale.amount_paid = summary.amount_paid
    sale.change_amount = summary.change
    sale.advance = summary.advance

    if summary.method == PaymentMethod.TRANSFER.value:
        bank = bank or {}
        settings = get_settings(session, owner_id)
        sale.bank_name = (bank.get('bank') or '').strip() or settings.bank_name
        sale.bank_account_number = (bank.get('account_number') or '').strip() or settings.bank_account_number
        sale.bank_account_holder = (bank.get('account_holder') or '').strip() or settings.bank_account_holder
    else:
        sale.bank_name = sale.bank_account_number = sale.bank_account_holder = None


def build_sale(session: Session, owner_id: str, client_id: str, items: List[LineItem],
               include_tax: bool = True, discount_percent=0, payment_method: str = PaymentMethod.CASH.value,
               amount_paid=None, advance=None, delivery_date=None, bank: Optional[Dict[str, Any]] = None,
               quote_id: Optional[str] = None) -> Sale:
    """Validated, unsaved Sale."""
    sale = Sale(owner_id=owner_id, status=SaleStatus.PENDING.value, quote_id=quote_id)
    apply_document_fields(session, owner_id, sale, client_id, items, include_tax, discount_percent)
    _apply_payment(session, owner_id, sale, payment_method, amount_paid, advance, bank)
    sale.delivery_date = parse_delivery_date(delivery_date)
    sale.order_number = generate_order_number(session, owner_id)
    return sale


def get_sale(session: Session, owner_id: str, sale_id: str) -> Sale:
    sale = session.query(Sale).filter_by(id=sale_id, owner_id=owner_id).first()
    if not sale:
        raise NotFoundError("Venta no encontrada", payload={'redirect': '/sales/'})
    return sale


def list_sales(session: Session, owner_id: str, status: Optional[str] = None) -> List[Sale]:
    """Nearest delivery date first; sales without a date last."""
    query = session.query(Sale).filter(Sale.owner_id == owner_id)
    if status:
        query = query.filter(Sale.status == status)
    undated_last = case((Sale.delivery_date.is_(None), 1), else_=0)
    return query.order_by(undated_last, Sale.delivery_date.asc(), Sale.created_at.desc()).all()


def create_sale(session: Session, owner_id: str, client_id: str, items: List[LineItem], **kwargs) -> Sale:
    try:
        sale = build_sale(session, owner_id, client_id, items, **kwargs)
        session.add(sale)
        session.commit()
        logger.info(f"Sale {sale.id} ({sale.order_number}) created for user {owner_id} (total {sale.total})")
        return sale
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating sale: {e}", exc_info=True)
        raise PersistenceError() from e


def update_sale(session: Session, owner_id: str, sale_id: str, client_id: str, items: List[LineItem],
                include_tax: bool = True, discount_percent=0, payment_method: str = PaymentMethod.CASH.value,
                amount_paid=None, advance=None, delivery_date=None,
                bank: Optional[Dict[str, Any]] = None) -> Sale:
    """Edit a sale; order number, creation date and status are kept."""
    try:
        sale = get_sale(session, owner_id, sale_id)
        if sale.status == SaleStatus.CANCELLED.value:
            raise BusinessLogicError("No se puede editar una venta cancelada.")
        apply_document_fields(session, owner_id, sale, client_id, items, include_tax, discount_percent)
        _apply_payment(session, owner_id, sale, payment_method, amount_paid, advance, bank)
        sale.delivery_date = parse_delivery_date(delivery_date)
        session.commit()
        return sale
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating sale {sale_id}: {e}", exc_info=True)
        raise PersistenceError() from e


def change_sale_status(session: Session, owner_id: str, sale_id: str, status: str) -> Sale:
    """Any status can be set at any time; only cancelled sales can be deleted."""
    try:
        status = SaleStatus(status).value
    except ValueError:
        raise ValidationError("Estado inválido")
    sale = get_sale(session, owner_id, sale_id)
    sale.status = status
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError() from e
    logger.info(f"Sale {sale.id} status -> {status}")
    return sale


def delete_sale(session: Session, owner_id: str, sale_id: str) -> None:
    sale = get_sale(session, owner_id, sale_id)
    if not sale.is_deletable:
        raise BusinessLogicError("Solo se pueden eliminar ventas canceladas.")
    try:
        session.delete(sale)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting sale {sale_id}: {e}", exc_info=True)
        raise PersistenceError() from e
    logger.info(f"Sale {sale_id} deleted by user {owner_id}")
