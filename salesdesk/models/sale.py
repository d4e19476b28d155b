"""Sale model."""
import enum
from datetime import date
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, UniqueConstraint
from salesdesk.database import Base
from salesdesk.models.document import DocumentMixin


class SaleStatus(str, enum.Enum):
    """Sale status enum."""
    PENDING = 'pending'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PaymentMethod(str, enum.Enum):
    """How the client pays."""
    CASH = 'cash'
    TRANSFER = 'transfer'
    CREDIT = 'credit'


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH.value: 'Efectivo',
    PaymentMethod.TRANSFER.value: 'Transferencia',
    PaymentMethod.CREDIT.value: 'Fiado',
}


class Sale(DocumentMixin, Base):
    """Sale (pedido / ticket de venta)."""

    __tablename__ = 'sale'
    __table_args__ = (
        UniqueConstraint('owner_id', 'order_number', name='uq_sale_owner_order_number'),
    )

    kind = 'sale'

    status = Column(String(20), nullable=False, default=SaleStatus.PENDING.value)
    order_number = Column(String(32), nullable=False)
    quote_id = Column(String(32), ForeignKey('quote.id'), nullable=True, unique=True)

    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    amount_paid = Column(Numeric(14, 2), nullable=True)
    change_amount = Column(Numeric(14, 2), nullable=True)
    advance = Column(Numeric(14, 2), nullable=True)
    bank_name = Column(String(120), nullable=True)
    bank_account_number = Column(String(64), nullable=True)
    bank_account_holder = Column(String(200), nullable=True)
    delivery_date = Column(Date, nullable=True)

    def __repr__(self):
        return f"<Sale(id={self.id}, order='{self.order_number}', status='{self.status}', total={self.total})>"

    @property
    def display_number(self):
        return self.order_number

    @property
    def payment_method_label(self):
        return PAYMENT_METHOD_LABELS.get(self.payment_method, self.payment_method)

    @property
    def balance(self):
        """Remaining amount owed on a credit sale."""
        if self.payment_method != PaymentMethod.CREDIT.value:
            return None
        return (self.total or 0) - (self.advance or 0)

    @property
    def is_deletable(self):
        return self.status == SaleStatus.CANCELLED.value

    def days_until_delivery(self, today=None):
        if not self.delivery_date:
            return None
        return (self.delivery_date - (today or date.today())).days

    @property
    def delivery_urgent(self):
        """Delivery is today or tomorrow."""
        days = self.days_until_delivery()
        return days is not None and 0 <= days <= 1

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'order_number': self.order_number,
            'quote_id': self.quote_id,
            'payment_method': self.payment_method,
            'payment_method_label': self.payment_method_label,
            'amount_paid': str(self.amount_paid) if self.amount_paid is not None else None,
            'change': str(self.change_amount) if self.change_amount is not None else None,
            'advance': str(self.advance) if self.advance is not None else None,
            'balance': str(self.balance) if self.balance is not None else None,
            'bank': {
                'bank': self.bank_name,
                'account_number': self.bank_account_number,
                'account_holder': self.bank_account_holder,
            },
            'delivery_date': self.delivery_date.isoformat() if self.delivery_date else None,
            'delivery_urgent': self.delivery_urgent,
        })
        return data
