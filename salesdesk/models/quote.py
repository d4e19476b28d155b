"""Quote model for cotizaciones."""
import enum
from sqlalchemy import Column, String, DateTime
from salesdesk.database import Base
from salesdesk.models.document import DocumentMixin


class QuoteStatus(str, enum.Enum):
    """Quote status enum."""
    PENDING = 'pending'
    SENT = 'sent'
    CONVERTED = 'converted'


class Quote(DocumentMixin, Base):
    """
    Quote (Cotización).

    A quote can be converted to a sale exactly once, at which point its
    status becomes CONVERTED and sale_id is populated. Quotes are never
    deleted.
    """

    __tablename__ = 'quote'

    kind = 'quote'

    status = Column(String(20), nullable=False, default=QuoteStatus.PENDING.value)
    sale_id = Column(String(32), nullable=True, unique=True)
    converted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Quote(id={self.id}, status='{self.status}', total={self.total})>"

    @property
    def short_id(self):
        """Short identifier printed on the PDF."""
        return (self.id or '')[:8].upper()

    @property
    def is_editable(self):
        return self.status in (QuoteStatus.PENDING.value, QuoteStatus.SENT.value)

    @property
    def is_convertible(self):
        """Check if quote can be converted to sale."""
        return self.is_editable and self.sale_id is None

    @property
    def display_number(self):
        return self.short_id

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'short_id': self.short_id,
            'sale_id': self.sale_id,
            'converted_at': self.converted_at.isoformat() if self.converted_at else None,
        })
        return data
