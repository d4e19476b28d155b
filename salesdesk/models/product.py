"""Product model."""
import enum
from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from salesdesk.database import Base, generate_id
from salesdesk.models.line_item import UnitType


class ProductCategory(str, enum.Enum):
    """Catalog entries are either goods or processes (labour/services)."""
    PRODUCT = 'product'
    PROCESS = 'process'


class Product(Base):
    """Catalog product or process, priced per m² (area) or per linear metre."""

    __tablename__ = 'product'

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(32), ForeignKey('app_user.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False, default=ProductCategory.PRODUCT.value)
    unit_type = Column(String(20), nullable=False, default=UnitType.AREA.value)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'unit_type': self.unit_type,
            'unit_price': str(self.unit_price),
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', unit_type='{self.unit_type}')>"
