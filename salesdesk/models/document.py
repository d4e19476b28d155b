"""Columns and behaviour shared by quotes and sales."""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import Column, String, Text, Boolean, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from salesdesk.database import generate_id
from salesdesk.models.line_item import LineItem


@dataclass
class ClientSnapshot:
    """Client data copied into a document when it is saved."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_client(cls, client):
        return cls(name=client.name, email=client.email, phone=client.phone, address=client.address)

    def to_dict(self):
        return {'name': self.name, 'email': self.email, 'phone': self.phone, 'address': self.address}


class DocumentMixin:
    """
    Persisted quote or sale.

    ``items`` holds the line-item snapshots as JSON and ``total`` is the
    amount computed by the pricing engine at save time; it is never
    re-derived from the items when rendering.
    """

    id = Column(String(32), primary_key=True, default=generate_id)
    client_name = Column(String(200), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    client_address = Column(Text, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    include_tax = Column(Boolean, nullable=False, default=True)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @declared_attr
    def owner_id(cls):
        return Column(String(32), ForeignKey('app_user.id'), nullable=False, index=True)

    @declared_attr
    def client_id(cls):
        return Column(String(32), ForeignKey('client.id', ondelete='SET NULL'), nullable=True)

    @property
    def line_items(self) -> List[LineItem]:
        return [LineItem.from_dict(data) for data in (self.items or [])]

    @line_items.setter
    def line_items(self, items: List[LineItem]):
        # Reassign the whole list so the JSON column is flagged as modified
        self.items = [item.to_dict() for item in items]

    @property
    def client_snapshot(self) -> ClientSnapshot:
        return ClientSnapshot(
            name=self.client_name,
            email=self.client_email,
            phone=self.client_phone,
            address=self.client_address,
        )

    @client_snapshot.setter
    def client_snapshot(self, snapshot: ClientSnapshot):
        self.client_name = snapshot.name
        self.client_email = snapshot.email
        self.client_phone = snapshot.phone
        self.client_address = snapshot.address

    def _base_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'client_id': self.client_id,
            'client': self.client_snapshot.to_dict(),
            'items': list(self.items or []),
            'include_tax': self.include_tax,
            'discount_percent': str(self.discount_percent),
            'total': str(self.total),
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
