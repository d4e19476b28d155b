"""Client model."""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from salesdesk.database import Base, generate_id


class Client(Base):
    """Client (cliente) owned by one user."""

    __tablename__ = 'client'

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(32), ForeignKey('app_user.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
        }

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
