"""UserSettings model - company, bank and locale preferences per user."""
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from salesdesk.database import Base


class Language(str, enum.Enum):
    ES = 'es'
    EN = 'en'


class Currency(str, enum.Enum):
    MXN = 'MXN'
    USD = 'USD'


class UserSettings(Base):
    """
    One row per user.

    Read by the pricing and rendering code as configuration; only the
    settings service writes it.
    """

    __tablename__ = 'user_settings'

    user_id = Column(String(32), ForeignKey('app_user.id'), primary_key=True)
    company_name = Column(String(200), nullable=True)
    company_address = Column(Text, nullable=True)
    company_phone = Column(String(50), nullable=True)
    logo_url = Column(String(500), nullable=True)
    logo_key = Column(String(255), nullable=True)
    bank_name = Column(String(120), nullable=True)
    bank_account_number = Column(String(64), nullable=True)
    bank_account_holder = Column(String(200), nullable=True)
    language = Column(String(5), nullable=False, default=Language.ES.value)
    currency = Column(String(5), nullable=False, default=Currency.MXN.value)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'company': {
                'name': self.company_name,
                'address': self.company_address,
                'phone': self.company_phone,
            },
            'logo_url': self.logo_url,
            'bank': {
                'bank': self.bank_name,
                'account_number': self.bank_account_number,
                'account_holder': self.bank_account_holder,
            },
            'language': self.language,
            'currency': self.currency,
        }

    def __repr__(self):
        return f"<UserSettings(user_id={self.user_id}, company='{self.company_name}')>"
