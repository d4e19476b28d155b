"""Models package - exports all SQLAlchemy models."""
from salesdesk.models.app_user import AppUser
from salesdesk.models.client import Client
from salesdesk.models.product import Product, ProductCategory
from salesdesk.models.line_item import LineItem, UnitType
from salesdesk.models.document import ClientSnapshot
from salesdesk.models.quote import Quote, QuoteStatus
from salesdesk.models.sale import Sale, SaleStatus, PaymentMethod, PAYMENT_METHOD_LABELS
from salesdesk.models.user_settings import UserSettings, Language, Currency

__all__ = [
    'AppUser', 'Client', 'Product', 'ProductCategory',
    'LineItem', 'UnitType', 'ClientSnapshot',
    'Quote', 'QuoteStatus',
    'Sale', 'SaleStatus', 'PaymentMethod', 'PAYMENT_METHOD_LABELS',
    'UserSettings', 'Language', 'Currency',
]
