"""
Quote/sale drafts kept in the user's session while the form is filled in.

A draft accumulates the client selection, line items and options, shows
live totals, and on submit is handed to the quote or sale service.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, MutableMapping, Optional

from salesdesk.exceptions import ValidationError, NotFoundError
from salesdesk.models import LineItem, PaymentMethod
from salesdesk.services import quote_service, sale_service
from salesdesk.services.catalog_service import parse_dimension
from salesdesk.services.pricing_service import (
    compute_line_item_total, compute_subtotal, compute_document_total, validate_discount,
    compute_change, compute_credit_balance, round_money,
)

DRAFT_KINDS = ('quote', 'sale')
NUMERIC_FIELDS = {'length': 'El largo', 'width': 'El ancho', 'quantity': 'La cantidad'}
SALE_OPTION_FIELDS = ('payment_method', 'amount_paid', 'advance', 'delivery_date', 'bank')


def _session_key(kind: str) -> str:
    return f"draft_{kind}"


@dataclass
class DocumentDraft:
    kind: str
    client_id: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    include_tax: bool = True
    discount_percent: Decimal = Decimal('0')
    document_id: Optional[str] = None
    payment: Dict[str, Any] = field(default_factory=lambda: {'payment_method': PaymentMethod.CASH.value})

    # --- session round trip -------------------------------------------------

    @classmethod
    def from_dict(cls, kind: str, data: Optional[Dict[str, Any]]) -> 'DocumentDraft':
        if not data:
            return cls(kind=kind)
        return cls(
            kind=kind,
            client_id=data.get('client_id'),
            items=[LineItem.from_dict(item) for item in data.get('items', [])],
            include_tax=bool(data.get('include_tax', True)),
            discount_percent=Decimal(str(data.get('discount_percent', '0'))),
            document_id=data.get('document_id'),
            payment=dict(data.get('payment') or {'payment_method': PaymentMethod.CASH.value}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'client_id': self.client_id,
            'items': [item.to_dict() for item in self.items],
            'include_tax': self.include_tax,
            'discount_percent': str(self.discount_percent),
            'document_id': self.document_id,
            'payment': self.payment,
        }

    @classmethod
    def from_document(cls, document) -> 'DocumentDraft':
        """Start editing a persisted quote or sale."""
        draft = cls(
            kind=document.kind,
            client_id=document.client_id,
            items=document.line_items,
            include_tax=document.include_tax,
            discount_percent=Decimal(document.discount_percent or 0),
            document_id=document.id,
        )
        if document.kind == 'sale':
            draft.payment = {
                'payment_method': document.payment_method,
                'amount_paid': str(document.amount_paid) if document.amount_paid is not None else None,
                'advance': str(document.advance) if document.advance is not None else None,
                'delivery_date': document.delivery_date.isoformat() if document.delivery_date else None,
                'bank': {
                    'bank': document.bank_name,
                    'account_number': document.bank_account_number,
                    'account_holder': document.bank_account_holder,
                },
            }
        return draft

    # --- form operations ----------------------------------------------------

    def select_client(self, client_id: str):
        self.client_id = client_id or None

    def add_item(self, product) -> LineItem:
        """New line from a product; length, width and quantity start at 1."""
        item = LineItem.from_product(product)
        self.items.append(item)
        return item

    def _item_at(self, index: int) -> LineItem:
        if index < 0 or index >= len(self.items):
            raise NotFoundError("Producto no encontrado en el borrador")
        return self.items[index]

    def update_item(self, index: int, field_name: str, value):
        item = self._item_at(index)
        if field_name in NUMERIC_FIELDS:
            setattr(item, field_name, parse_dimension(value, NUMERIC_FIELDS[field_name]))
        elif field_name == 'observations':
            item.observations = (value or '').strip()
        else:
            raise ValidationError(f"Campo no editable: {field_name}")
        return item

    def remove_item(self, index: int):
        self._item_at(index)
        del self.items[index]

    def set_options(self, include_tax=None, discount_percent=None, **payment):
        if include_tax is not None:
            self.include_tax = str(include_tax).lower() in ('1', 'true', 'on', 'yes')
        if discount_percent is not None:
            self.discount_percent = validate_discount(discount_percent)
        if self.kind == 'sale':
            for key in SALE_OPTION_FIELDS:
                if key in payment:
                    self.payment[key] = payment[key]

    # --- totals -------------------------------------------------------------

    @property
    def total(self) -> Decimal:
        return compute_document_total(self.items, self.discount_percent, self.include_tax)

    def summary(self) -> Dict[str, Any]:
        """
        Live view of the draft with per-line and document totals.

        Amounts that cannot be priced show as None plus ``totals_error``,
        so the form can still be corrected; submit rejects them.
        """
        data = {
            'kind': self.kind,
            'document_id': self.document_id,
            'client_id': self.client_id,
            'include_tax': self.include_tax,
            'discount_percent': str(self.discount_percent),
            'items': [],
            'subtotal': None,
            'total': None,
        }
        try:
            for item in self.items:
                data['items'].append(dict(item.to_dict(), total=str(round_money(compute_line_item_total(item)))))
            data['subtotal'] = str(round_money(compute_subtotal(self.items)))
            total = self.total
            data['total'] = str(total)
        except ValidationError as e:
            data['items'] = [dict(item.to_dict(), total=None) for item in self.items]
            data['totals_error'] = e.message
            total = None

        if self.kind == 'sale':
            data['payment'] = dict(self.payment)
            method = self.payment.get('payment_method') if total is not None else None
            try:
                if method == PaymentMethod.CASH.value and self.payment.get('amount_paid') not in (None, ''):
                    data['payment']['change'] = str(compute_change(total, self.payment['amount_paid']))
                elif method == PaymentMethod.CREDIT.value and self.payment.get('advance') not in (None, ''):
                    data['payment']['balance'] = str(compute_credit_balance(total, self.payment['advance']))
            except (ValueError, ValidationError):
                # Half-typed amount; submit reports the validation error
                data['payment']['amount_invalid'] = True
        return data

    # --- submit -------------------------------------------------------------

    def validate(self):
        if not self.client_id:
            raise ValidationError("Por favor selecciona un cliente")
        if not self.items:
            raise ValidationError("Por favor agrega al menos un producto")

    def submit(self, session, owner_id: str):
        """Persist the draft as a new or edited quote/sale and return it."""
        self.validate()
        common = dict(include_tax=self.include_tax, discount_percent=self.discount_percent)
        if self.kind == 'quote':
            if self.document_id:
                return quote_service.update_quote(session, owner_id, self.document_id,
                                                  self.client_id, self.items, **common)
            return quote_service.create_quote(session, owner_id, self.client_id, self.items, **common)

        payment = {key: self.payment.get(key) for key in SALE_OPTION_FIELDS}
        if self.document_id:
            return sale_service.update_sale(session, owner_id, self.document_id,
                                            self.client_id, self.items, **common, **payment)
        return sale_service.create_sale(session, owner_id, self.client_id, self.items, **common, **payment)


def _check_kind(kind: str):
    if kind not in DRAFT_KINDS:
        raise NotFoundError("Tipo de documento inválido")


def load_draft(store: MutableMapping, kind: str) -> DocumentDraft:
    _check_kind(kind)
    return DocumentDraft.from_dict(kind, store.get(_session_key(kind)))


def save_draft(store: MutableMapping, draft: DocumentDraft):
    store[_session_key(draft.kind)] = draft.to_dict()


def clear_draft(store: MutableMapping, kind: str):
    _check_kind(kind)
    store.pop(_session_key(kind), None)
