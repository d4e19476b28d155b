"""
PDF rendering for quotes and sales.

Layout is computed first as a list of pages of draw operations
(positions in millimetres from the top-left corner of an A4 page), then
painted onto a reportlab canvas. Keeping the two steps apart lets the
pagination be inspected without parsing PDF bytes.
"""
import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Any, Callable, List, Optional

import requests
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from werkzeug.utils import secure_filename

from salesdesk.exceptions import RenderError
from salesdesk.models.document import ClientSnapshot
from salesdesk.models.sale import PaymentMethod, PAYMENT_METHOD_LABELS
from salesdesk.services.pricing_service import (
    compute_line_item_total, compute_subtotal, compute_credit_balance,
    invert_document_total, TAX_RATE,
)
from salesdesk.utils.formatters import money, quantity, dimensions, unit_label, date_short, truncate

logger = logging.getLogger(__name__)

# Page geometry (mm)
PAGE_WIDTH = 210
PAGE_HEIGHT = 297
LEFT_MARGIN = 20
RIGHT_EDGE = 200
TOP_MARGIN = 20
PAGE_BOTTOM = 270
FOOTER_Y = 280

LOGO_X = 10
LOGO_Y = 15
LOGO_SIZE = 25
COMPANY_X_WITH_LOGO = 40
TITLE_Y = 50

ROW_HEIGHT = 8
OBSERVATION_HEIGHT = 5
TOTALS_LINE_HEIGHT = 7
NAME_MAX_LENGTH = 30
OBSERVATION_MAX_LENGTH = 90

# (header, x, align); amounts are right-aligned on the column's right edge
ITEM_COLUMNS = (
    ('Producto', 20, 'left'),
    ('Tipo', 70, 'left'),
    ('Medidas', 88, 'left'),
    ('Cant.', 128, 'right'),
    ('Precio', 162, 'right'),
    ('Total', 200, 'right'),
)

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'
FONT_ITALIC = 'Helvetica-Oblique'

NO_ITEMS_TEXT = 'No hay productos en este documento'
CLOSING_TEXT = '¡Gracias por su compra!'
MISSING = 'N/A'
NOT_SPECIFIED = 'No especificado'

TITLES = {
    'quote': 'COTIZACIÓN',
    'sale': 'TICKET DE VENTA',
}


class LogoLoadError(Exception):
    """The company logo could not be downloaded or decoded."""


@dataclass
class DrawOp:
    """One primitive placed on a page."""
    kind: str  # text | line | image
    x: float
    y: float
    text: str = ''
    font: str = FONT
    size: float = 10
    align: str = 'left'
    x2: float = 0
    image: Any = None
    width: float = 0
    height: float = 0
    tag: str = ''
    index: Optional[int] = None


@dataclass
class DocumentLayout:
    """Pages of draw operations plus the top-down cursor."""
    pages: List[List[DrawOp]] = field(default_factory=lambda: [[]])
    cursor: float = TOP_MARGIN

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def new_page(self):
        self.pages.append([])
        self.cursor = TOP_MARGIN

    def ensure_space(self, height: float):
        """Start a new page when ``height`` does not fit above the page bottom."""
        if self.cursor + height > PAGE_BOTTOM:
            self.new_page()

    def text(self, x, y, text, size=10, font=FONT, align='left', tag='', index=None):
        self.pages[-1].append(DrawOp('text', x, y, text=str(text), font=font, size=size,
                                     align=align, tag=tag, index=index))

    def line(self, y, x1=LEFT_MARGIN, x2=RIGHT_EDGE, tag=''):
        self.pages[-1].append(DrawOp('line', x1, y, x2=x2, tag=tag))

    def image(self, image, x, y, width, height, tag=''):
        self.pages[-1].append(DrawOp('image', x, y, image=image, width=width, height=height, tag=tag))

    def find(self, tag):
        """(page_number, op) pairs for every op carrying ``tag``; pages start at 1."""
        return [
            (number, op)
            for number, page in enumerate(self.pages, start=1)
            for op in page
            if op.tag == tag
        ]


@dataclass
class RenderedDocument:
    """A finished PDF."""
    content: bytes
    filename: str
    page_count: int
    is_error: bool = False
    error_message: Optional[str] = None
    mimetype: str = 'application/pdf'

    def as_buffer(self) -> BytesIO:
        buffer = BytesIO(self.content)
        buffer.seek(0)
        return buffer

    def data_uri(self) -> str:
        """Inline form for previews."""
        encoded = base64.b64encode(self.content).decode('ascii')
        return f"data:{self.mimetype};base64,{encoded}"


def fetch_logo(url: str, timeout: float = 5) -> ImageReader:
    """Download and decode a logo; raises LogoLoadError on any failure."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        reader = ImageReader(BytesIO(response.content))
        reader.getSize()
        return reader
    except requests.RequestException as e:
        raise LogoLoadError(f"No se pudo descargar el logo: {e}") from e
    except (OSError, ValueError) as e:
        raise LogoLoadError(f"El logo no es una imagen válida: {e}") from e


def resolve_logo(url: Optional[str], loader: Callable[[str], Any] = fetch_logo):
    """Load the logo, collapsing a LogoLoadError to None."""
    if not url:
        return None
    try:
        return loader(url)
    except LogoLoadError as e:
        logger.warning(f"[PDF] Logo omitted: {e}")
        return None


class DocumentRenderer:
    """Lays out one quote or sale."""

    def __init__(self, document, settings, client=None, logo=None):
        self.document = document
        self.settings = settings
        self.client = client or document.client_snapshot
        self.logo = logo
        self.currency = getattr(settings, 'currency', None) or 'MXN'
        self.items = document.line_items
        self.layout = DocumentLayout()

    @property
    def is_sale(self):
        return self.document.kind == 'sale'

    def _money(self, value):
        return money(value, self.currency)

    def build(self) -> DocumentLayout:
        self._header()
        self._title_and_metadata()
        self._client_block()
        self._items_table()
        self._totals()
        if self.is_sale:
            self._payment_footer()
        self._closing()
        return self.layout

    def _header(self):
        layout = self.layout
        company_x = LEFT_MARGIN
        if self.logo is not None:
            layout.image(self.logo, LOGO_X, LOGO_Y, LOGO_SIZE, LOGO_SIZE, tag='logo')
            company_x = COMPANY_X_WITH_LOGO

        name = getattr(self.settings, 'company_name', None)
        if not name:
            return
        y = LOGO_Y + 3
        layout.text(company_x, y, name, size=13, font=FONT_BOLD, tag='company')
        if self.settings.company_address:
            y += 6
            layout.text(company_x, y, f"Dirección: {self.settings.company_address}", size=9, tag='company')
        if self.settings.company_phone:
            y += 5
            layout.text(company_x, y, f"Teléfono: {self.settings.company_phone}", size=9, tag='company')

    def _title_and_metadata(self):
        layout = self.layout
        layout.text(PAGE_WIDTH / 2, TITLE_Y, TITLES[self.document.kind], size=20, font=FONT_BOLD,
                    align='center', tag='title')
        created = self.document.created_at or datetime.now()
        layout.text(LEFT_MARGIN, TITLE_Y + 12, f"Fecha: {date_short(created)}", tag='metadata')
        label = 'Pedido #' if self.is_sale else 'Cotización #'
        number = self.document.display_number or 'BORRADOR'
        layout.text(LEFT_MARGIN, TITLE_Y + 19, f"{label}: {number}", tag='metadata')
        layout.cursor = TITLE_Y + 32

    def _client_block(self):
        layout = self.layout
        client = self.client
        layout.text(LEFT_MARGIN, layout.cursor, 'Cliente:', size=12, font=FONT_BOLD, tag='client')
        rows = [
            f"Nombre: {client.name or MISSING}",
            f"Email: {client.email or MISSING}",
            f"Teléfono: {client.phone or MISSING}",
            f"Dirección: {getattr(client, 'address', None) or NOT_SPECIFIED}",
        ]
        if self.is_sale and self.document.delivery_date:
            rows.append(f"Fecha de entrega: {date_short(self.document.delivery_date)}")
        for row in rows:
            layout.cursor += 7
            layout.text(LEFT_MARGIN, layout.cursor, row, tag='client')
        layout.cursor += 15

    def _items_table(self):
        layout = self.layout
        layout.ensure_space(10 + 5 + ROW_HEIGHT)
        layout.text(LEFT_MARGIN, layout.cursor, 'Productos:', size=12, font=FONT_BOLD, tag='items-heading')
        layout.cursor += 10
        for header, x, align in ITEM_COLUMNS:
            layout.text(x, layout.cursor, header, size=9, font=FONT_BOLD, align=align, tag='items-header')
        layout.cursor += 3
        layout.line(layout.cursor, tag='items-header')
        layout.cursor += 2

        if not self.items:
            layout.text(LEFT_MARGIN, layout.cursor + 5, NO_ITEMS_TEXT, size=9, font=FONT_ITALIC, tag='no-items')
            layout.cursor += ROW_HEIGHT
            return

        for index, item in enumerate(self.items):
            observation = truncate(item.observations, OBSERVATION_MAX_LENGTH)
            # Reserve the observation with its row so the pair stays on one page
            layout.ensure_space(ROW_HEIGHT + (OBSERVATION_HEIGHT if observation else 0))
            self._item_row(index, item)
            if observation:
                layout.ensure_space(OBSERVATION_HEIGHT)
                layout.text(LEFT_MARGIN + 3, layout.cursor + 3.5, f"Obs: {observation}", size=8,
                            font=FONT_ITALIC, tag='item-observation', index=index)
                layout.cursor += OBSERVATION_HEIGHT

    def _item_row(self, index, item):
        layout = self.layout
        y = layout.cursor + 5
        unit_type = item.unit_type.value
        values = (
            truncate(item.product_name, NAME_MAX_LENGTH) or MISSING,
            unit_label(unit_type),
            dimensions(unit_type, item.length, item.width),
            quantity(item.quantity),
            self._money(item.unit_price),
            self._money(compute_line_item_total(item)),
        )
        for (_, x, align), value in zip(ITEM_COLUMNS, values):
            layout.text(x, y, value, size=9, align=align, tag='item-row', index=index)
        layout.cursor += ROW_HEIGHT

    def _totals(self):
        layout = self.layout
        document = self.document
        discount = document.discount_percent or 0
        breakdown = invert_document_total(
            document.total, discount, document.include_tax,
            subtotal_hint=compute_subtotal(self.items),
        )

        lines = [('Subtotal:', self._money(breakdown.subtotal), FONT, 10)]
        if discount > 0:
            lines.append((f"Descuento ({quantity(discount)}%):", f"-{self._money(breakdown.discount_amount)}", FONT, 10))
        if document.include_tax:
            lines.append((f"IVA ({quantity(TAX_RATE * 100)}%):", self._money(breakdown.tax_amount), FONT, 10))
        lines.append(('Total:', self._money(document.total), FONT_BOLD, 12))

        layout.ensure_space(5 + TOTALS_LINE_HEIGHT * len(lines) + 3)
        layout.cursor += 2
        layout.line(layout.cursor, tag='totals')
        layout.cursor += 3
        for label, value, font, size in lines:
            layout.cursor += TOTALS_LINE_HEIGHT
            layout.text(130, layout.cursor, label, size=size, font=font, tag='totals')
            layout.text(RIGHT_EDGE, layout.cursor, value, size=size, font=font, align='right', tag='totals')
        layout.cursor += 3

    def _payment_lines(self):
        sale = self.document
        method = sale.payment_method
        lines = [f"Método: {PAYMENT_METHOD_LABELS.get(method, method)}"]
        if method == PaymentMethod.CASH.value:
            lines.append(f"Monto Pagado: {self._money(sale.amount_paid)}")
            lines.append(f"Cambio: {self._money(sale.change_amount)}")
        elif method == PaymentMethod.CREDIT.value:
            lines.append(f"Anticipo: {self._money(sale.advance)}")
            lines.append(f"Saldo Pendiente: {self._money(compute_credit_balance(sale.total, sale.advance))}")
        elif method == PaymentMethod.TRANSFER.value:
            settings = self.settings
            bank = sale.bank_name or getattr(settings, 'bank_name', None)
            account = sale.bank_account_number or getattr(settings, 'bank_account_number', None)
            holder = sale.bank_account_holder or getattr(settings, 'bank_account_holder', None)
            lines.append(f"Banco: {bank or NOT_SPECIFIED}")
            lines.append(f"Cuenta: {account or NOT_SPECIFIED}")
            lines.append(f"Titular: {holder or NOT_SPECIFIED}")
        return lines

    def _payment_footer(self):
        layout = self.layout
        lines = self._payment_lines()
        layout.ensure_space(12 + 7 * len(lines))
        layout.cursor += 12
        layout.text(LEFT_MARGIN, layout.cursor, 'Información de Pago:', font=FONT_BOLD, tag='payment')
        for line in lines:
            layout.cursor += 7
            layout.text(LEFT_MARGIN, layout.cursor, line, tag='payment')

    def _closing(self):
        self.layout.text(PAGE_WIDTH / 2, FOOTER_Y, CLOSING_TEXT, font=FONT_ITALIC, align='center', tag='closing')


def build_layout(document, settings, client=None, logo=None) -> DocumentLayout:
    return DocumentRenderer(document, settings, client=client, logo=logo).build()


def build_error_layout(message: str) -> DocumentLayout:
    """A one-page document saying that rendering failed and why."""
    layout = DocumentLayout()
    layout.text(PAGE_WIDTH / 2, TITLE_Y, 'ERROR AL GENERAR EL DOCUMENTO', size=16, font=FONT_BOLD,
                align='center', tag='error-title')
    layout.cursor = TITLE_Y + 15
    layout.text(LEFT_MARGIN, layout.cursor, 'Ocurrió un error al generar el documento:', tag='error')
    width = (RIGHT_EDGE - LEFT_MARGIN) * mm
    for line in simpleSplit(message or 'Error desconocido', FONT, 10, width):
        layout.cursor += 6
        if layout.cursor > PAGE_BOTTOM:
            break
        layout.text(LEFT_MARGIN, layout.cursor, line, tag='error-message')
    return layout


def paint_layout(layout: DocumentLayout, title: str = '') -> bytes:
    """Paint a computed layout onto a reportlab canvas and return the PDF bytes."""
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)
    page_height = A4[1]

    for page in layout.pages:
        for op in page:
            if op.kind == 'text':
                pdf.setFont(op.font, op.size)
                x, y = op.x * mm, page_height - op.y * mm
                if op.align == 'center':
                    pdf.drawCentredString(x, y, op.text)
                elif op.align == 'right':
                    pdf.drawRightString(x, y, op.text)
                else:
                    pdf.drawString(x, y, op.text)
            elif op.kind == 'line':
                pdf.setLineWidth(0.3)
                pdf.line(op.x * mm, page_height - op.y * mm, op.x2 * mm, page_height - op.y * mm)
            elif op.kind == 'image':
                pdf.drawImage(op.image, op.x * mm, page_height - (op.y + op.height) * mm,
                              width=op.width * mm, height=op.height * mm,
                              preserveAspectRatio=True, mask='auto')
        pdf.showPage()

    pdf.save()
    return buffer.getvalue()


def document_filename(document, client=None) -> str:
    """Cotizacion_<client>_<dd-mm-yyyy>.pdf or Pedido_<order>.pdf"""
    if document.kind == 'sale':
        name = f"Pedido_{document.order_number or 'borrador'}.pdf"
    else:
        client = client or document.client_snapshot
        created = document.created_at or datetime.now()
        name = f"Cotizacion_{client.name or 'cliente'}_{created.strftime('%d-%m-%Y')}.pdf"
    return secure_filename(name) or 'documento.pdf'


def render_error_document(error: Exception, filename: str = 'documento.pdf') -> RenderedDocument:
    message = getattr(error, 'message', None) or str(error)
    try:
        layout = build_error_layout(message)
        content = paint_layout(layout, title='Error')
    except Exception as e:
        raise RenderError(f"No se pudo generar el documento de error: {e}") from e
    return RenderedDocument(content=content, filename=filename, page_count=layout.page_count,
                            is_error=True, error_message=message)


def render_document(document, settings, client: Optional[ClientSnapshot] = None,
                    logo_loader: Callable[[str], Any] = fetch_logo) -> RenderedDocument:
    """
    Render a quote or sale to PDF.

    Never raises for layout problems: a failure produces a document that
    states the error instead, flagged with ``is_error``.
    """
    filename = 'documento.pdf'
    try:
        filename = document_filename(document, client)
        logo = resolve_logo(getattr(settings, 'logo_url', None), logo_loader)
        layout = build_layout(document, settings, client=client, logo=logo)
        content = paint_layout(layout, title=TITLES.get(document.kind, ''))
        logger.info(f"[PDF] Rendered {document.kind} {document.id} ({layout.page_count} pages)")
        return RenderedDocument(content=content, filename=filename, page_count=layout.page_count)
    except Exception as e:
        logger.error(f"[PDF] Error rendering {getattr(document, 'kind', 'document')} "
                     f"{getattr(document, 'id', None)}: {e}", exc_info=True)
        return render_error_document(RenderError(str(e)), filename)
