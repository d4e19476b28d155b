"""
Sharing dispatcher for rendered documents.

download  -> the caller streams the bytes back (no network call)
email     -> upload, then a mailto: link carrying the public URL
whatsapp  -> upload, then a wa.me link carrying the public URL

Opening the returned link is left to the client. An upload failure
raises ShareError; there is no fallback to download.
"""
import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from salesdesk.exceptions import ShareError, ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
DOWNLOAD_LINE = "Puedes descargar el documento aquí: {url}"


class ShareMethod(str, enum.Enum):
    DOWNLOAD = 'download'
    EMAIL = 'email'
    WHATSAPP = 'whatsapp'


@dataclass
class ShareResult:
    method: str
    filename: str
    url: Optional[str] = None
    link: Optional[str] = None

    def to_dict(self):
        return {'method': self.method, 'filename': self.filename, 'url': self.url, 'link': self.link}


def _message_with_url(message: str, url: str) -> str:
    line = DOWNLOAD_LINE.format(url=url)
    return f"{message}\n\n{line}" if message else line


def build_mailto_link(email: str, subject: str, message: str, url: str) -> str:
    body = _message_with_url(message, url)
    return f"mailto:{email}?subject={quote(subject or '')}&body={quote(body)}"


def clean_phone(phone: str) -> str:
    """Digits only, as wa.me expects (country code included by the caller)."""
    return re.sub(r'\D', '', phone or '')


def build_whatsapp_link(phone: str, message: str, url: str) -> str:
    text = _message_with_url(message, url)
    return f"https://wa.me/{clean_phone(phone)}?text={quote(text)}"


def upload_rendered(rendered, owner_id: str, document_id: str, storage_factory) -> str:
    """
    Upload a rendered PDF and return its public URL, or raise ShareError.

    Keys are scoped by document id; quote filenames repeat for a client
    on the same day.
    """
    object_name = f"pdfs/{owner_id}/{document_id}/{rendered.filename}"
    try:
        storage = storage_factory()
        return storage.upload_bytes(rendered.content, object_name, rendered.mimetype)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"[SHARE] Upload failed for '{object_name}': {e}")
        raise ShareError("No se pudo subir el documento para compartirlo. Intenta nuevamente.") from e


def share_document(rendered, method, owner_id: str, document_id: str, storage_factory, target: str = '',
                   message: str = '', subject: str = '') -> ShareResult:
    """
    Route a rendered document to download, email or WhatsApp.

    ``storage_factory`` returns a StorageService; it is only called for
    methods that need a public URL.
    """
    try:
        method = ShareMethod(method)
    except ValueError:
        raise ValidationError("Método de envío inválido. Usa download, email o whatsapp.")

    if rendered.is_error:
        raise ShareError(f"El documento no se pudo generar: {rendered.error_message}")

    if method == ShareMethod.DOWNLOAD:
        return ShareResult(method=method.value, filename=rendered.filename)

    target = (target or '').strip()
    if method == ShareMethod.EMAIL and not re.match(EMAIL_PATTERN, target):
        raise ValidationError("Email de destino inválido")
    if method == ShareMethod.WHATSAPP and not clean_phone(target):
        raise ValidationError("Teléfono de destino inválido")

    url = upload_rendered(rendered, owner_id, document_id, storage_factory)
    if method == ShareMethod.EMAIL:
        link = build_mailto_link(target, subject, message, url)
    else:
        link = build_whatsapp_link(target, message, url)

    logger.info(f"[SHARE] {rendered.filename} shared via {method.value}")
    return ShareResult(method=method.value, filename=rendered.filename, url=url, link=link)
