"""Unit tests for the share dispatcher."""
from urllib.parse import unquote

import pytest
from botocore.exceptions import EndpointConnectionError

from salesdesk.exceptions import ShareError, ValidationError
from salesdesk.services.pdf_service import RenderedDocument
from salesdesk.services.share_service import (
    share_document, build_whatsapp_link, build_mailto_link, clean_phone,
)


class FakeStorage:
    def __init__(self, fail=False):
        self.fail = fail
        self.uploads = []

    def upload_bytes(self, data, object_name, content_type):
        if self.fail:
            raise EndpointConnectionError(endpoint_url='http://minio:9000')
        self.uploads.append((object_name, content_type, data))
        return f"https://files.example.com/uploads/{object_name}"


@pytest.fixture
def rendered():
    return RenderedDocument(content=b'%PDF-1.4 test', filename='Pedido_PED-12345678.pdf', page_count=1)


@pytest.fixture
def storage():
    return FakeStorage()


class TestLinks:

    def test_clean_phone(self):
        assert clean_phone('+52 (55) 1234-5678') == '525512345678'

    def test_whatsapp_link(self):
        link = build_whatsapp_link('+52 55 1234 5678', 'Hola', 'https://x/doc.pdf')
        assert link.startswith('https://wa.me/525512345678?text=')
        text = unquote(link.split('?text=')[1])
        assert text == 'Hola\n\nPuedes descargar el documento aquí: https://x/doc.pdf'

    def test_mailto_without_message(self):
        link = build_mailto_link('ana@example.com', 'Cotización', '', 'https://x/doc.pdf')
        assert link.startswith('mailto:ana@example.com?subject=')
        assert unquote(link.split('&body=')[1]) == 'Puedes descargar el documento aquí: https://x/doc.pdf'


class TestShareDocument:

    def test_download_does_not_upload(self, rendered, storage):
        result = share_document(rendered, 'download', 'u1', 'q1', lambda: storage)
        assert result.method == 'download'
        assert result.url is None
        assert storage.uploads == []

    def test_whatsapp_uploads_then_links(self, rendered, storage):
        result = share_document(rendered, 'whatsapp', 'u1', 'q1', lambda: storage,
                                target='5512345678', message='Su pedido')
        assert storage.uploads[0][0] == 'pdfs/u1/q1/Pedido_PED-12345678.pdf'
        assert storage.uploads[0][1] == 'application/pdf'
        assert result.url == 'https://files.example.com/uploads/pdfs/u1/q1/Pedido_PED-12345678.pdf'
        assert result.link.startswith('https://wa.me/5512345678?text=')

    def test_same_filename_for_two_documents_gets_two_keys(self, rendered, storage):
        first = share_document(rendered, 'whatsapp', 'u1', 'q1', lambda: storage, target='5512345678')
        second = share_document(rendered, 'whatsapp', 'u1', 'q2', lambda: storage, target='5512345678')
        assert storage.uploads[0][0] != storage.uploads[1][0]
        assert first.url != second.url

    def test_email(self, rendered, storage):
        result = share_document(rendered, 'email', 'u1', 'q1', lambda: storage,
                                target='ana@example.com', subject='Pedido')
        assert result.link.startswith('mailto:ana@example.com?subject=Pedido')

    def test_invalid_email_is_rejected_before_upload(self, rendered, storage):
        with pytest.raises(ValidationError):
            share_document(rendered, 'email', 'u1', 'q1', lambda: storage, target='no-es-email')
        assert storage.uploads == []

    def test_missing_phone_is_rejected(self, rendered, storage):
        with pytest.raises(ValidationError):
            share_document(rendered, 'whatsapp', 'u1', 'q1', lambda: storage, target='sin número')

    def test_unknown_method(self, rendered, storage):
        with pytest.raises(ValidationError):
            share_document(rendered, 'fax', 'u1', 'q1', lambda: storage)

    def test_upload_failure_is_share_error_without_fallback(self, rendered):
        with pytest.raises(ShareError):
            share_document(rendered, 'whatsapp', 'u1', 'q1', lambda: FakeStorage(fail=True), target='5512345678')

    def test_error_document_is_not_shared(self, storage):
        broken = RenderedDocument(content=b'%PDF', filename='x.pdf', page_count=1,
                                  is_error=True, error_message='fallo')
        with pytest.raises(ShareError):
            share_document(broken, 'download', 'u1', 'q1', lambda: storage)
