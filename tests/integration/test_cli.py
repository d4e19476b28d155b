"""
Integration tests for the legacy import command.
"""
import json
from decimal import Decimal

from salesdesk.models import Client, Product, Quote, Sale

LEGACY_EXPORT = {
    'clients': [{'id': 'old-c1', 'name': 'Ana López', 'phone': '5512345678'}],
    'products': [
        {'name': 'Lona', 'type': 'm2', 'price': 80},
        {'name': 'Instalación', 'category': 'Proceso', 'type': 'ml', 'price': '15.5'},
    ],
    'quotes': [{
        'id': 'old-q1',
        'clientId': 'old-c1',
        'clientName': 'Ana López',
        'items': [{'productName': 'Lona', 'productType': 'm2', 'productPrice': 80, 'length': 2, 'width': 1}],
        'total': 160,
        'status': 'converted',
        'saleId': 'old-s1',
        'createdAt': '2025-05-01T10:00:00Z',
    }],
    'sales': [{
        'id': 'old-s1',
        'clientId': 'old-c1',
        'clientName': 'Ana López',
        'items': [{'name': 'Lona', 'type': 'm2', 'price': 80, 'length': 2, 'width': 1}],
        'total': 160,
        'paymentMethod': 'cash',
        'amountPaid': 200,
        'change': 40,
    }],
}


class TestImportLegacy:

    def test_import(self, app, session, user1, tmp_path):
        export = tmp_path / 'export.json'
        export.write_text(json.dumps(LEGACY_EXPORT), encoding='utf-8')

        result = app.test_cli_runner().invoke(args=['import-legacy', str(export), '--owner', user1.email])
        assert result.exit_code == 0, result.output
        assert 'sales: 1' in result.output

        assert session.query(Client).count() == 1
        process = session.query(Product).filter_by(name='Instalación').one()
        assert process.category == 'process'
        assert process.unit_type == 'linear'

        quote = session.query(Quote).one()
        sale = session.query(Sale).one()
        assert sale.quote_id == quote.id
        assert quote.sale_id == sale.id
        assert quote.client_id == session.query(Client).one().id
        assert sale.order_number.startswith('PED-')
        assert sale.change_amount == Decimal('40.00')

    def test_unknown_owner(self, app, tmp_path):
        export = tmp_path / 'export.json'
        export.write_text('{}', encoding='utf-8')

        result = app.test_cli_runner().invoke(args=['import-legacy', str(export), '--owner', 'nadie@test.com'])
        assert result.exit_code != 0
        assert 'nadie@test.com' in result.output
