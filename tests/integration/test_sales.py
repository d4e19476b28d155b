"""
Integration tests for sales: payment methods, order numbers, status and listing.
"""
import re
from datetime import date, timedelta
from decimal import Decimal

import pytest

from salesdesk.models import Sale
from salesdesk.services.sale_service import generate_order_number


def sale_payload(customer, product, **overrides):
    payload = {
        'client_id': customer.id,
        'items': [{'product_id': product.id, 'length': '1', 'width': '1', 'quantity': '2'}],
        'include_tax': False,
        'payment_method': 'cash',
        'amount_paid': '500',
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def sale(authenticated_client, customer, vinyl):
    response = authenticated_client.post('/sales/', json=sale_payload(customer, vinyl))
    assert response.status_code == 201
    return response.get_json()['sale']


class TestPayments:

    def test_cash_change(self, sale):
        assert Decimal(sale['total']) == Decimal('200.00')
        assert Decimal(sale['amount_paid']) == Decimal('500.00')
        assert Decimal(sale['change']) == Decimal('300.00')
        assert sale['payment_method_label'] == 'Efectivo'

    def test_cash_short_payment_rejected(self, authenticated_client, customer, vinyl, session):
        response = authenticated_client.post('/sales/', json=sale_payload(customer, vinyl, amount_paid='150'))
        assert response.status_code == 400
        assert session.query(Sale).count() == 0

    def test_credit_balance(self, authenticated_client, customer, vinyl):
        response = authenticated_client.post('/sales/', json=sale_payload(
            customer, vinyl, payment_method='credit', amount_paid=None, advance='50',
        ))
        sale = response.get_json()['sale']
        assert response.status_code == 201
        assert Decimal(sale['advance']) == Decimal('50.00')
        assert Decimal(sale['balance']) == Decimal('150.00')
        assert sale['change'] is None

    def test_credit_requires_advance(self, authenticated_client, customer, vinyl):
        response = authenticated_client.post('/sales/', json=sale_payload(
            customer, vinyl, payment_method='credit', advance='0',
        ))
        assert response.status_code == 400

    def test_credit_advance_above_total(self, authenticated_client, customer, vinyl):
        response = authenticated_client.post('/sales/', json=sale_payload(
            customer, vinyl, payment_method='credit', advance='201',
        ))
        assert response.status_code == 400

    def test_transfer_copies_bank_from_settings(self, authenticated_client, customer, vinyl):
        authenticated_client.post('/settings/bank', json={
            'bank': 'BBVA', 'account_number': '012345678901234567', 'account_holder': 'Rotulos SA',
        })
        response = authenticated_client.post('/sales/', json=sale_payload(
            customer, vinyl, payment_method='transfer', amount_paid=None,
        ))
        sale = response.get_json()['sale']
        assert sale['bank'] == {
            'bank': 'BBVA', 'account_number': '012345678901234567', 'account_holder': 'Rotulos SA',
        }
        assert sale['amount_paid'] is None

    def test_transfer_bank_override(self, authenticated_client, customer, vinyl):
        response = authenticated_client.post('/sales/', json=sale_payload(
            customer, vinyl, payment_method='transfer', bank={'bank': 'Banorte'},
        ))
        assert response.get_json()['sale']['bank']['bank'] == 'Banorte'

    def test_unknown_payment_method(self, authenticated_client, customer, vinyl):
        response = authenticated_client.post('/sales/', json=sale_payload(customer, vinyl, payment_method='bitcoin'))
        assert response.status_code == 400


class TestOrderNumbers:

    def test_format(self, sale):
        assert re.fullmatch(r'PED-\d{8}', sale['order_number'])

    def test_uses_last_eight_digits(self, session, user1):
        assert generate_order_number(session, user1.id, now_ms=1760000123456789) == 'PED-23456789'

    def test_collision_moves_forward(self, customer, session, user1):
        number = generate_order_number(session, user1.id, now_ms=1700000000000)
        existing = Sale(owner_id=user1.id, order_number=number, client_id=customer.id, items=[])
        session.add(existing)
        session.commit()
        assert generate_order_number(session, user1.id, now_ms=1700000000000) != number

    def test_edit_keeps_order_number(self, authenticated_client, sale, customer, vinyl):
        response = authenticated_client.put(f"/sales/{sale['id']}", json=sale_payload(
            customer, vinyl, amount_paid='1000', delivery_date='2030-01-15',
        ))
        updated = response.get_json()['sale']
        assert updated['order_number'] == sale['order_number']
        assert updated['delivery_date'] == '2030-01-15'
        assert Decimal(updated['change']) == Decimal('800.00')


class TestStatusAndDelete:

    def test_change_status(self, authenticated_client, sale):
        response = authenticated_client.post(f"/sales/{sale['id']}/status", json={'status': 'in-progress'})
        assert response.get_json()['sale']['status'] == 'in-progress'

    def test_invalid_status(self, authenticated_client, sale):
        response = authenticated_client.post(f"/sales/{sale['id']}/status", json={'status': 'lost'})
        assert response.status_code == 400

    def test_only_cancelled_sales_can_be_deleted(self, authenticated_client, sale, session):
        assert authenticated_client.delete(f"/sales/{sale['id']}").status_code == 400
        authenticated_client.post(f"/sales/{sale['id']}/status", json={'status': 'cancelled'})
        assert authenticated_client.delete(f"/sales/{sale['id']}").status_code == 200
        assert session.query(Sale).count() == 0

    def test_cancelled_sale_cannot_be_edited(self, authenticated_client, sale, customer, vinyl):
        authenticated_client.post(f"/sales/{sale['id']}/status", json={'status': 'cancelled'})
        response = authenticated_client.put(f"/sales/{sale['id']}", json=sale_payload(customer, vinyl))
        assert response.status_code == 400


class TestListing:

    def test_nearest_delivery_first_and_undated_last(self, authenticated_client, customer, vinyl):
        later = (date.today() + timedelta(days=10)).isoformat()
        sooner = (date.today() + timedelta(days=1)).isoformat()
        ids = {}
        for label, delivery in (('undated', None), ('later', later), ('sooner', sooner)):
            payload = sale_payload(customer, vinyl, delivery_date=delivery)
            ids[label] = authenticated_client.post('/sales/', json=payload).get_json()['sale']['id']

        sales = authenticated_client.get('/sales/').get_json()['sales']
        assert [s['id'] for s in sales] == [ids['sooner'], ids['later'], ids['undated']]
        assert sales[0]['delivery_urgent'] is True
        assert sales[1]['delivery_urgent'] is False

    def test_status_filter(self, authenticated_client, sale):
        assert authenticated_client.get('/sales/?status=completed').get_json()['sales'] == []
        assert len(authenticated_client.get('/sales/?status=pending').get_json()['sales']) == 1

    def test_sale_pdf_filename(self, authenticated_client, sale):
        response = authenticated_client.get(f"/sales/{sale['id']}/pdf")
        assert response.status_code == 200
        assert f"Pedido_{sale['order_number']}.pdf" in response.headers['Content-Disposition']
