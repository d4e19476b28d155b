"""
Integration tests for clients and products, including owner isolation.
"""
from decimal import Decimal

import pytest

from salesdesk.models import Client, Product


class TestClients:

    def test_create_and_list(self, authenticated_client):
        response = authenticated_client.post('/clients/', json={
            'name': '  Rotulos del Centro ',
            'email': 'contacto@rotulos.mx',
            'phone': '5511112222',
        })
        assert response.status_code == 201
        created = response.get_json()['client']
        assert created['name'] == 'Rotulos del Centro'

        listing = authenticated_client.get('/clients/').get_json()['clients']
        assert [c['id'] for c in listing] == [created['id']]

    def test_name_is_required(self, authenticated_client):
        response = authenticated_client.post('/clients/', json={'email': 'a@b.com'})
        assert response.status_code == 400

    def test_invalid_email(self, authenticated_client):
        response = authenticated_client.post('/clients/', json={'name': 'Ana', 'email': 'ana@'})
        assert response.status_code == 400

    def test_search(self, authenticated_client, customer):
        authenticated_client.post('/clients/', json={'name': 'Beto Ruiz'})
        found = authenticated_client.get('/clients/?q=lópez').get_json()['clients']
        assert [c['id'] for c in found] == [customer.id]
        found = authenticated_client.get('/clients/?q=1234').get_json()['clients']
        assert [c['id'] for c in found] == [customer.id]

    def test_update(self, authenticated_client, customer):
        response = authenticated_client.put(f'/clients/{customer.id}', json={'name': 'Ana L.', 'phone': '555'})
        assert response.status_code == 200
        assert response.get_json()['client']['phone'] == '555'

    def test_delete(self, authenticated_client, customer, session):
        assert authenticated_client.delete(f'/clients/{customer.id}').status_code == 200
        assert session.query(Client).count() == 0

    def test_other_owner_cannot_read(self, client, customer, user2):
        with client.session_transaction() as sess:
            sess['user_id'] = user2.id
        response = client.get(f'/clients/{customer.id}')
        assert response.status_code == 404
        assert response.get_json()['redirect'] == '/clients/'
        assert client.get('/clients/').get_json()['clients'] == []


class TestProducts:

    def test_create_with_defaults(self, authenticated_client):
        response = authenticated_client.post('/products/', json={'name': 'Lona', 'unit_price': '85.5'})
        assert response.status_code == 201
        product = response.get_json()['product']
        assert product['category'] == 'product'
        assert product['unit_type'] == 'area'
        assert Decimal(product['unit_price']) == Decimal('85.5')

    def test_process_linear(self, authenticated_client):
        response = authenticated_client.post('/products/', json={
            'name': 'Instalación', 'category': 'process', 'unit_type': 'linear', 'unit_price': 20,
        })
        assert response.status_code == 201
        listing = authenticated_client.get('/products/?category=process').get_json()['products']
        assert [p['name'] for p in listing] == ['Instalación']

    def test_negative_price_rejected(self, authenticated_client):
        response = authenticated_client.post('/products/', json={'name': 'X', 'unit_price': -1})
        assert response.status_code == 400

    @pytest.mark.parametrize('price', ['NaN', 'Infinity', '1e30'])
    def test_non_finite_or_huge_price_rejected(self, authenticated_client, price, session):
        response = authenticated_client.post('/products/', json={'name': 'X', 'unit_price': price})
        assert response.status_code == 400
        assert session.query(Product).count() == 0

    def test_invalid_unit_type(self, authenticated_client):
        response = authenticated_client.post('/products/', json={'name': 'X', 'unit_type': 'm3'})
        assert response.status_code == 400

    def test_update_and_delete(self, authenticated_client, vinyl, session):
        response = authenticated_client.put(f'/products/{vinyl.id}', json={
            'name': 'Vinil premium', 'unit_type': 'area', 'unit_price': '120',
        })
        assert Decimal(response.get_json()['product']['unit_price']) == Decimal('120')
        assert authenticated_client.delete(f'/products/{vinyl.id}').status_code == 200
        assert session.query(Product).count() == 0

    def test_other_owner_cannot_delete(self, client, vinyl, user2):
        with client.session_transaction() as sess:
            sess['user_id'] = user2.id
        assert client.delete(f'/products/{vinyl.id}').status_code == 404
