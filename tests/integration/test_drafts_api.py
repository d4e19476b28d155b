"""
Integration tests for the quote/sale form kept in the session.
"""
from decimal import Decimal

from salesdesk.models import Quote, Sale


class TestQuoteDraft:

    def fill(self, client, customer, vinyl):
        client.post('/drafts/quote/client', json={'client_id': customer.id})
        client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        client.patch('/drafts/quote/items/0', json={'field': 'length', 'value': '2'})
        return client.patch('/drafts/quote/items/0', json={'field': 'width', 'value': '3'})

    def test_live_totals(self, authenticated_client, customer, vinyl):
        draft = self.fill(authenticated_client, customer, vinyl).get_json()['draft']
        assert draft['items'][0]['total'] == '600.00'
        assert draft['total'] == '696.00'

        draft = authenticated_client.post('/drafts/quote/options', json={
            'discount_percent': '10', 'include_tax': True,
        }).get_json()['draft']
        assert draft['total'] == '626.40'

    def test_add_item_defaults(self, authenticated_client, vinyl):
        response = authenticated_client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        assert response.status_code == 201
        item = response.get_json()['draft']['items'][0]
        assert (item['length'], item['width'], item['quantity']) == ('1', '1', '1')

    def test_invalid_value_is_rejected(self, authenticated_client, vinyl):
        authenticated_client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        response = authenticated_client.patch('/drafts/quote/items/0', json={'field': 'quantity', 'value': '-1'})
        assert response.status_code == 400

    def test_remove_item(self, authenticated_client, vinyl, trim):
        authenticated_client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        authenticated_client.post('/drafts/quote/items', json={'product_id': trim.id})
        draft = authenticated_client.delete('/drafts/quote/items/0').get_json()['draft']
        assert [item['product_name'] for item in draft['items']] == ['Corte de contorno']
        assert authenticated_client.delete('/drafts/quote/items/5').status_code == 404

    def test_foreign_client_is_rejected(self, client, customer, user2):
        with client.session_transaction() as sess:
            sess['user_id'] = user2.id
        assert client.post('/drafts/quote/client', json={'client_id': customer.id}).status_code == 404

    def test_submit_without_client(self, authenticated_client, vinyl):
        authenticated_client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        response = authenticated_client.post('/drafts/quote/submit')
        assert response.status_code == 400
        assert 'cliente' in response.get_json()['message']

    def test_submit_creates_quote_and_clears_draft(self, authenticated_client, customer, vinyl, session):
        self.fill(authenticated_client, customer, vinyl)
        response = authenticated_client.post('/drafts/quote/submit')
        assert response.status_code == 201
        quote = session.get(Quote, response.get_json()['quote']['id'])
        assert quote.total == Decimal('696.00')

        draft = authenticated_client.get('/drafts/quote/').get_json()['draft']
        assert draft['items'] == []
        assert draft['client_id'] is None

    def test_edit_existing_quote(self, authenticated_client, customer, vinyl, session):
        self.fill(authenticated_client, customer, vinyl)
        quote_id = authenticated_client.post('/drafts/quote/submit').get_json()['quote']['id']

        draft = authenticated_client.post(f'/drafts/quote/edit/{quote_id}').get_json()['draft']
        assert draft['document_id'] == quote_id
        authenticated_client.post('/drafts/quote/options', json={'include_tax': False})
        response = authenticated_client.post('/drafts/quote/submit')

        assert response.status_code == 200
        assert session.get(Quote, quote_id).total == Decimal('600.00')
        assert session.query(Quote).count() == 1

    def test_clear(self, authenticated_client, vinyl):
        authenticated_client.post('/drafts/quote/items', json={'product_id': vinyl.id})
        assert authenticated_client.delete('/drafts/quote/').get_json()['draft']['items'] == []

    def test_unknown_kind(self, authenticated_client):
        assert authenticated_client.get('/drafts/invoice/').status_code == 404


class TestSaleDraft:

    def test_payment_preview_and_submit(self, authenticated_client, customer, vinyl, session):
        authenticated_client.post('/drafts/sale/client', json={'client_id': customer.id})
        authenticated_client.post('/drafts/sale/items', json={'product_id': vinyl.id})
        draft = authenticated_client.post('/drafts/sale/options', json={
            'include_tax': False, 'payment_method': 'cash', 'amount_paid': '250',
        }).get_json()['draft']
        assert draft['payment']['change'] == '150.00'

        response = authenticated_client.post('/drafts/sale/submit')
        assert response.status_code == 201
        sale = session.get(Sale, response.get_json()['sale']['id'])
        assert sale.change_amount == Decimal('150.00')

    def test_quote_and_sale_drafts_are_independent(self, authenticated_client, vinyl):
        authenticated_client.post('/drafts/sale/items', json={'product_id': vinyl.id})
        assert authenticated_client.get('/drafts/quote/').get_json()['draft']['items'] == []
