"""
Integration tests for home counters and sales analytics.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from salesdesk.services.dashboard_service import get_period_range


def create_sale(client, customer, product, quantity='1'):
    response = client.post('/sales/', json={
        'client_id': customer.id,
        'items': [{'product_id': product.id, 'quantity': quantity}],
        'include_tax': False,
        'payment_method': 'transfer',
    })
    assert response.status_code == 201
    return response.get_json()['sale']


class TestHomeStats:

    def test_empty(self, authenticated_client):
        stats = authenticated_client.get('/dashboard/').get_json()['stats']
        assert stats['clients'] == 0
        assert stats['sales'] == 0
        assert Decimal(stats['total_revenue']) == 0

    def test_counts_and_revenue_exclude_cancelled(self, authenticated_client, customer, vinyl, trim):
        create_sale(authenticated_client, customer, vinyl, quantity='2')
        cancelled = create_sale(authenticated_client, customer, trim)
        authenticated_client.post(f"/sales/{cancelled['id']}/status", json={'status': 'cancelled'})
        authenticated_client.post('/quotes/', json={
            'client_id': customer.id, 'items': [{'product_id': vinyl.id}],
        })

        stats = authenticated_client.get('/dashboard/').get_json()['stats']
        assert stats['clients'] == 1
        assert stats['products'] == 2
        assert stats['quotes'] == 1
        assert stats['pending_quotes'] == 1
        assert stats['sales'] == 2
        assert Decimal(stats['total_revenue']) == Decimal('200.00')

    def test_other_users_are_not_counted(self, client, customer, vinyl, user2):
        with client.session_transaction() as sess:
            sess['user_id'] = user2.id
        stats = client.get('/dashboard/').get_json()['stats']
        assert stats['clients'] == 0
        assert stats['products'] == 0


class TestAnalytics:

    def test_year_summary(self, authenticated_client, customer, vinyl, trim):
        create_sale(authenticated_client, customer, vinyl)
        create_sale(authenticated_client, customer, trim)

        data = authenticated_client.get('/dashboard/analytics?range=year').get_json()
        assert data['range'] == 'year'
        assert data['count'] == 2
        assert Decimal(data['total']) == Decimal('150.00')
        assert Decimal(data['average']) == Decimal('75.00')
        assert data['start'] == f'{date.today().year}-01-01'

    def test_unknown_range_falls_back_to_month(self, authenticated_client):
        data = authenticated_client.get('/dashboard/analytics?range=decade').get_json()
        assert data['range'] == 'month'
        assert data['count'] == 0
        assert Decimal(data['average']) == 0


class TestPeriodRange:

    @pytest.mark.parametrize('range_name, start, end', [
        ('day', datetime(2026, 3, 18), datetime(2026, 3, 19)),
        ('week', datetime(2026, 3, 16), datetime(2026, 3, 23)),
        ('month', datetime(2026, 3, 1), datetime(2026, 4, 1)),
        ('semester', datetime(2026, 1, 1), datetime(2026, 7, 1)),
        ('year', datetime(2026, 1, 1), datetime(2027, 1, 1)),
    ])
    def test_ranges(self, range_name, start, end):
        assert get_period_range(range_name, today=date(2026, 3, 18)) == (start, end)

    def test_december_month_and_second_semester(self):
        today = date(2026, 12, 5)
        assert get_period_range('month', today)[1] == datetime(2027, 1, 1)
        assert get_period_range('semester', today) == (datetime(2026, 7, 1), datetime(2027, 1, 1))
