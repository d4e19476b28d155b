"""
Integration tests for company, bank and locale settings.
"""
from io import BytesIO


class FakeStorage:
    def __init__(self):
        self.uploaded = []
        self.deleted = []

    def upload_file(self, file, object_name):
        self.uploaded.append(object_name)
        return f"https://files.example.com/uploads/{object_name}"

    def delete_file(self, object_name):
        self.deleted.append(object_name)
        return True


class TestSettings:

    def test_defaults_before_saving(self, authenticated_client):
        settings = authenticated_client.get('/settings/').get_json()['settings']
        assert settings['language'] == 'es'
        assert settings['currency'] == 'MXN'
        assert settings['logo_url'] is None

    def test_company(self, authenticated_client):
        response = authenticated_client.post('/settings/company', json={
            'name': 'Rotulos del Centro', 'address': 'Calle 5', 'phone': '555-0101',
        })
        assert response.status_code == 200
        company = authenticated_client.get('/settings/').get_json()['settings']['company']
        assert company == {'name': 'Rotulos del Centro', 'address': 'Calle 5', 'phone': '555-0101'}

    def test_bank(self, authenticated_client):
        authenticated_client.post('/settings/bank', data={
            'bank': 'BBVA', 'account_number': '0123', 'account_holder': ' Ana ',
        })
        bank = authenticated_client.get('/settings/').get_json()['settings']['bank']
        assert bank == {'bank': 'BBVA', 'account_number': '0123', 'account_holder': 'Ana'}

    def test_preferences(self, authenticated_client):
        response = authenticated_client.post('/settings/preferences', json={'language': 'en', 'currency': 'usd'})
        settings = response.get_json()['settings']
        assert settings['language'] == 'en'
        assert settings['currency'] == 'USD'

    def test_invalid_currency(self, authenticated_client):
        response = authenticated_client.post('/settings/preferences', json={'currency': 'EUR'})
        assert response.status_code == 400
        assert authenticated_client.get('/settings/').get_json()['settings']['currency'] == 'MXN'

    def test_settings_are_per_user(self, client, authenticated_client, user2):
        authenticated_client.post('/settings/company', json={'name': 'Empresa Uno'})
        with client.session_transaction() as sess:
            sess['user_id'] = user2.id
        assert client.get('/settings/').get_json()['settings']['company']['name'] != 'Empresa Uno'


class TestLogo:

    def test_upload_and_delete(self, authenticated_client, user1, monkeypatch):
        storage = FakeStorage()
        monkeypatch.setattr('salesdesk.blueprints.settings.get_storage_service', lambda: storage)

        response = authenticated_client.post('/settings/logo', data={
            'logo': (BytesIO(b'\x89PNG fake'), 'logo.png'),
        }, content_type='multipart/form-data')
        assert response.status_code == 200
        assert response.get_json()['settings']['logo_url'].endswith(f'logos/{user1.id}/logo')

        response = authenticated_client.delete('/settings/logo')
        assert response.get_json()['settings']['logo_url'] is None
        assert storage.deleted == [f'logos/{user1.id}/logo']

    def test_upload_requires_file(self, authenticated_client):
        assert authenticated_client.post('/settings/logo', data={}).status_code == 400
