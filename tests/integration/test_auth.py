"""
Integration tests for authentication and authorization.
"""
import pytest

from salesdesk.models import AppUser
from salesdesk.services.auth_service import get_or_create_user_from_google


class TestRegistration:
    """Test user registration flow."""

    def test_register_new_user(self, client, session):
        response = client.post('/register', data={
            'email': 'newuser@test.com',
            'password': 'securepass123',
            'password_confirm': 'securepass123',
            'full_name': 'New User',
        })

        assert response.status_code == 201
        assert response.get_json()['user']['email'] == 'newuser@test.com'

        user = session.query(AppUser).filter_by(email='newuser@test.com').first()
        assert user is not None
        assert user.check_password('securepass123')

        # Registration logs the user in
        assert client.get('/auth/me').status_code == 200

    def test_register_with_existing_email_fails(self, client, user1):
        response = client.post('/register', json={
            'email': user1.email.upper(),
            'password': 'password123',
            'password_confirm': 'password123',
            'full_name': 'Duplicate User',
        })

        assert response.status_code == 400
        assert 'registrado' in response.get_json()['message']

    def test_register_with_mismatched_passwords_fails(self, client):
        response = client.post('/register', data={
            'email': 'test@test.com',
            'password': 'password123',
            'password_confirm': 'differentpassword',
            'full_name': 'Test User',
        })

        assert response.status_code == 400
        assert 'no coinciden' in response.get_json()['message']

    def test_register_with_short_password_and_bad_email(self, client):
        response = client.post('/register', data={
            'email': 'not-an-email',
            'password': '123',
            'password_confirm': '123',
            'full_name': 'Test User',
        })

        message = response.get_json()['message']
        assert response.status_code == 400
        assert 'Email inválido' in message
        assert '6 caracteres' in message


class TestLogin:
    """Test login functionality."""

    def test_login_with_valid_credentials(self, client, user1):
        response = client.post('/login', data={'email': user1.email, 'password': 'password123'})

        assert response.status_code == 200
        me = client.get('/auth/me').get_json()
        assert me['user']['id'] == user1.id

    def test_login_with_wrong_password(self, client, user1):
        response = client.post('/login', data={'email': user1.email, 'password': 'wrong'})
        assert response.status_code == 403
        assert client.get('/auth/me').status_code == 401

    def test_login_missing_fields(self, client):
        assert client.post('/login', data={'email': ''}).status_code == 400

    def test_oauth_only_account_cannot_use_password(self, client, session):
        user = AppUser(email='google@test.com', auth_provider='google', google_sub='sub-1', active=True)
        session.add(user)
        session.commit()

        response = client.post('/login', data={'email': 'google@test.com', 'password': 'x'})
        assert response.status_code == 403
        assert 'Google' in response.get_json()['message']

    def test_logout(self, authenticated_client):
        assert authenticated_client.get('/auth/me').status_code == 200
        assert authenticated_client.post('/logout').status_code == 200
        assert authenticated_client.get('/auth/me').status_code == 401


class TestAccessControl:

    @pytest.mark.parametrize('url', ['/clients/', '/products/', '/quotes/', '/sales/',
                                     '/settings/', '/dashboard/', '/drafts/quote/'])
    def test_anonymous_requests_are_rejected(self, client, url):
        response = client.get(url)
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_inactive_user_session_is_ignored(self, client, session, user1):
        user1 = session.merge(user1)
        user1.active = False
        session.commit()
        with client.session_transaction() as sess:
            sess['user_id'] = user1.id
        assert client.get('/auth/me').status_code == 401

    def test_csrf_token_endpoint(self, client):
        assert client.get('/auth/csrf-token').get_json()['csrf_token']


class TestGoogleAccountLinking:

    def profile(self, **overrides):
        data = {'sub': 'google-123', 'email': 'ana@example.com', 'name': 'Ana', 'email_verified': True}
        data.update(overrides)
        return data

    def test_creates_new_user(self, session):
        user = get_or_create_user_from_google(session, self.profile())
        assert user.auth_provider == 'google'
        assert user.password_hash is None

    def test_returns_existing_user_by_subject(self, session):
        first = get_or_create_user_from_google(session, self.profile())
        second = get_or_create_user_from_google(session, self.profile(email='ana.new@example.com'))
        assert first.id == second.id
        assert second.email == 'ana.new@example.com'

    def test_links_local_account_by_email(self, session, user1):
        user = get_or_create_user_from_google(session, self.profile(email=user1.email))
        assert user.id == user1.id
        assert user.google_sub == 'google-123'

    def test_rejects_email_linked_to_other_subject(self, session):
        get_or_create_user_from_google(session, self.profile())
        with pytest.raises(ValueError):
            get_or_create_user_from_google(session, self.profile(sub='google-999'))

    def test_rejects_unverified_email(self, session):
        with pytest.raises(ValueError):
            get_or_create_user_from_google(session, self.profile(email_verified=False))


class FakeOAuthService:
    def get_authorization_url(self, state):
        return f'https://accounts.google.com/o/oauth2/v2/auth?state={state}'

    def exchange_code_for_tokens(self, code):
        return {'id_token': 'token-' + code}

    def validate_and_decode_id_token(self, id_token):
        return {'sub': 'google-abc', 'email': 'oauth@example.com', 'name': 'OAuth', 'email_verified': True}


class TestGoogleFlow:

    @pytest.fixture(autouse=True)
    def fake_service(self, monkeypatch):
        monkeypatch.setattr('salesdesk.blueprints.auth_google.get_google_oauth_service',
                            lambda: FakeOAuthService())

    def test_start_redirects_to_google_with_state(self, client):
        response = client.get('/auth/google/start')
        assert response.status_code == 302
        with client.session_transaction() as sess:
            state = sess['oauth_state']
        assert state in response.headers['Location']

    def test_callback_logs_user_in(self, client, session):
        client.get('/auth/google/start')
        with client.session_transaction() as sess:
            state = sess['oauth_state']

        response = client.get(f'/auth/google/callback?state={state}&code=abc')
        assert response.status_code == 302
        assert client.get('/auth/me').get_json()['user']['email'] == 'oauth@example.com'

    def test_callback_state_mismatch(self, client):
        client.get('/auth/google/start')
        response = client.get('/auth/google/callback?state=forged&code=abc')
        assert response.status_code == 400
        assert client.get('/auth/me').status_code == 401

    def test_callback_cancelled(self, client):
        response = client.get('/auth/google/callback?error=access_denied')
        assert response.status_code == 400
