"""
Google OAuth authentication blueprint.

- /auth/google/start: Initiates OAuth flow
- /auth/google/callback: Processes Google callback
"""
import logging
import secrets

from flask import Blueprint, redirect, session, request, g, jsonify
from authlib.common.errors import AuthlibBaseError
from requests import RequestException

from salesdesk.database import get_session
from salesdesk.services.auth_service import get_or_create_user_from_google
from salesdesk.services.google_oauth_service import get_google_oauth_service

logger = logging.getLogger(__name__)

auth_google_bp = Blueprint('auth_google', __name__, url_prefix='/auth/google')

LOGIN_REDIRECT = '/'


def _error(message, status=400):
    return jsonify({'status': 'error', 'message': message}), status


@auth_google_bp.route('/start')
def start():
    """Store a state token in the session and redirect to Google."""
    if g.user:
        return redirect(LOGIN_REDIRECT)

    state = secrets.token_urlsafe(32)
    session['oauth_state'] = state
    session['oauth_provider'] = 'google'

    try:
        authorization_url = get_google_oauth_service().get_authorization_url(state)
    except ValueError as e:
        logger.error(f"[AUTH] OAuth configuration error: {str(e)}")
        return _error('Error de configuración OAuth. Contacta soporte.', 500)

    logger.info(f"[AUTH] Starting Google OAuth flow with state: {state[:10]}...")
    return redirect(authorization_url)


@auth_google_bp.route('/callback')
def callback():
    """
    Handle Google OAuth callback.

    Validates state, exchanges the code, validates the ID token and
    creates or links the user before starting the session.
    """
    error = request.args.get('error')
    if error:
        if error == 'access_denied':
            logger.info("[AUTH] User cancelled Google OAuth")
            return _error('Cancelaste el inicio de sesión con Google.')
        logger.warning(f"[AUTH] Google OAuth error: {error}")
        return _error(f'Error de Google: {error}')

    state = request.args.get('state')
    session_state = session.pop('oauth_state', None)
    session_provider = session.pop('oauth_provider', None)

    if not state or not session_state or state != session_state:
        logger.warning("[AUTH] OAuth state mismatch")
        return _error('Error de seguridad (state mismatch). Intenta nuevamente.')

    if session_provider != 'google':
        return _error('Error de proveedor OAuth.')

    code = request.args.get('code')
    if not code:
        return _error('No se recibió código de autorización.')

    try:
        oauth_service = get_google_oauth_service()
        token = oauth_service.exchange_code_for_tokens(code)
        id_token = token.get('id_token')
        if not id_token:
            raise ValueError("No se recibió ID token de Google")

        claims = oauth_service.validate_and_decode_id_token(id_token)
        google_profile = {
            'sub': claims['sub'],
            'email': claims['email'],
            'name': claims.get('name', ''),
            'email_verified': claims.get('email_verified', False)
        }
        user = get_or_create_user_from_google(get_session(), google_profile)
    except ValueError as e:
        logger.warning(f"[AUTH] OAuth validation error: {str(e)}")
        return _error(str(e))
    except (AuthlibBaseError, RequestException) as e:
        logger.error(f"[AUTH] Token exchange failed: {str(e)}")
        return _error('Error al iniciar sesión con Google. Intenta nuevamente.', 502)

    session.clear()
    session['user_id'] = user.id
    session.permanent = True
    logger.info(f"[AUTH] Session started for Google user {user.id}")
    return redirect(LOGIN_REDIRECT)
