"""
Authentication blueprint.
Handles user registration, login, logout and the current identity.
"""
import logging

from flask import Blueprint, session, g, jsonify
from flask_wtf.csrf import generate_csrf

from salesdesk.database import get_session
from salesdesk.middleware import require_login
from salesdesk.services.auth_service import register_user, authenticate
from salesdesk.utils.request_data import get_payload

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _start_session(user):
    session.clear()
    session['user_id'] = user.id
    session.permanent = True


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create a local account and log it in."""
    user = register_user(get_session(), get_payload())
    _start_session(user)
    logger.info(f"[AUTH] Registered and logged in user {user.id}")
    return jsonify({'status': 'ok', 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate email + password."""
    data = get_payload()
    user = authenticate(get_session(), data.get('email'), data.get('password'))
    _start_session(user)
    logger.info(f"[AUTH] User {user.id} logged in")
    return jsonify({'status': 'ok', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    user_id = session.get('user_id')
    session.clear()
    if user_id:
        logger.info(f"[AUTH] User {user_id} logged out")
    return jsonify({'status': 'ok'})


@auth_bp.route('/auth/me')
@require_login
def me():
    return jsonify({'status': 'ok', 'user': g.user.to_dict()})


@auth_bp.route('/auth/csrf-token')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})
