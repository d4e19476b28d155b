"""Middleware for authentication context."""
from functools import wraps

from flask import session, g, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from salesdesk.database import get_session
from salesdesk.models import AppUser

LOGIN_REQUIRED_MESSAGE = 'Debes iniciar sesión para acceder a esta página.'


def load_user():
    """
    Load current user into g (Flask's per-request global).

    Sets g.user and g.user_id when the session carries an active user.
    """
    g.user = None
    g.user_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        db_session = get_session()
        user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error in load_user: {e}")
        return

    if user:
        g.user = user
        g.user_id = user.id
    else:
        session.pop('user_id', None)


def require_login(f):
    """Decorator: reject anonymous requests with 401."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            return jsonify({'status': 'error', 'message': LOGIN_REQUIRED_MESSAGE}), 401
        return f(*args, **kwargs)
    return decorated_function
