"""
Authentication service for user management.

Handles local registration, password login and Google account linking.
"""
import logging
import re
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salesdesk.exceptions import BusinessLogicError, UnauthorizedError
from salesdesk.models import AppUser

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return re.match(EMAIL_PATTERN, email or '') is not None


def validate_registration_form(form) -> List[str]:
    """Validate registration form fields and return list of errors."""
    errors = []
    email = (form.get('email') or '').strip()
    password = form.get('password') or ''
    password_confirm = form.get('password_confirm') or ''
    full_name = (form.get('full_name') or '').strip()

    if not email or not is_valid_email(email):
        errors.append('Email inválido.')

    if not password or len(password) < 6:
        errors.append('La contraseña debe tener al menos 6 caracteres.')

    if password != password_confirm:
        errors.append('Las contraseñas no coinciden.')

    if not full_name:
        errors.append('El nombre es requerido.')

    return errors


def find_user_by_email(session: Session, email: str):
    return session.query(AppUser).filter(
        func.lower(AppUser.email) == (email or '').strip().lower()
    ).first()


def register_user(session: Session, form) -> AppUser:
    """Create a local user from the registration form."""
    errors = validate_registration_form(form)
    if errors:
        raise BusinessLogicError(", ".join(errors))

    email = form.get('email').strip()
    if find_user_by_email(session, email):
        raise BusinessLogicError('Este email ya está registrado. Usa otro o inicia sesión.')

    try:
        user = AppUser(email=email, full_name=form.get('full_name').strip(), active=True)
        user.set_password(form.get('password'))
        session.add(user)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('Este email ya está registrado. Usa otro o inicia sesión.')

    logger.info(f"New local user registered: {user.id}")
    return user


def authenticate(session: Session, email: str, password: str) -> AppUser:
    """Check email + password; OAuth-only accounts are pointed to Google."""
    email = (email or '').strip()
    if not email or not password:
        raise BusinessLogicError('Email y contraseña son requeridos.')

    user = find_user_by_email(session, email)
    if not user or not user.active:
        raise UnauthorizedError('Email o contraseña incorrectos.')

    if not user.password_hash:
        raise UnauthorizedError(
            'Esta cuenta usa inicio de sesión con Google. '
            'Usa el botón "Continuar con Google".'
        )

    if not user.check_password(password):
        logger.warning(f"Failed login for {email}")
        raise UnauthorizedError('Email o contraseña incorrectos.')

    return user


def get_or_create_user_from_google(session: Session, google_profile) -> AppUser:
    """
    Get existing user or create new user from Google profile.

    Account linking policy:
    - If google_sub exists: return that user (update email/name)
    - If email exists without google_sub: link Google account
    - If email exists with different google_sub: reject
    - If email doesn't exist: create new user

    Args:
        google_profile: Dict with 'sub', 'email', 'name', 'email_verified'

    Raises:
        ValueError: If email not verified or account linking conflict
    """
    email = google_profile['email']
    google_sub = google_profile['sub']
    full_name = google_profile.get('name', '')

    if not google_profile.get('email_verified', False):
        logger.warning(f"Attempted login with unverified email: {email}")
        raise ValueError("Email no verificado por Google")

    user = session.query(AppUser).filter_by(google_sub=google_sub).first()
    if user:
        logger.info(f"Existing Google user login: {email}")
        user.email = email
        user.full_name = full_name or user.full_name
        user.email_verified = True
        user.active = True
        session.commit()
        return user

    user = find_user_by_email(session, email)
    if user:
        if user.google_sub and user.google_sub != google_sub:
            logger.warning(
                f"Account linking conflict: email={email}, "
                f"existing_sub={user.google_sub}, new_sub={google_sub}"
            )
            raise ValueError(
                "Este email ya está vinculado a otra cuenta de Google. "
                "Si crees que esto es un error, contacta soporte."
            )

        logger.info(f"Linking Google account to existing user: {email}")
        user.google_sub = google_sub
        user.auth_provider = 'google'
        user.email_verified = True
        user.full_name = full_name or user.full_name
        user.active = True
        session.commit()
        return user

    try:
        new_user = AppUser(
            email=email,
            google_sub=google_sub,
            auth_provider='google',
            email_verified=True,
            full_name=full_name,
            active=True,
            password_hash=None
        )
        session.add(new_user)
        session.commit()
        logger.info(f"Created new Google user: {email}")
        return new_user
    except IntegrityError as e:
        session.rollback()
        logger.error(f"Error creating user from Google (IntegrityError): {str(e)}")
        raise ValueError(
            "Este email ya está registrado. "
            "Intenta iniciar sesión o usa otro email."
        )
