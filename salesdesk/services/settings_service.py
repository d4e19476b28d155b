"""Per-user company, bank and locale settings."""
import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.exceptions import ValidationError, PersistenceError, BusinessLogicError
from salesdesk.models import UserSettings, Language, Currency

logger = logging.getLogger(__name__)


def default_settings(user_id: Optional[str] = None) -> UserSettings:
    """
    Transient settings built from configuration.

    Used when a user has not saved settings yet, or when there is no
    user context at all. Never added to the session.
    """
    config = current_app.config
    return UserSettings(
        user_id=user_id,
        company_name=config.get('BUSINESS_NAME') or None,
        company_address=config.get('BUSINESS_ADDRESS') or None,
        company_phone=config.get('BUSINESS_PHONE') or None,
        language=config.get('DEFAULT_LANGUAGE', Language.ES.value),
        currency=config.get('DEFAULT_CURRENCY', Currency.MXN.value),
    )


def get_settings(session: Session, user_id: Optional[str]) -> UserSettings:
    if not user_id:
        return default_settings()
    settings = session.get(UserSettings, user_id)
    return settings or default_settings(user_id)


def _get_or_create(session: Session, user_id: str) -> UserSettings:
    settings = session.get(UserSettings, user_id)
    if settings is None:
        settings = default_settings(user_id)
        session.add(settings)
    return settings


def _save(session: Session, settings: UserSettings) -> UserSettings:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error saving settings for user {settings.user_id}: {e}", exc_info=True)
        raise PersistenceError() from e
    return settings


def _text(data: Dict[str, Any], key: str) -> Optional[str]:
    return (data.get(key) or '').strip() or None


def update_company(session: Session, user_id: str, data: Dict[str, Any]) -> UserSettings:
    settings = _get_or_create(session, user_id)
    settings.company_name = _text(data, 'name')
    settings.company_address = _text(data, 'address')
    settings.company_phone = _text(data, 'phone')
    return _save(session, settings)


def update_bank(session: Session, user_id: str, data: Dict[str, Any]) -> UserSettings:
    settings = _get_or_create(session, user_id)
    settings.bank_name = _text(data, 'bank')
    settings.bank_account_number = _text(data, 'account_number')
    settings.bank_account_holder = _text(data, 'account_holder')
    return _save(session, settings)


def update_preferences(session: Session, user_id: str, data: Dict[str, Any]) -> UserSettings:
    settings = _get_or_create(session, user_id)
    language = _text(data, 'language') or settings.language
    currency = (_text(data, 'currency') or settings.currency).upper()

    if language not in {lang.value for lang in Language}:
        raise ValidationError("Idioma no soportado")
    if currency not in {cur.value for cur in Currency}:
        raise ValidationError("Moneda no soportada")

    settings.language = language
    settings.currency = currency
    return _save(session, settings)


def save_logo(session: Session, user_id: str, file, storage) -> UserSettings:
    """Upload a logo to ``logos/<user>/logo``, replacing any previous one."""
    settings = _get_or_create(session, user_id)
    object_name = f"logos/{user_id}/logo"
    try:
        settings.logo_url = storage.upload_file(file, object_name)
    except ValueError as e:
        session.rollback()
        raise ValidationError(str(e))
    except (ClientError, BotoCoreError) as e:
        session.rollback()
        logger.error(f"[STORAGE] Logo upload failed for user {user_id}: {e}")
        raise BusinessLogicError("Error al subir el logo. Intenta nuevamente.", status_code=502)
    settings.logo_key = object_name
    return _save(session, settings)


def delete_logo(session: Session, user_id: str, storage) -> UserSettings:
    settings = _get_or_create(session, user_id)
    if settings.logo_key:
        storage.delete_file(settings.logo_key)
    settings.logo_url = None
    settings.logo_key = None
    return _save(session, settings)
