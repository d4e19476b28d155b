"""Settings blueprint: company data, logo, bank account and preferences."""
from flask import Blueprint, request, g, jsonify

from salesdesk.database import get_session
from salesdesk.exceptions import ValidationError
from salesdesk.middleware import require_login
from salesdesk.services import settings_service
from salesdesk.services.storage_service import get_storage_service
from salesdesk.utils.request_data import get_payload

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


def _settings_response(settings):
    return jsonify({'status': 'ok', 'settings': settings.to_dict()})


@settings_bp.route('/')
@require_login
def show():
    return _settings_response(settings_service.get_settings(get_session(), g.user_id))


@settings_bp.route('/company', methods=['POST'])
@require_login
def update_company():
    return _settings_response(settings_service.update_company(get_session(), g.user_id, get_payload()))


@settings_bp.route('/bank', methods=['POST'])
@require_login
def update_bank():
    return _settings_response(settings_service.update_bank(get_session(), g.user_id, get_payload()))


@settings_bp.route('/preferences', methods=['POST'])
@require_login
def update_preferences():
    return _settings_response(settings_service.update_preferences(get_session(), g.user_id, get_payload()))


@settings_bp.route('/logo', methods=['POST'])
@require_login
def upload_logo():
    """Multipart upload, field ``logo``."""
    file = request.files.get('logo')
    if not file or not file.filename:
        raise ValidationError("Selecciona una imagen para el logo")
    settings = settings_service.save_logo(get_session(), g.user_id, file, get_storage_service())
    return _settings_response(settings)


@settings_bp.route('/logo', methods=['DELETE'])
@require_login
def delete_logo():
    settings = settings_service.delete_logo(get_session(), g.user_id, get_storage_service())
    return _settings_response(settings)
