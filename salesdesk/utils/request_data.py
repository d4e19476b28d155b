"""Helpers for reading JSON or form request bodies."""
from flask import request

TRUE_VALUES = ('1', 'true', 'on', 'yes', 'si', 'sí')


def get_payload() -> dict:
    """JSON body when present, form fields otherwise."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def parse_bool(value, default=False) -> bool:
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES
