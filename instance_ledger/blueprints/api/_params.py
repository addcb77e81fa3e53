"""Request parsing helpers shared by the API route modules."""

from flask import request

from ...services.ledger_errors import ValidationError
from ...utils.api_responses import APIResponse


def json_body() -> dict:
    data = APIResponse.handle_request_content()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_int(value, field):
    if value in (None, "", "null"):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer", field=field) from exc


def required_int(value, field):
    parsed = optional_int(value, field)
    if parsed is None:
        raise ValidationError(f"{field} is required", field=field)
    return parsed


def query_int(name):
    return optional_int(request.args.get(name), name)


def query_flag(name, default=False):
    value = request.args.get(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


def current_actor():
    """Acting user as supplied by the upstream gateway."""
    return request.headers.get('X-Actor')
