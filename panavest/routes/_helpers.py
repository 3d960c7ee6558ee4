from flask import current_app, request

from panavest.errors import ValidationError


def get_payment_service():
    return current_app.extensions["payments"]


def json_body():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Expected a JSON object body")
    return payload


def require_fields(source, fields):
    """Return the stripped string values of `fields`, or fail listing what is missing."""
    values = {}
    missing = []
    for name in fields:
        value = source.get(name)
        text = "" if value is None else str(value).strip()
        if not text:
            missing.append(name)
        values[name] = text
    if missing:
        raise ValidationError("Missing fields", payload={"missing": missing})
    return values
