import re
from datetime import datetime, timezone

from flask import jsonify, request
from flask_jwt_extended import decode_token, get_jwt_identity

HANDLE_PATTERN = re.compile(r'^[a-z0-9][a-z0-9._]{2,29}$')


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_user_id_from_token(token):
    decoded_token = decode_token(token)
    return int(decoded_token['sub'])


def current_user_id():
    return int(get_jwt_identity())


def json_body():
    return request.get_json(silent=True) or {}


def respond(result):
    """Render an ActionResult as a JSON response."""
    return jsonify(result.to_dict()), result.status_code


def normalize_email(email):
    return (email or '').strip().lower()


def slugify_handle(name):
    handle = re.sub(r'[^a-z0-9]', '.', (name or '').lower())
    handle = re.sub(r'\.+', '.', handle).strip('.')
    return handle[:30]


def is_valid_handle(handle):
    return bool(handle) and bool(HANDLE_PATTERN.match(handle)) and '..' not in handle


def parse_list(value):
    """Accept a list or a comma-separated string; drop blanks and duplicates."""
    if not value:
        return []
    items = value.split(',') if isinstance(value, str) else value
    cleaned = []
    for item in items:
        item = str(item).strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


def parse_datetime(value):
    """Parse an ISO-8601 string into a naive UTC datetime, or None."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
