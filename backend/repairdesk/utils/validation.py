from __future__ import annotations
"""Reusable request validation helpers.

Route handlers call these before touching a service so malformed input is
rejected with a consistent 400 message.
"""
import re
from typing import Any, Iterable, List, Optional
from flask import abort
from repairdesk.constants.roles import ALL_ROLES
from repairdesk.errors import ValidationError

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_PASSWORD_LENGTH = 6


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    return False


def missing_fields(data: dict, fields: Iterable[str]) -> List[str]:
    return [f for f in fields if is_blank(data.get(f))]


def require_fields(data: dict, fields: Iterable[str]):
    missing = missing_fields(data, fields)
    if missing:
        abort(400, description=f"Missing required fields: {', '.join(missing)}")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ''))


def validate_email(email: str):
    if not is_valid_email(email):
        abort(400, description='Invalid email format')
    return email


def validate_password(password: str):
    if len(password or '') < MIN_PASSWORD_LENGTH:
        abort(400, description=f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
    return password


def validate_role(role: str):
    if role not in ALL_ROLES:
        abort(400, description=f"Invalid role. Valid roles: {', '.join(ALL_ROLES)}")
    return role


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    allowed = list(allowed)
    if new_status not in allowed:
        abort(400, description=f"Invalid {field_name}. Must be one of: {', '.join(allowed)}")
    return new_status


def parse_number(value: Any, field_name: str) -> Optional[float]:
    """Float from a JSON number or numeric string; None and '' mean unset."""
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be a number')


def sanitize_strings(obj: Any) -> Any:
    """Trim every string in a JSON payload, recursing into dicts and lists."""
    if isinstance(obj, str):
        return obj.strip()
    if isinstance(obj, dict):
        return {k: sanitize_strings(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [sanitize_strings(v) for v in obj]
    return obj


def json_body() -> dict:
    from flask import request
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description='JSON object body required')
    return sanitize_strings(data)

__all__ = [
    'is_blank', 'missing_fields', 'require_fields', 'is_valid_email', 'validate_email',
    'validate_password', 'validate_role', 'validate_status', 'parse_number', 'sanitize_strings', 'json_body',
]
