from __future__ import annotations
from typing import Iterable, Optional, Set
from flask_jwt_extended import get_jwt, get_current_user
from repairdesk.constants.roles import ROLE_POLICY


def allowed_roles(code: str) -> Set[str]:
    return set(ROLE_POLICY.get(code, ()))


def is_allowed(role: Optional[str], resource: str, action: str) -> bool:
    """Single authorization decision point: may ``role`` perform ``action`` on ``resource``?"""
    if not role:
        return False
    return role in ROLE_POLICY.get(f"{resource}.{action}", ())


def current_role() -> Optional[str]:
    # the freshly loaded user wins over the claim so role changes apply before token expiry
    user = get_current_user()
    if user is not None:
        return user.role
    return get_jwt().get('role')


def has_permissions(*codes: str) -> bool:
    role = current_role()
    for code in codes:
        resource, action = code.split('.', 1)
        if not is_allowed(role, resource, action):
            return False
    return True


def required_roles(codes: Iterable[str]) -> list:
    """Roles satisfying every code, used for the 403 message."""
    roles: Optional[Set[str]] = None
    for code in codes:
        r = allowed_roles(code)
        roles = r if roles is None else roles & r
    return sorted(roles or ())
