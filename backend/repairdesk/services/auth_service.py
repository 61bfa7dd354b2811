from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from flask_jwt_extended import create_access_token
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from repairdesk.errors import Conflict, NotFound, Unauthorized
from repairdesk.models.user import User
from repairdesk.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid email or password'


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(func.lower(User.email) == (email or '').lower())).scalar_one_or_none()


def load_active_user(db: Session, user_id: Any) -> Optional[User]:
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        return None
    user = db.get(User, uid)
    if user is None or not user.is_active:
        return None
    return user


def issue_token(user: User) -> str:
    return create_access_token(
        identity=str(user.id),
        additional_claims={'name': user.name, 'email': user.email, 'role': user.role},
    )


def signup(db: Session, name: str, email: str, password: str, role: str, phone: Optional[str] = None) -> User:
    """Create an account; field formats are checked by the route beforehand."""
    if find_user_by_email(db, email) is not None:
        raise Conflict('Email already registered')
    user = User(name=name, email=email.lower(), role=role, phone=phone or None, is_active=True)
    user.set_password(password)
    db.add(user)
    db.commit()
    logger.info(f"New user registered: {user.email} ({user.role})")
    return user


def login(db: Session, email: str, password: str) -> Tuple[str, User]:
    user = find_user_by_email(db, email)
    # same message for unknown email and wrong password
    if user is None or not user.verify_password(password):
        raise Unauthorized(INVALID_CREDENTIALS)
    if not user.is_active:
        raise Unauthorized('Account is deactivated')
    user.last_login_at = utcnow()
    db.commit()
    return issue_token(user), user


def get_profile(db: Session, user_id: Any) -> User:
    user = load_active_user(db, user_id)
    if user is None:
        raise NotFound('User not found')
    return user


def update_profile(db: Session, user_id: Any, fields: Dict[str, Any]) -> User:
    """Only non-empty name/phone values are applied."""
    user = get_profile(db, user_id)
    if fields.get('name'):
        user.name = fields['name']
    if fields.get('phone'):
        user.phone = fields['phone']
    db.commit()
    return user

__all__ = ['signup', 'login', 'issue_token', 'find_user_by_email', 'load_active_user', 'get_profile', 'update_profile']
