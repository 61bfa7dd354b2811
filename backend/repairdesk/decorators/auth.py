from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from repairdesk.services.policy import has_permissions, required_roles


def require_permissions(*codes: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description=f"Access denied. Required roles: {', '.join(required_roles(codes))}")
            return fn(*args, **kwargs)
        return wrapper
    return outer
