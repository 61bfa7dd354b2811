from __future__ import annotations
"""Service-layer error taxonomy.

Services raise these instead of calling ``flask.abort`` so they stay usable
outside a request (seed script, tests). The app factory maps every subclass to
the standard ``{"success": false, "error": ...}`` body using ``status``.
"""


class ServiceError(Exception):
    status = 500
    default_message = 'Internal server error'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status = 400
    default_message = 'Invalid request'


class Unauthorized(ServiceError):
    status = 401
    default_message = 'Authentication required'


class Forbidden(ServiceError):
    status = 403
    default_message = 'Access denied'


class NotFound(ServiceError):
    status = 404
    default_message = 'Not found'


class Conflict(ServiceError):
    status = 409
    default_message = 'Conflict'


class InternalError(ServiceError):
    status = 500


class DeliveryError(InternalError):
    """Email transport failed; callers decide whether it is fatal."""
    default_message = 'Email delivery failed'


__all__ = [
    'ServiceError', 'ValidationError', 'Unauthorized', 'Forbidden',
    'NotFound', 'Conflict', 'InternalError', 'DeliveryError',
]
