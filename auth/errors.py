"""
auth/errors.py -- Typed failures raised by the auth service.

The service layer never imports FastAPI. It raises these instead, and
api/main.py maps every AuthError onto the shared error envelope:

    {"error": {"code": ..., "message": ..., "detail": ...}}

status_code travels with the exception so the mapping stays a single handler
rather than one handler per subclass.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected auth workflow failure."""

    status_code: int = 400
    code: str = "auth_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class BadRequestError(AuthError):
    status_code = 400
    code = "bad_request"


class UnauthorizedError(AuthError):
    status_code = 401
    code = "unauthorized"


class NotFoundError(AuthError):
    status_code = 404
    code = "not_found"


class ConflictError(AuthError):
    status_code = 409
    code = "conflict"


class TooManyAttemptsError(AuthError):
    """The originating address is locked out after repeated failed logins."""

    status_code = 429
    code = "too_many_attempts"

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = max(1, int(retry_after))
        minutes = -(-self.retry_after // 60)
        super().__init__(
            message or f"Too many failed attempts. Try again in {minutes} minute{'s' if minutes != 1 else ''}",
        )


class MailDeliveryError(AuthError):
    status_code = 500
    code = "mail_delivery_failed"

    def __init__(self, message: str = "Email could not be sent.") -> None:
        super().__init__(message)
