"""
core/errors.py -- Error kinds shared by the service layer and the HTTP layer.

Services raise these; api/main.py maps every AppError subclass to the same
JSON error envelope using the class-level status_code and code. Services never
import fastapi, so they stay testable without an HTTP stack.

Layer rule: core/ is the kernel. No imports from api/, auth/, or judgments/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that carry an HTTP status and a stable code."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    code = "validation_error"


class AuthError(AppError):
    """Missing, invalid, or expired credentials.

    Login failures always use the same message so the response does not tell
    an attacker whether the email or the password was wrong.
    """

    status_code = 401
    code = "unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    """Uniqueness violation reported by the store."""

    status_code = 409
    code = "conflict"

