"""
core/errors.py -- Domain error taxonomy for TaskGuard.

Every failure a caller can act on is a TaskGuardError subclass carrying the
HTTP status it maps to and a client-safe message. api/main.py registers one
exception handler for the base class and renders {"error": message}, so
use cases and auth dependencies raise these directly instead of building
HTTPExceptions.

Token validation raises TokenExpired separately from the TokenInvalid family
because the middleware answers "Token has expired" for the former and
"Invalid token" for everything else.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class TaskGuardError(Exception):
    """Base class for all domain errors. Never leaks internals to clients."""

    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 400 -- malformed input
# ---------------------------------------------------------------------------


class ValidationFailed(TaskGuardError):
    status_code = 400
    message = "Invalid input."


# ---------------------------------------------------------------------------
# 401 -- authentication
# ---------------------------------------------------------------------------


class AuthenticationFailure(TaskGuardError):
    status_code = 401
    message = "Authentication required."


class MissingAuthHeader(AuthenticationFailure):
    message = "Authorization header is required"


class MalformedAuthHeader(AuthenticationFailure):
    message = "Invalid authorization header"


class TokenExpired(AuthenticationFailure):
    message = "Token has expired"


class TokenInvalid(AuthenticationFailure):
    message = "Invalid token"


class TokenMalformed(TokenInvalid):
    """The string could not be parsed as a token, or lacks required claims."""


class TokenSignatureInvalid(TokenInvalid):
    """The signature does not verify against the configured secret."""


class UserNotFound(AuthenticationFailure):
    message = "user not found"


class WrongPassword(AuthenticationFailure):
    message = "wrong password"


# ---------------------------------------------------------------------------
# 403 -- authorization
# ---------------------------------------------------------------------------


class AuthorizationFailure(TaskGuardError):
    status_code = 403
    message = "Access denied."


class AdminRequired(AuthorizationFailure):
    message = "Admin access required"


# ---------------------------------------------------------------------------
# 404 / 409
# ---------------------------------------------------------------------------


class NotFoundError(TaskGuardError):
    status_code = 404
    message = "Not found."


class AccountNotFound(NotFoundError):
    message = "account not found"


class TaskNotFound(NotFoundError):
    message = "task not found"


class ConflictError(TaskGuardError):
    status_code = 409
    message = "Conflict."


class DuplicateUsername(ConflictError):
    message = "username already exists"


# ---------------------------------------------------------------------------
# 5xx
# ---------------------------------------------------------------------------


class OperationTimeout(TaskGuardError):
    status_code = 504
    message = "The operation timed out."


class HashingError(TaskGuardError):
    message = "Password hashing failed."


class SigningError(TaskGuardError):
    message = "Token signing failed."
