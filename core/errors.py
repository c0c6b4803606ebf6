"""
core/errors.py -- Typed failure outcomes shared by every layer of Rolegate.

Stores and services raise these instead of returning sentinels or letting
driver exceptions escape. api/main.py registers a single exception handler
that renders any ServiceError as the standard error envelope:

    {"error": {"code": "<code>", "message": "<short human message>"}}

Each subclass fixes its machine-readable code and HTTP status as class
attributes, so raising sites only ever choose the class and (optionally) a
short message. Messages must never contain the signing secret, password
hashes, or raw token contents.

Layer rule: core/ is the kernel. This module imports nothing from the project.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for all expected, typed failures."""

    code: str = "internal_error"
    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------


class BadRequest(ServiceError):
    """Malformed input or a password / confirmation mismatch."""

    code = "bad_request"
    status_code = 400
    message = "bad request"


class Unauthorized(ServiceError):
    """Missing, malformed, invalid, or expired token, or bad login credentials.

    Login failures never say which half of the credential was wrong.
    """

    code = "unauthorized"
    status_code = 401
    message = "unauthorized"


class TokenError(Unauthorized):
    """Base for Token Service verification failures."""

    message = "invalid token"


class MalformedToken(TokenError):
    """The token is not a well-formed JWS, or its claims are missing or ill-typed."""


class InvalidSignature(TokenError):
    """The signature does not verify under the process signing key."""


class TokenExpired(TokenError):
    message = "expired"


class Forbidden(ServiceError):
    """Authenticated identity lacks the required permission."""

    code = "forbidden"
    status_code = 403
    message = "forbidden"


class NotFound(ServiceError):
    code = "not_found"
    status_code = 404
    message = "not found"


class DuplicateName(ServiceError):
    """A role, permission, or username with that unique name already exists."""

    code = "duplicate_name"
    status_code = 409
    message = "name already exists"


class DuplicateEdge(ServiceError):
    """The role-permission or user-role edge already exists."""

    code = "duplicate_edge"
    status_code = 409
    message = "relation already exists"


# ---------------------------------------------------------------------------
# Server errors
# ---------------------------------------------------------------------------


class Unavailable(ServiceError):
    """Storage pool exhausted or backing store unreachable. Safe to retry."""

    code = "unavailable"
    status_code = 503
    message = "service temporarily unavailable"


class Internal(ServiceError):
    """Hashing, signing, or unexpected storage failure."""
