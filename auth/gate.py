"""
auth/gate.py -- The authorization gate decision function.

authorize() is the whole per-request policy, written as a pure function of
its inputs so it can be tested without HTTP and composed by any transport:

    header absent                      -> Unauthorized("missing token")
    header not "Bearer <token>"        -> Unauthorized("invalid token format")
    TokenService.verify fails          -> Unauthorized("invalid token" | "expired")
    required == AUTHENTICATED_ONLY     -> claims
    has_permission(claims.sub, required)
        True                           -> claims
        False                          -> Forbidden("forbidden")

It is a strict linear gate: the first failure ends evaluation, nothing is
retried, and the permission branch performs exactly one repository read.
Nothing is cached between calls -- all state lives in the incoming token.

auth/dependencies.py adapts this to FastAPI (one RequirePermission value per
route) and runs it off the event loop.

Layer rule: no imports from api/ or items/, and no FastAPI imports here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.models import Claims
from core.errors import Forbidden, TokenError, TokenExpired, Unauthorized

if TYPE_CHECKING:
    from auth.rbac import RBACRepository
    from auth.tokens import TokenService

logger = logging.getLogger("rolegate.auth.gate")

# Reserved required-permission value: a valid token is sufficient, no
# permission lookup is made.
AUTHENTICATED_ONLY = "AUTHENTICATED-ONLY"

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an Authorization header value.

    Raises Unauthorized("missing token") if the header is absent or empty and
    Unauthorized("invalid token format") if it is not exactly "Bearer <token>".
    """
    if not authorization:
        raise Unauthorized("missing token")
    if not authorization.startswith(_BEARER_PREFIX):
        raise Unauthorized("invalid token format")
    token = authorization[len(_BEARER_PREFIX) :]
    if not token or any(ch.isspace() for ch in token):
        raise Unauthorized("invalid token format")
    return token


def authorize(
    authorization: str | None,
    required: str,
    token_service: TokenService,
    repository: RBACRepository,
) -> Claims:
    """Authenticate the Authorization header and, unless required is
    AUTHENTICATED_ONLY, check that the identity holds the required permission.

    Returns the decoded Claims for the caller to attach to the request context.
    """
    try:
        token = extract_bearer_token(authorization)
        try:
            claims = token_service.verify(token)
        except TokenExpired as exc:
            raise Unauthorized("expired") from exc
        except TokenError as exc:
            raise Unauthorized("invalid token") from exc
    except Unauthorized as exc:
        logger.debug("Gate rejected request: %s", exc.message)
        raise

    if required == AUTHENTICATED_ONLY:
        return claims

    if not repository.has_permission(claims.sub, required):
        logger.debug("Gate denied user %d: lacks %s", claims.sub, required)
        raise Forbidden("forbidden")
    return claims
