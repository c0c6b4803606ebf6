"""
api/routes/v1/auth.py -- Registration, login, and identity REST endpoints.

Routes:
  POST /api/v1/auth/register  -- create identity; returns a token (201)
  POST /api/v1/auth/login     -- password login; returns a token (201)
  GET  /api/v1/auth/me        -- current identity and its roles (requires auth)

Security:
  POST /register and /login are rate-limited per IP (LOGIN_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Bad username and bad password produce the same 401 so the response never
  reveals which half of the credential was wrong.
  Cache-Control: no-store on every response that carries a token.
  Tokens carry the numeric user id only, never the username.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import credential_rate_limit, limiter
from api.models import LoginRequest, MeResponse, RegisterRequest, TokenResponse
from auth.dependencies import require_authenticated
from auth.models import Claims, User
from auth.rbac import RBACRepository
from auth.store import UserStore
from auth.tokens import TokenService, authenticate_user, hash_password
from core.errors import BadRequest, Unauthorized

logger = logging.getLogger("rolegate.api.auth")

# Auth policy:
# - POST /api/v1/auth/register: public -- creating an identity needs no prior auth
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires a valid token (AUTHENTICATED_ONLY)
router = APIRouter()


def _token_response(request: Request, user_id: int) -> JSONResponse:
    token_service: TokenService = request.app.state.token_service
    token = token_service.issue(user_id)
    resp = JSONResponse(
        status_code=201,
        content=TokenResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=token_service.default_ttl_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(credential_rate_limit)
@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an identity and log it in immediately.

    The password is hashed with a fresh salt before it reaches the store.
    A taken username is reported as duplicate_name (409).
    """
    if body.password != body.confirm_password:
        raise BadRequest("passwords do not match")

    settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    hashed = hash_password(body.password, settings.bcrypt_rounds)
    user_id = user_store.create_user(User(username=body.username, hashed_password=hashed))
    logger.info("User registered: id=%d", user_id)
    return _token_response(request, user_id)


@limiter.limit(credential_rate_limit)
@router.post("/auth/login", response_model=TokenResponse, status_code=201)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed token."""
    settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password, settings.bcrypt_rounds)
    if user is None:
        resp = JSONResponse(
            status_code=Unauthorized.status_code,
            content={"error": {"code": Unauthorized.code, "message": "invalid credentials"}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    user_store.update_last_login(user.id)
    return _token_response(request, user.id)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, claims: Claims = Depends(require_authenticated)) -> MeResponse:
    """Return the identity behind the presented token and its role names."""
    user_store: UserStore = request.app.state.user_store
    rbac: RBACRepository = request.app.state.rbac
    user = user_store.get_by_id(claims.sub)
    if user is None:
        raise Unauthorized("invalid token")
    return MeResponse(
        user_id=user.id,
        username=user.username,
        roles=[r.name for r in rbac.list_roles_for_user(user.id)],
    )
