"""
API request and response models for Rolegate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
items/store.py, which own the internal domain representation. Route handlers
map between the two.

Password fields are request-only; no response model ever carries a password,
a hash, or the signing secret.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.database import MAX_ID

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    password/confirm_password equality is checked in the route so the caller
    receives a bad_request error rather than a generic validation failure.
    """

    username: str = Field(min_length=1, max_length=255, pattern=r"\S")
    password: str = Field(min_length=1, max_length=255)
    confirm_password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Returned by register and login. token is the only credential issued."""

    token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    user_id: int
    username: str
    roles: list[str]


# ---------------------------------------------------------------------------
# RBAC administration
# ---------------------------------------------------------------------------


class RoleCreate(BaseModel):
    """Request body for POST /api/v1/roles."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    role_type: str = Field(min_length=1, max_length=255)


class PermissionCreate(BaseModel):
    """Request body for POST /api/v1/permissions.

    name is matched by exact string in authorization checks, so it is not
    case-folded; surrounding whitespace is stripped.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    permission_type: str = Field(min_length=1, max_length=255)


class RolePermissionCreate(BaseModel):
    """Request body for POST /api/v1/role-permissions."""

    role_id: int = Field(gt=0, le=MAX_ID)
    permission_id: int = Field(gt=0, le=MAX_ID)


class UserRoleCreate(BaseModel):
    """Request body for POST /api/v1/user-roles."""

    user_id: int = Field(gt=0, le=MAX_ID)
    role_id: int = Field(gt=0, le=MAX_ID)


class RoleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    role_type: str


class PermissionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    permission_type: str


class RolePermissionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    role_id: int
    permission_id: int


class UserRoleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    role_id: int


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class ItemWrite(BaseModel):
    """Request body for POST /api/v1/items and PUT /api/v1/items/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)


class ItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    created_at: str
