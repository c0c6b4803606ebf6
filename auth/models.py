"""
auth/models.py -- Domain dataclasses for authentication and authorization entities.

Pattern: Data class (pure data container, zero logic). Stores own the SQL,
routes own the HTTP contract; these dataclasses are the shape both agree on.

Layer rule: no imports from api/ or items/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    id is the only stable subject key -- tokens carry it, the gate checks it.
    username is display/login data and may change; never key authorization on it.
    hashed_password is a bcrypt hash and is never logged or returned by the API.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    last_login: str | None = None


@dataclass
class Role:
    """A named bundle of permissions. role_type is a free-form category tag."""

    name: str
    role_type: str
    id: int | None = None


@dataclass
class Permission:
    """A named capability. name is matched by exact string in authorization checks."""

    name: str
    permission_type: str
    id: int | None = None


@dataclass(frozen=True)
class RolePermission:
    role_id: int
    permission_id: int


@dataclass(frozen=True)
class UserRole:
    user_id: int
    role_id: int


@dataclass(frozen=True)
class Claims:
    """Decoded token payload: subject identity id and absolute expiry (epoch seconds).

    Never persisted. Rebuilt from the signed token on every request and
    attached to request.state.claims by the gate.
    """

    sub: int
    exp: int
