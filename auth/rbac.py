"""
auth/rbac.py -- RBAC repository: the role/permission graph and the permission check.

Pattern: Repository + Data Mapper. RBACRepository owns every query over
roles, permissions, role_permissions and users_roles; _row_to_* are the mappers.

The hot path is has_permission(), run by the authorization gate on every
protected request. It is a single EXISTS semi-join:

    SELECT EXISTS (
        SELECT users_roles.role_id
        FROM users_roles
        JOIN role_permissions ON users_roles.role_id = role_permissions.role_id
        JOIN permissions      ON role_permissions.permission_id = permissions.id
        WHERE users_roles.user_id = :user_id AND permissions.name = :name
    )

One round trip regardless of how many roles the identity holds; the effective
permission set is never loaded or materialized.

Edge creation (grant_permission, assign_role) checks that both endpoints exist
and inserts inside one transaction. A missing endpoint is NotFound; a repeated
edge hits the composite primary key and is reported as DuplicateEdge rather
than escaping as a driver error.

Layer rule: no imports from api/ or items/.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Permission, Role, RolePermission, UserRole
from auth.schema import metadata, permissions, role_permissions, roles, users, users_roles
from core.database import connection, ping, transaction
from core.errors import DuplicateEdge, DuplicateName, NotFound

logger = logging.getLogger("rolegate.auth.rbac")


class RBACRepository:
    """Repository for the role/permission graph.

    Usage:
        repo = RBACRepository(engine)
        editor = repo.create_role("editor", "staff")
        write = repo.create_permission("ITEM_WRITE", "items")
        repo.grant_permission(editor.id, write.id)
        repo.assign_role(user_id, editor.id)
        repo.has_permission(user_id, "ITEM_WRITE")  # True
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Authorization query
    # ------------------------------------------------------------------

    def has_permission(self, user_id: int, permission_name: str) -> bool:
        """Return True iff some role assigned to user_id is granted permission_name."""
        granted = (
            select(users_roles.c.role_id)
            .select_from(
                users_roles.join(role_permissions, users_roles.c.role_id == role_permissions.c.role_id).join(
                    permissions, role_permissions.c.permission_id == permissions.c.id
                )
            )
            .where(users_roles.c.user_id == user_id)
            .where(permissions.c.name == permission_name)
            .exists()
        )
        with connection(self.engine) as conn:
            return bool(conn.execute(select(granted)).scalar())

    # ------------------------------------------------------------------
    # Roles and permissions
    # ------------------------------------------------------------------

    def create_role(self, name: str, role_type: str) -> Role:
        """Insert a role. Raises DuplicateName if the name is taken."""
        try:
            with transaction(self.engine) as conn:
                result = conn.execute(roles.insert().values(name=name, role_type=role_type))
                role_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateName(f"role {name!r} already exists") from exc
        logger.info("Role created: id=%d name=%s", role_id, name)
        return Role(id=role_id, name=name, role_type=role_type)

    def create_permission(self, name: str, permission_type: str) -> Permission:
        """Insert a permission. Raises DuplicateName if the name is taken."""
        try:
            with transaction(self.engine) as conn:
                result = conn.execute(permissions.insert().values(name=name, permission_type=permission_type))
                permission_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateName(f"permission {name!r} already exists") from exc
        logger.info("Permission created: id=%d name=%s", permission_id, name)
        return Permission(id=permission_id, name=name, permission_type=permission_type)

    def get_role_by_name(self, name: str) -> Role | None:
        with connection(self.engine) as conn:
            row = conn.execute(roles.select().where(roles.c.name == name)).fetchone()
        return _row_to_role(row) if row is not None else None

    def get_permission_by_name(self, name: str) -> Permission | None:
        with connection(self.engine) as conn:
            row = conn.execute(permissions.select().where(permissions.c.name == name)).fetchone()
        return _row_to_permission(row) if row is not None else None

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def grant_permission(self, role_id: int, permission_id: int) -> RolePermission:
        """Attach permission_id to role_id.

        Raises NotFound if either endpoint is missing, DuplicateEdge if the
        grant already exists. The effective permission set is unchanged by a
        rejected duplicate.
        """
        try:
            with transaction(self.engine) as conn:
                _require(conn, roles, role_id, "role")
                _require(conn, permissions, permission_id, "permission")
                conn.execute(role_permissions.insert().values(role_id=role_id, permission_id=permission_id))
        except IntegrityError as exc:
            raise DuplicateEdge("permission already granted to role") from exc
        logger.info("Permission %d granted to role %d", permission_id, role_id)
        return RolePermission(role_id=role_id, permission_id=permission_id)

    def assign_role(self, user_id: int, role_id: int) -> UserRole:
        """Assign role_id to user_id.

        Raises NotFound if the user or role is missing, DuplicateEdge if the
        assignment already exists.
        """
        try:
            with transaction(self.engine) as conn:
                _require(conn, users, user_id, "user")
                _require(conn, roles, role_id, "role")
                conn.execute(users_roles.insert().values(user_id=user_id, role_id=role_id))
        except IntegrityError as exc:
            raise DuplicateEdge("role already assigned to user") from exc
        logger.info("Role %d assigned to user %d", role_id, user_id)
        return UserRole(user_id=user_id, role_id=role_id)

    def list_permissions_for_role(self, role_id: int) -> list[Permission]:
        """Return the permissions granted to role_id, ordered by name. Empty if none."""
        stmt = (
            select(permissions)
            .select_from(permissions.join(role_permissions, role_permissions.c.permission_id == permissions.c.id))
            .where(role_permissions.c.role_id == role_id)
            .order_by(permissions.c.name)
        )
        with connection(self.engine) as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_permission(r) for r in rows]

    def list_roles_for_user(self, user_id: int) -> list[Role]:
        """Return the roles assigned to user_id, ordered by name. Empty if none."""
        stmt = (
            select(roles)
            .select_from(roles.join(users_roles, users_roles.c.role_id == roles.c.id))
            .where(users_roles.c.user_id == user_id)
            .order_by(roles.c.name)
        )
        with connection(self.engine) as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_role(r) for r in rows]

    def ping(self) -> bool:
        return ping(self.engine)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require(conn: Connection, table, row_id: int, kind: str) -> None:
    """Raise NotFound unless table has a row with the given id."""
    found = conn.execute(select(table.c.id).where(table.c.id == row_id)).first()
    if found is None:
        raise NotFound(f"{kind} {row_id} not found")


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_role(row) -> Role:
    return Role(id=row.id, name=row.name, role_type=row.role_type)


def _row_to_permission(row) -> Permission:
    return Permission(id=row.id, name=row.name, permission_type=row.permission_type)
