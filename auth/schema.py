"""
auth/schema.py -- SQLAlchemy Core table definitions for identities and the RBAC graph.

Five relations make up the identity and RBAC state (items lives in items/store.py):

    users             identities and bcrypt password hashes
    roles             named permission bundles
    permissions       named capabilities (name is the gate lookup key)
    role_permissions  role <-> permission edges, composite PK
    users_roles       user <-> role edges, composite PK

The composite primary keys are what turn a repeated grant or assignment into
an IntegrityError, which the repository reports as DuplicateEdge. Foreign
keys are declared, but the repository also checks endpoint existence in code
so referential integrity holds even on stores that do not enforce FKs.

All tables share one MetaData so create_all() can order the FK dependencies.
"""

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("last_login", String(32)),  # ISO 8601 timestamp of last successful login
)

roles = Table(
    "roles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("role_type", String(255), nullable=False),
)

permissions = Table(
    "permissions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("permission_type", String(255), nullable=False),
)

role_permissions = Table(
    "role_permissions",
    metadata,
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id"), primary_key=True),
)

users_roles = Table(
    "users_roles",
    metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)
