"""
auth/bootstrap.py -- First-administrator provisioning.

With admin routes protected, a fresh deployment has nobody who can create
roles or grant permissions. ensure_admin() closes that loop from the CLI
(python main.py create-admin): it creates the user, the "admin" role and the
admin permission if they are missing, then grants and assigns them.

Every step tolerates the object already existing, so the command can be
re-run safely. An existing user keeps its current password.

Layer rule: no imports from api/ or items/.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.rbac import RBACRepository
from auth.store import UserStore
from auth.tokens import hash_password
from core.errors import DuplicateEdge

logger = logging.getLogger("rolegate.auth.bootstrap")

ADMIN_ROLE = "admin"


def ensure_admin(
    user_store: UserStore,
    rbac: RBACRepository,
    username: str,
    password: str,
    admin_permission: str,
    rounds: int = 12,
) -> int:
    """Make username an administrator holding admin_permission. Returns the user id."""
    user = user_store.get_by_username(username)
    if user is None:
        user_id = user_store.create_user(User(username=username, hashed_password=hash_password(password, rounds)))
        logger.info("Admin user created: id=%d", user_id)
    else:
        user_id = user.id
        logger.info("Admin user already exists: id=%d", user_id)

    role = rbac.get_role_by_name(ADMIN_ROLE) or rbac.create_role(ADMIN_ROLE, "system")
    permission = rbac.get_permission_by_name(admin_permission) or rbac.create_permission(admin_permission, "system")

    try:
        rbac.grant_permission(role.id, permission.id)
    except DuplicateEdge:
        pass
    try:
        rbac.assign_role(user_id, role.id)
    except DuplicateEdge:
        pass
    return user_id
