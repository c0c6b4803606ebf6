"""
api/routes/v1/rbac.py -- Role and permission administration endpoints.

Routes:
  POST /api/v1/roles                        -- create role
  POST /api/v1/permissions                  -- create permission
  POST /api/v1/role-permissions             -- grant permission to role
  POST /api/v1/user-roles                   -- assign role to user
  GET  /api/v1/roles/{role_id}/permissions  -- permissions granted to a role
  GET  /api/v1/users/{user_id}/roles        -- roles assigned to a user

Every route sits behind require_rbac_admin, which demands ADMIN_PERMISSION
(default "RBAC_ADMIN"). Setting PROTECT_ADMIN_ROUTES=false opens them to
anonymous callers; the lifespan logs a warning when that happens.

Outcomes:
  duplicate role/permission name  -> 409 duplicate_name
  repeated grant or assignment    -> 409 duplicate_edge
  edge to a missing endpoint      -> 404 not_found
  list with no edges              -> 200 []
"""

from fastapi import APIRouter, Depends, Path, Request

from api.models import (
    PermissionCreate,
    PermissionResponse,
    RoleCreate,
    RolePermissionCreate,
    RolePermissionResponse,
    RoleResponse,
    UserRoleCreate,
    UserRoleResponse,
)
from auth.dependencies import require_rbac_admin
from auth.rbac import RBACRepository
from core.database import MAX_ID

# Router-level dependency applies the admin gate to every route registered on
# this router, so individual handlers don't each repeat it.
router = APIRouter(dependencies=[Depends(require_rbac_admin)])


@router.post("/roles", response_model=RoleResponse, status_code=201)
def create_role(request: Request, body: RoleCreate) -> RoleResponse:
    rbac: RBACRepository = request.app.state.rbac
    role = rbac.create_role(body.name, body.role_type)
    return RoleResponse(id=role.id, name=role.name, role_type=role.role_type)


@router.post("/permissions", response_model=PermissionResponse, status_code=201)
def create_permission(request: Request, body: PermissionCreate) -> PermissionResponse:
    rbac: RBACRepository = request.app.state.rbac
    permission = rbac.create_permission(body.name, body.permission_type)
    return PermissionResponse(
        id=permission.id,
        name=permission.name,
        permission_type=permission.permission_type,
    )


@router.post("/role-permissions", response_model=RolePermissionResponse, status_code=201)
def grant_permission(request: Request, body: RolePermissionCreate) -> RolePermissionResponse:
    """Grant a permission to a role. A repeated grant is a 409, not a no-op."""
    rbac: RBACRepository = request.app.state.rbac
    edge = rbac.grant_permission(body.role_id, body.permission_id)
    return RolePermissionResponse(role_id=edge.role_id, permission_id=edge.permission_id)


@router.post("/user-roles", response_model=UserRoleResponse, status_code=201)
def assign_role(request: Request, body: UserRoleCreate) -> UserRoleResponse:
    """Assign a role to a user. A repeated assignment is a 409, not a no-op."""
    rbac: RBACRepository = request.app.state.rbac
    edge = rbac.assign_role(body.user_id, body.role_id)
    return UserRoleResponse(user_id=edge.user_id, role_id=edge.role_id)


@router.get("/roles/{role_id}/permissions", response_model=list[PermissionResponse])
def list_role_permissions(request: Request, role_id: int = Path(gt=0, le=MAX_ID)) -> list[PermissionResponse]:
    rbac: RBACRepository = request.app.state.rbac
    return [
        PermissionResponse(id=p.id, name=p.name, permission_type=p.permission_type)
        for p in rbac.list_permissions_for_role(role_id)
    ]


@router.get("/users/{user_id}/roles", response_model=list[RoleResponse])
def list_user_roles(request: Request, user_id: int = Path(gt=0, le=MAX_ID)) -> list[RoleResponse]:
    rbac: RBACRepository = request.app.state.rbac
    return [RoleResponse(id=r.id, name=r.name, role_type=r.role_type) for r in rbac.list_roles_for_user(user_id)]
