"""
auth/dependencies.py -- FastAPI Depends() helpers that put the gate in front of routes.

Each protected route declares the permission it needs as a dependency value:

    @router.post("/items", status_code=201)
    def create_item(claims: Claims = Depends(RequirePermission("ITEM_WRITE"))): ...

    @router.get("/auth/me")
    def me(claims: Claims = Depends(RequirePermission(AUTHENTICATED_ONLY))): ...

The required permission is configuration attached per route, not a subclass.
RequirePermission reads the shared TokenService and RBACRepository from
app.state (wired once in the lifespan), runs auth.gate.authorize() in the
worker threadpool so the blocking permission query never stalls the event
loop, and stores the decoded claims on request.state.claims for downstream
handlers.

Failures propagate as ServiceError subclasses (Unauthorized / Forbidden /
Unavailable); api/main.py renders them. Nothing here retries.

Layer rule: no imports from api/ or items/. FastAPI/Starlette imports are
allowed because this module is part of the dependency injection system.
"""

from __future__ import annotations

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from auth.gate import AUTHENTICATED_ONLY, authorize
from auth.models import Claims


class RequirePermission:
    """Dependency that gates a route on a required permission name.

    Use AUTHENTICATED_ONLY when any valid token is enough.
    """

    def __init__(self, required: str) -> None:
        self.required = required

    async def __call__(self, request: Request) -> Claims:
        claims = await run_in_threadpool(
            authorize,
            request.headers.get("Authorization"),
            self.required,
            request.app.state.token_service,
            request.app.state.rbac,
        )
        request.state.claims = claims
        return claims


require_authenticated = RequirePermission(AUTHENTICATED_ONLY)


async def require_rbac_admin(request: Request) -> Claims | None:
    """Gate for role/permission administration routes.

    Requires settings.admin_permission. When PROTECT_ADMIN_ROUTES is false the
    routes are open to anonymous callers (legacy behaviour) and this returns
    None without inspecting the request.
    """
    settings = request.app.state.settings
    if not settings.protect_admin_routes:
        return None
    return await RequirePermission(settings.admin_permission)(request)
