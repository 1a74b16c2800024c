"""
Role-Based Access Control (RBAC) dependencies for FastAPI.
Provides reusable dependency functions to protect routes with feature checks
evaluated against the caller's session snapshot.

The app must carry the wired services: app.state.rbac = build_services(...)
"""

from fastapi import Depends, Header, HTTPException, Request
from loguru import logger

from rbac.role_config import Feature
from rbac.schemas import Role, RoleSnapshot

# ==================== DEPENDENCY FUNCTIONS ====================


def _services(request: Request):
    services = getattr(request.app.state, "rbac", None)
    if services is None:
        raise RuntimeError("RBAC services not installed on app.state.rbac")
    return services


async def verify_snapshot_token(request: Request, authorization: str = Header(None)) -> RoleSnapshot:
    """
    Dependency: Verify the bearer token and return its role snapshot.
    """
    if not authorization or "Bearer " not in authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token")

    snapshots = _services(request).snapshots
    if snapshots is None:
        logger.error("Session snapshots disabled (SNAPSHOT_SECRET not set), cannot verify tokens")
        raise HTTPException(status_code=503, detail="Session verification is not configured")

    token = authorization.replace("Bearer ", "").strip()
    snapshot = snapshots.verify_token(token)

    if snapshot is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return snapshot


def require_feature(feature: Feature, library_param: str = "library_id"):
    """
    Dependency factory: Require a feature.
    For library-scoped features the library id is taken from the path,
    then the query string.
    """
    async def _require_feature(
        request: Request,
        snapshot: RoleSnapshot = Depends(verify_snapshot_token)
    ) -> RoleSnapshot:
        library_id = request.path_params.get(library_param) or request.query_params.get(library_param)

        if not _services(request).policy.can_access_feature(snapshot, feature, library_id):
            logger.warning(
                f"User {snapshot.user_id} ({snapshot.role.value}) denied feature "
                f"{Feature(feature).value}" + (f" in library {library_id}" if library_id else "")
            )
            raise HTTPException(
                status_code=403,
                detail=f"Feature '{Feature(feature).value}' not permitted"
            )

        return snapshot

    return _require_feature


# ==================== COMMONLY USED DEPENDENCIES ====================

async def require_admin(snapshot: RoleSnapshot = Depends(verify_snapshot_token)) -> RoleSnapshot:
    """
    Dependency: Require admin role.
    """
    if snapshot.role != Role.ADMIN:
        logger.warning(f"User {snapshot.user_id} attempted to access admin endpoint")
        raise HTTPException(status_code=403, detail="Role 'ADMIN' required")
    return snapshot


async def require_manage_content(snapshot: RoleSnapshot = Depends(verify_snapshot_token)) -> RoleSnapshot:
    """
    Dependency: Require a librarian or admin.
    """
    if snapshot.role == Role.USER:
        logger.warning(f"User {snapshot.user_id} attempted to access content management")
        raise HTTPException(status_code=403, detail="Librarian or admin role required")
    return snapshot
