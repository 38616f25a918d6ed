from fastapi import APIRouter, Depends, HTTPException, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from authorhub.database.supabase_client import get_supabase, get_service_supabase
from authorhub.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    CurrentUserResponse, SetRoleRequest, RoleChangeResponse
)
from authorhub.modules.auth.service import AuthService
from authorhub.modules.security.service import SecurityService
from authorhub.core.dependencies import (
    get_admin_auth_service, get_auth_service, get_current_user_id, get_user_role,
    get_user_permissions, require_admin, get_access_cache
)
from authorhub.core.rate_limit import limiter, PUBLIC_RATE_LIMIT
from authorhub.config.permissions_config import get_permission_matrix
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def login(
    login_data: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    supabase: Client = Depends(get_supabase),
    admin_client: Optional[Client] = Depends(get_service_supabase)
):
    """Login and get access token. Failed attempts are written to security_logs."""
    try:
        return service.login(login_data)
    except HTTPException as e:
        if e.status_code == 401:
            SecurityService(admin_client or supabase).record_failed_login(
                login_data.email,
                request.client.host if request.client else None,
                request.headers.get("user-agent")
            )
        raise


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    cache: Dict = Depends(get_access_cache),
    supabase: Client = Depends(get_supabase),
):
    """Current user with role and "feature:action" permissions (drives the admin UI)."""
    role = get_user_role(current_user["id"], supabase, cache)
    if role == "admin":
        permissions: List[str] = [p["name"] for p in get_permission_matrix()["permissions"]]
    elif role == "moderator":
        permissions = get_user_permissions(current_user["id"], supabase, cache)
    else:
        permissions = []
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        role=role,
        permissions=permissions,
        user_metadata=current_user.get("user_metadata") or {},
    )


@router.get("/permissions")
async def permission_matrix(current_user: Dict = Depends(require_admin)):
    """Every feature:action pair, flagged when reserved for admins"""
    return get_permission_matrix()


@router.post("/set-role", response_model=RoleChangeResponse)
async def set_role(
    role_request: SetRoleRequest,
    current_user: Dict = Depends(require_admin),
    service: AuthService = Depends(get_admin_auth_service)
):
    """Set a user's role (admin only)"""
    return service.set_user_role(role_request.user_id, role_request.role)
