"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from authorhub.config.permissions_config import (
    ADMIN_ONLY_FEATURES, parse_permission, permissions_from_rows
)
from authorhub.database.supabase_client import get_supabase, get_service_supabase
from authorhub.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (role, permission names)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_admin_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Optional[Client] = Depends(get_service_supabase)
) -> AuthService:
    """AuthService able to write user_roles with the service role client"""
    return AuthService(supabase, admin_client=admin_client)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_user_role(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> str:
    """Return the highest role from user_roles (admin > moderator > user). Uses request-scoped cache when provided."""
    if cache is not None and "role" in cache:
        return cache["role"]
    try:
        result = supabase.table("user_roles")\
            .select("role")\
            .eq("user_id", user_id)\
            .execute()
        roles = {r["role"] for r in result.data} if result.data else set()
    except Exception as e:
        logger.error(f"Error getting user role: {e}")
        roles = set()
    if "admin" in roles:
        role = "admin"
    elif "moderator" in roles:
        role = "moderator"
    else:
        role = "user"
    if cache is not None:
        cache["role"] = role
    return role


def is_admin(user_data: dict, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> bool:
    """Check if user holds the admin role"""
    return get_user_role(user_data["id"], supabase, cache) == "admin"


def get_user_permissions(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[str]:
    """Get the "feature:action" permissions granted to a moderator. Populates request-scoped cache when provided."""
    if cache is not None and "permission_names" in cache:
        return cache["permission_names"]
    try:
        result = supabase.table("moderator_permissions")\
            .select("*")\
            .eq("user_id", user_id)\
            .execute()
        names = permissions_from_rows(result.data or [])
    except Exception as e:
        logger.error(f"Error getting moderator permissions: {e}")
        names = []
    if cache is not None:
        cache["permission_names"] = names
    return names


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    feature, _ = parse_permission(required_permission)

    def check_permission(
        request: Request,
        user_data: dict = Depends(get_current_user_id),
        supabase: Client = Depends(get_supabase)
    ) -> dict:
        """Dependency to check if user has required permission"""
        cache = _get_request_cache(request)
        role = get_user_role(user_data["id"], supabase, cache)
        if role == "admin":
            return user_data
        if role == "moderator" and feature not in ADMIN_ONLY_FEATURES:
            if required_permission in get_user_permissions(user_data["id"], supabase, cache):
                return user_data
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required: {required_permission}"
        )
    return check_permission


def require_admin(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Dependency allowing only users holding the admin role"""
    if not is_admin(user_data, supabase, _get_request_cache(request)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user_data


def get_access_cache(request: Request) -> Dict[str, Any]:
    """Dependency that returns request-scoped access cache (populated by require_permission when used)."""
    return _get_request_cache(request)


def content_scope(required_permission: str):
    """
    Dependency factory for user-owned content (books, blog posts, events).
    Any signed-in user acts on their own rows; admins and moderators holding
    required_permission act on every row. Sets user_data["manage_all"].
    """
    feature, _ = parse_permission(required_permission)

    def check_scope(
        request: Request,
        user_data: dict = Depends(get_current_user_id),
        supabase: Client = Depends(get_supabase)
    ) -> dict:
        cache = _get_request_cache(request)
        role = get_user_role(user_data["id"], supabase, cache)
        manage_all = role == "admin" or (
            role == "moderator"
            and feature not in ADMIN_ONLY_FEATURES
            and required_permission in get_user_permissions(user_data["id"], supabase, cache)
        )
        return {**user_data, "manage_all": manage_all}
    return check_scope


def check_owner_access(owner_id: Optional[str], user_data: dict) -> dict:
    """Allow if the scope covers every row or the row belongs to the current user"""
    if user_data.get("manage_all"):
        return user_data
    if owner_id and owner_id == user_data["id"]:
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only access your own content"
    )
