from fastapi import APIRouter, Depends, File, Query, UploadFile
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.users.schemas import (
    ProfileUpdate, ProfileResponse, AvatarResponse,
    ModeratorPermissionUpdate, ModeratorPermissionResponse, RoleAssignment
)
from authorhub.modules.users.service import UserService
from authorhub.core.dependencies import (
    get_admin_auth_service, get_current_user_id, require_admin, require_permission
)
from authorhub.modules.auth.schemas import RoleChangeResponse
from authorhub.modules.auth.service import AuthService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.get_user_by_id(user_data["id"])


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.update_user(user_data["id"], profile_data)


@router.post("/me/avatar", response_model=AvatarResponse, status_code=201)
async def upload_my_avatar(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Upload an avatar image (JPEG, PNG, GIF or WebP)"""
    content = await file.read()
    return service.upload_avatar(user_data["id"], content, file.content_type)


@router.get("", response_model=List[ProfileResponse])
async def list_users(
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(require_permission("users:view")),
    service: UserService = Depends(get_user_service)
):
    """List users, optionally searching name and email"""
    return service.list_users(search=search, limit=limit, offset=offset)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(require_permission("users:view")),
    service: UserService = Depends(get_user_service)
):
    return service.get_user_by_id(user_id)


@router.patch("/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(require_permission("users:edit")),
    service: UserService = Depends(get_user_service)
):
    return service.update_user(user_id, profile_data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    user_data: Dict = Depends(require_permission("users:delete")),
    service: UserService = Depends(get_user_service)
):
    service.delete_user(user_id)
    return None


@router.post("/{user_id}/avatar", response_model=AvatarResponse, status_code=201)
async def upload_avatar(
    user_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(require_permission("users:edit")),
    service: UserService = Depends(get_user_service)
):
    content = await file.read()
    return service.upload_avatar(user_id, content, file.content_type)


@router.put("/{user_id}/role", response_model=RoleChangeResponse)
async def set_user_role(
    user_id: str,
    role_data: RoleAssignment,
    current_user: Dict = Depends(require_admin),
    auth_service: AuthService = Depends(get_admin_auth_service)
):
    """Assign a role (admin only)"""
    return auth_service.set_user_role(user_id, role_data.role)


@router.get("/{user_id}/permissions", response_model=List[ModeratorPermissionResponse])
async def list_permissions(
    user_id: str,
    current_user: Dict = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    return service.list_moderator_permissions(user_id)


@router.put("/{user_id}/permissions", response_model=ModeratorPermissionResponse)
async def set_permission(
    user_id: str,
    permission: ModeratorPermissionUpdate,
    current_user: Dict = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Grant or revoke a moderator's actions on one feature (admin only)"""
    return service.set_moderator_permission(user_id, permission)
