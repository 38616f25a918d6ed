from supabase import Client
from authorhub.config.settings import settings
from authorhub.modules.users.schemas import (
    ProfileUpdate, ProfileResponse, AvatarResponse,
    ModeratorPermissionUpdate, ModeratorPermissionResponse
)
from authorhub.core.dependencies import get_user_role
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import HTTPException
import logging
import uuid

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> ProfileResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self, search: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[ProfileResponse]:
        """List profiles, newest first; search matches name or email"""
        try:
            query = self.supabase.table("profiles").select("*")
            if search:
                term = search.replace(",", " ").strip()
                query = query.or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [ProfileResponse(**user) for user in result.data or []]
        except Exception as e:
            logger.error(f"Error listing users: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_user(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update user profile"""
        update_data = profile_data.model_dump(exclude_unset=True)
        if not update_data:
            return self.get_user_by_id(user_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_user(self, user_id: str) -> bool:
        """Delete a profile with its roles and moderator permissions"""
        self.get_user_by_id(user_id)
        try:
            for table in ("moderator_permissions", "user_roles"):
                self.supabase.table(table)\
                    .delete()\
                    .eq("user_id", user_id)\
                    .execute()

            # auth.users is removed through Supabase Auth, not this table
            result = self.supabase.table("profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
            logger.info(f"User profile deleted: {user_id}")
            return bool(result.data)
        except Exception as e:
            logger.error(f"Error deleting user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def upload_avatar(self, user_id: str, content: bytes, content_type: Optional[str]) -> AvatarResponse:
        """Store an avatar image in the avatars bucket and point the profile at it"""
        extension = AVATAR_CONTENT_TYPES.get((content_type or "").lower())
        if not extension:
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported image type. Allowed: {', '.join(sorted(AVATAR_CONTENT_TYPES))}"
            )
        if not content:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(content) > settings.avatar_max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Avatar must be at most {settings.avatar_max_bytes // (1024 * 1024)} MB"
            )

        self.get_user_by_id(user_id)
        path = f"{user_id}/avatar-{uuid.uuid4().hex}.{extension}"
        try:
            bucket = self.supabase.storage.from_(settings.avatars_bucket)
            bucket.upload(path=path, file=content, file_options={"content-type": content_type, "upsert": "true"})
            public_url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Error uploading avatar for {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload avatar: {str(e)}")

        self.supabase.table("profiles")\
            .update({"avatar_url": public_url, "updated_at": datetime.now(timezone.utc).isoformat()})\
            .eq("id", user_id)\
            .execute()
        logger.info(f"Avatar uploaded for {user_id}: {path}")
        return AvatarResponse(avatar_url=public_url, path=path)

    def list_moderator_permissions(self, user_id: str) -> List[ModeratorPermissionResponse]:
        try:
            result = self.supabase.table("moderator_permissions")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("feature")\
                .execute()
            return [ModeratorPermissionResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing moderator permissions: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def set_moderator_permission(self, user_id: str,
                                 permission: ModeratorPermissionUpdate) -> ModeratorPermissionResponse:
        """Upsert the user's grants for one feature"""
        if get_user_role(user_id, self.supabase) != "moderator":
            raise HTTPException(status_code=400, detail="Permissions can only be granted to moderators")
        payload = {"user_id": user_id, **permission.model_dump()}
        try:
            result = self.supabase.table("moderator_permissions")\
                .upsert(payload, on_conflict="user_id,feature")\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save moderator permission")
            logger.info(f"Moderator permissions for {user_id} on {permission.feature} updated")
            return ModeratorPermissionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving moderator permission: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
