from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from datetime import datetime
from authorhub.config.permissions_config import FEATURES, ADMIN_ONLY_FEATURES
from authorhub.modules.auth.schemas import Role


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    mobile_number: Optional[str] = Field(None, max_length=30)
    country_code: Optional[str] = Field(None, max_length=5)
    website_url: Optional[str] = None
    slug: Optional[str] = Field(None, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    public_profile: Optional[bool] = None
    social_links: Optional[Any] = None
    specializations: Optional[List[str]] = None
    seo_title: Optional[str] = Field(None, max_length=70)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    mobile_number: Optional[str] = None
    country_code: Optional[str] = None
    website_url: Optional[str] = None
    slug: Optional[str] = None
    public_profile: Optional[bool] = None
    social_links: Optional[Any] = None
    specializations: Optional[List[str]] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[str] = None
    subscription_plan_id: Optional[str] = None
    theme_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvatarResponse(BaseModel):
    avatar_url: str
    path: str


class ModeratorPermissionUpdate(BaseModel):
    feature: str
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_approve: bool = False

    @field_validator("feature")
    @classmethod
    def check_feature(cls, v):
        if v not in FEATURES:
            raise ValueError(f"Unknown feature: {v}")
        if v in ADMIN_ONLY_FEATURES:
            raise ValueError(f"{v} is reserved for admins")
        return v


class ModeratorPermissionResponse(BaseModel):
    id: Optional[str] = None
    user_id: str
    feature: str
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_approve: bool = False

    class Config:
        from_attributes = True


class RoleAssignment(BaseModel):
    role: Role
