from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, List, Literal, Optional

Role = Literal["admin", "moderator", "user"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: Optional[str] = Field(None, max_length=100)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    role: Role
    permissions: List[str] = []
    user_metadata: Dict[str, Any] = {}


class SetRoleRequest(BaseModel):
    user_id: str
    role: Role


class RoleChangeResponse(BaseModel):
    user_id: str
    role: Role
    permissions_cleared: int = 0
