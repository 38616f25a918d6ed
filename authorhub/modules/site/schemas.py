from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any
from datetime import datetime


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, max_length=50)
    config: Dict[str, Any] = {}
    enabled: bool = True
    order_index: Optional[int] = None  # appended after the last section when omitted


class SectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    config: Optional[Dict[str, Any]] = None
    enabled: Optional[bool] = None
    order_index: Optional[int] = None


class SectionResponse(BaseModel):
    id: str
    title: str
    type: str
    config: Dict[str, Any] = {}
    enabled: bool = True
    order_index: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SectionReorder(BaseModel):
    section_ids: List[str] = Field(..., min_length=1)


class HeroBlockCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    config: Dict[str, Any] = {}
    enabled: bool = True
    preview_image_url: Optional[str] = None


class HeroBlockUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    enabled: Optional[bool] = None
    preview_image_url: Optional[str] = None


class HeroBlockResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    config: Dict[str, Any] = {}
    enabled: bool = True
    preview_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ThemeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    config: Dict[str, Any] = {}
    premium: bool = False
    preview_image_url: Optional[str] = None


class ThemeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    premium: Optional[bool] = None
    preview_image_url: Optional[str] = None


class ThemeResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    config: Dict[str, Any] = {}
    premium: bool = False
    preview_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
