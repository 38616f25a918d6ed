from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from typing import Optional, Dict, List, Literal
from datetime import datetime

_http_url = TypeAdapter(HttpUrl)


def _bounded_text(value: str, max_length: int, required_message: str, too_long_message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(required_message)
    if len(value) > max_length:
        raise ValueError(too_long_message)
    return value


def _optional_url(value: Optional[str], message: str) -> str:
    if not value:
        return ""
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError(message)
    return value


class CookieSettingsBase(BaseModel):
    show_banner: bool = True
    banner_title: str = "We use cookies"
    banner_message: str = (
        "We use cookies to enhance your experience, analyze site traffic, and for marketing purposes. "
        'By clicking "Accept All", you consent to our use of cookies.'
    )
    accept_button_text: str = "Accept All"
    reject_button_text: str = "Reject All"
    customize_button_text: str = "Customize"
    privacy_policy_url: Optional[str] = ""
    cookie_policy_url: Optional[str] = ""
    banner_position: Literal["bottom", "top", "bottom-left", "bottom-right"] = "bottom"
    theme: Literal["light", "dark"] = "dark"
    primary_color: Optional[str] = None
    consent_mode: Literal["opt-in", "opt-out"] = "opt-in"
    consent_expiry_days: int = Field(365, ge=1, le=3650)
    auto_block_scripts: bool = True
    show_decline_button: bool = True
    force_consent: bool = False
    respect_dnt: bool = True

    @field_validator("banner_title")
    @classmethod
    def check_title(cls, v):
        return _bounded_text(v, 100, "Banner title is required", "Title must be less than 100 characters")

    @field_validator("banner_message")
    @classmethod
    def check_message(cls, v):
        return _bounded_text(v, 500, "Banner message is required", "Message must be less than 500 characters")

    @field_validator("accept_button_text")
    @classmethod
    def check_accept_text(cls, v):
        return _bounded_text(v, 50, "Accept button text is required", "Text must be less than 50 characters")

    @field_validator("reject_button_text")
    @classmethod
    def check_reject_text(cls, v):
        return _bounded_text(v, 50, "Reject button text is required", "Text must be less than 50 characters")

    @field_validator("customize_button_text")
    @classmethod
    def check_customize_text(cls, v):
        return _bounded_text(v, 50, "Customize button text is required", "Text must be less than 50 characters")

    @field_validator("privacy_policy_url")
    @classmethod
    def check_privacy_url(cls, v):
        return _optional_url(v, "Invalid privacy policy URL")

    @field_validator("cookie_policy_url")
    @classmethod
    def check_cookie_url(cls, v):
        return _optional_url(v, "Invalid cookie policy URL")


class CookieSettingsUpdate(CookieSettingsBase):
    pass


class CookieSettingsResponse(CookieSettingsBase):
    id: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CookieCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_-]+$")
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_required: bool = False
    is_enabled: bool = True
    sort_order: int = 0
    cookies: List[str] = []


class CookieCategoryUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_required: Optional[bool] = None
    is_enabled: Optional[bool] = None
    sort_order: Optional[int] = None
    cookies: Optional[List[str]] = None


class CookieCategoryResponse(BaseModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    is_required: bool = False
    is_enabled: bool = True
    sort_order: int = 0
    cookies: List[str] = []

    class Config:
        from_attributes = True


class ConsentRecord(BaseModel):
    session_id: Optional[str] = Field(None, max_length=100)
    consent_action: Literal["accept-all", "reject-all", "custom"]
    accepted_categories: List[str] = []
    rejected_categories: List[str] = []


class ConsentLogResponse(BaseModel):
    id: str
    session_id: Optional[str] = None
    consent_action: str
    accepted_categories: List[str] = []
    rejected_categories: List[str] = []
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    @field_validator("accepted_categories", "rejected_categories", mode="before")
    @classmethod
    def coerce_list(cls, v):
        return v if isinstance(v, list) else []

    class Config:
        from_attributes = True


class CategoryStats(BaseModel):
    accepted: int = 0
    rejected: int = 0


class DailyCount(BaseModel):
    date: str
    count: int


class ConsentAnalytics(BaseModel):
    total: int
    accepted_all: int
    rejected_all: int
    custom: int
    consent_rate: float
    rejection_rate: float
    category_stats: Dict[str, CategoryStats]
    daily: List[DailyCount]
    recent: List[ConsentLogResponse]


class BannerConfig(BaseModel):
    settings: CookieSettingsResponse
    categories: List[CookieCategoryResponse]
