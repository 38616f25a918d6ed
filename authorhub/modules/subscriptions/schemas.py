from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Any
from datetime import datetime


class PlanBase(BaseModel):
    price_monthly: Optional[float] = Field(None, ge=0)
    price_yearly: Optional[float] = Field(None, ge=0)
    max_books: Optional[int] = Field(None, ge=-1)
    max_publications: Optional[int] = Field(None, ge=-1)
    features: Optional[List[Any]] = None
    custom_domain: Optional[bool] = None
    advanced_analytics: Optional[bool] = None
    premium_themes: Optional[bool] = None
    no_watermark: Optional[bool] = None
    contact_form: Optional[bool] = None
    newsletter_integration: Optional[bool] = None
    blog: Optional[bool] = None
    events: Optional[bool] = None
    gallery: Optional[bool] = None
    faq: Optional[bool] = None
    awards: Optional[bool] = None


class PlanCreate(PlanBase):
    name: str = Field(..., min_length=1, max_length=50)


class PlanUpdate(PlanBase):
    name: Optional[str] = Field(None, min_length=1, max_length=50)


class PlanResponse(PlanBase):
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionAssign(BaseModel):
    plan_id: str
    status: Literal["active", "trialing"] = "active"
    trial_days: Optional[int] = Field(None, ge=1, le=365)  # only used when status is trialing
    current_period_end: Optional[datetime] = None


class UserSubscriptionResponse(BaseModel):
    id: Optional[str] = None
    user_id: str
    plan_id: Optional[str] = None
    status: str
    trial_ends_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    plan: Optional[PlanResponse] = None
    is_trial: bool = False
    trial_days_left: int = 0

    class Config:
        from_attributes = True
