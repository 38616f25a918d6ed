from fastapi import APIRouter, Depends
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.subscriptions.schemas import (
    PlanCreate, PlanUpdate, PlanResponse, SubscriptionAssign, UserSubscriptionResponse
)
from authorhub.modules.subscriptions.service import SubscriptionService
from authorhub.core.dependencies import get_current_user_id, require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def get_subscription_service(supabase: Client = Depends(get_supabase)) -> SubscriptionService:
    return SubscriptionService(supabase)


@router.get("/plans", response_model=List[PlanResponse])
async def list_plans(
    user_data: Dict = Depends(get_current_user_id),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.list_plans()


@router.post("/plans", response_model=PlanResponse, status_code=201)
async def create_plan(
    plan_data: PlanCreate,
    user_data: Dict = Depends(require_permission("subscriptions:edit")),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.create_plan(plan_data)


@router.patch("/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str,
    plan_data: PlanUpdate,
    user_data: Dict = Depends(require_permission("subscriptions:edit")),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.update_plan(plan_id, plan_data)


@router.get("/me", response_model=UserSubscriptionResponse)
async def get_my_subscription(
    user_data: Dict = Depends(get_current_user_id),
    service: SubscriptionService = Depends(get_subscription_service)
):
    """Current plan with trial status"""
    return service.get_subscription(user_data["id"])


@router.get("/users/{user_id}", response_model=UserSubscriptionResponse)
async def get_user_subscription(
    user_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:view")),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.get_subscription(user_id)


@router.post("/users/{user_id}", response_model=UserSubscriptionResponse, status_code=201)
async def assign_plan(
    user_id: str,
    assignment: SubscriptionAssign,
    user_data: Dict = Depends(require_permission("subscriptions:edit")),
    service: SubscriptionService = Depends(get_subscription_service)
):
    """Put a user on a plan, optionally as a trial"""
    return service.assign_plan(user_id, assignment)


@router.post("/users/{user_id}/cancel", response_model=UserSubscriptionResponse)
async def cancel_subscription(
    user_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:edit")),
    service: SubscriptionService = Depends(get_subscription_service)
):
    return service.cancel_subscription(user_id)
