from supabase import Client
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from authorhub.modules.subscriptions.schemas import (
    PlanCreate, PlanUpdate, PlanResponse, SubscriptionAssign, UserSubscriptionResponse
)
import logging
import math

logger = logging.getLogger(__name__)

CURRENT_STATUSES = ["active", "trialing"]
DEFAULT_TRIAL_DAYS = 14
FREE_PLAN_NAME = "Free"


def _as_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def trial_status(status: Optional[str], trial_ends_at, now: datetime) -> Tuple[bool, int]:
    """(is_trial, whole days left rounded up) for a subscription row"""
    ends = _as_datetime(trial_ends_at)
    if status != "trialing" or ends is None or ends <= now:
        return False, 0
    return True, math.ceil((ends - now).total_seconds() / 86400)


class SubscriptionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Plans

    def list_plans(self) -> List[PlanResponse]:
        try:
            result = self.supabase.table("subscription_plans")\
                .select("*")\
                .order("price_monthly")\
                .execute()
            return [PlanResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing subscription plans: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_plan(self, plan_id: str) -> PlanResponse:
        try:
            result = self.supabase.table("subscription_plans")\
                .select("*")\
                .eq("id", plan_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Subscription plan not found")
            return PlanResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting subscription plan: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def _free_plan(self) -> Optional[PlanResponse]:
        result = self.supabase.table("subscription_plans")\
            .select("*")\
            .eq("name", FREE_PLAN_NAME)\
            .limit(1)\
            .execute()
        return PlanResponse(**result.data[0]) if result.data else None

    def create_plan(self, plan_data: PlanCreate) -> PlanResponse:
        try:
            result = self.supabase.table("subscription_plans")\
                .insert(plan_data.model_dump(exclude_none=True))\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create subscription plan")
            logger.info(f"Subscription plan created: {plan_data.name}")
            return PlanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating subscription plan: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_plan(self, plan_id: str, plan_data: PlanUpdate) -> PlanResponse:
        update_dict = plan_data.model_dump(exclude_unset=True)
        if not update_dict:
            return self.get_plan(plan_id)
        update_dict["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("subscription_plans")\
                .update(update_dict)\
                .eq("id", plan_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Subscription plan not found")
            return PlanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating subscription plan: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    # User subscriptions

    def _to_response(self, user_id: str, row: dict, plan: Optional[PlanResponse],
                     now: datetime) -> UserSubscriptionResponse:
        is_trial, days_left = trial_status(row.get("status"), row.get("trial_ends_at"), now)
        fields = {k: v for k, v in row.items() if k != "subscription_plans"}
        fields["user_id"] = user_id
        return UserSubscriptionResponse(**fields, plan=plan, is_trial=is_trial, trial_days_left=days_left)

    def get_subscription(self, user_id: str, now: Optional[datetime] = None) -> UserSubscriptionResponse:
        """Newest active or trialing subscription; the Free plan when there is none"""
        now = now or datetime.now(timezone.utc)
        try:
            result = self.supabase.table("user_subscriptions")\
                .select("*, subscription_plans(*)")\
                .eq("user_id", user_id)\
                .in_("status", CURRENT_STATUSES)\
                .order("created_at", desc=True)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting subscription for {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

        if result.data:
            row = result.data[0]
            embedded = row.get("subscription_plans")
            plan = PlanResponse(**embedded) if embedded else self.get_plan(row["plan_id"])
            return self._to_response(user_id, row, plan, now)

        free = self._free_plan()
        return UserSubscriptionResponse(
            user_id=user_id,
            plan_id=free.id if free else None,
            status="inactive",
            plan=free
        )

    def _end_current(self, user_id: str, status: str) -> int:
        result = self.supabase.table("user_subscriptions")\
            .update({"status": status, "updated_at": datetime.now(timezone.utc).isoformat()})\
            .eq("user_id", user_id)\
            .in_("status", CURRENT_STATUSES)\
            .execute()
        return len(result.data or [])

    def assign_plan(self, user_id: str, assignment: SubscriptionAssign,
                    now: Optional[datetime] = None) -> UserSubscriptionResponse:
        """Replace the user's current subscription with a new one on plan_id"""
        now = now or datetime.now(timezone.utc)
        plan = self.get_plan(assignment.plan_id)
        payload = {
            "user_id": user_id,
            "plan_id": plan.id,
            "status": assignment.status,
            "current_period_start": now.isoformat(),
            "current_period_end": assignment.current_period_end.isoformat() if assignment.current_period_end else None,
            "trial_ends_at": None,
        }
        if assignment.status == "trialing":
            days = assignment.trial_days or DEFAULT_TRIAL_DAYS
            payload["trial_ends_at"] = (now + timedelta(days=days)).isoformat()
        try:
            self._end_current(user_id, "cancelled")
            result = self.supabase.table("user_subscriptions").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to assign subscription")
            self.supabase.table("profiles")\
                .update({"subscription_plan_id": plan.id})\
                .eq("id", user_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error assigning plan to {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"User {user_id} assigned plan {plan.name} ({assignment.status})")
        return self._to_response(user_id, result.data[0], plan, now)

    def cancel_subscription(self, user_id: str) -> UserSubscriptionResponse:
        try:
            cancelled = self._end_current(user_id, "cancelled")
        except Exception as e:
            logger.error(f"Error cancelling subscription for {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        if not cancelled:
            raise HTTPException(status_code=404, detail="No active subscription to cancel")
        logger.info(f"Subscription cancelled for {user_id}")
        return self.get_subscription(user_id)
