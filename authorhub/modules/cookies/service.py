from supabase import Client
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from authorhub.modules.cookies.schemas import (
    BannerConfig, ConsentAnalytics, ConsentLogResponse, ConsentRecord,
    CookieCategoryCreate, CookieCategoryResponse, CookieCategoryUpdate,
    CookieSettingsResponse, CookieSettingsUpdate
)
from authorhub.modules.cookies.statistics import consent_logs_csv, summarize_consents
import logging

logger = logging.getLogger(__name__)

ANALYTICS_WINDOW_DAYS = 30
EXPORT_LIMIT = 10000


class CookieService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Banner settings

    def get_settings(self) -> CookieSettingsResponse:
        """Get banner settings; defaults when none have been saved yet"""
        try:
            result = self.supabase.table("cookie_settings")\
                .select("*")\
                .limit(1)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                return CookieSettingsResponse()
            return CookieSettingsResponse(**result.data)
        except Exception as e:
            logger.error(f"Error getting cookie settings: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def save_settings(self, settings_data: CookieSettingsUpdate) -> CookieSettingsResponse:
        """Upsert the single banner settings row"""
        try:
            current = self.get_settings()
            payload = settings_data.model_dump()
            payload["updated_at"] = datetime.now(timezone.utc).isoformat()
            if current.id:
                payload["id"] = current.id
            result = self.supabase.table("cookie_settings").upsert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save cookie settings")
            logger.info("Cookie settings saved")
            return CookieSettingsResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving cookie settings: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    # Categories

    def list_categories(self, enabled_only: bool = False) -> List[CookieCategoryResponse]:
        try:
            query = self.supabase.table("cookie_categories").select("*")
            if enabled_only:
                query = query.eq("is_enabled", True)
            result = query.order("sort_order").execute()
            return [CookieCategoryResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing cookie categories: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_category(self, category_id: str) -> CookieCategoryResponse:
        try:
            result = self.supabase.table("cookie_categories")\
                .select("*")\
                .eq("id", category_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Cookie category not found")
            return CookieCategoryResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting cookie category: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def create_category(self, category_data: CookieCategoryCreate) -> CookieCategoryResponse:
        try:
            existing = self.supabase.table("cookie_categories")\
                .select("id")\
                .eq("name", category_data.name)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail=f"Cookie category '{category_data.name}' already exists")

            payload = category_data.model_dump()
            if payload["is_required"]:
                payload["is_enabled"] = True
            result = self.supabase.table("cookie_categories").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create cookie category")
            return CookieCategoryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating cookie category: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_category(self, category_id: str, update_data: CookieCategoryUpdate) -> CookieCategoryResponse:
        try:
            current = self.get_category(category_id)
            update_dict = update_data.model_dump(exclude_unset=True)
            required = update_dict.get("is_required", current.is_required)
            if required and update_dict.get("is_enabled") is False:
                raise HTTPException(status_code=400, detail="Required cookie categories cannot be disabled")
            if required:
                update_dict["is_enabled"] = True
            if not update_dict:
                return current

            result = self.supabase.table("cookie_categories")\
                .update(update_dict)\
                .eq("id", category_id)\
                .execute()
            if result.data:
                return CookieCategoryResponse(**result.data[0])
            return self.get_category(category_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating cookie category: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_category(self, category_id: str) -> None:
        try:
            current = self.get_category(category_id)
            if current.is_required:
                raise HTTPException(status_code=400, detail="Required cookie categories cannot be deleted")
            self.supabase.table("cookie_categories")\
                .delete()\
                .eq("id", category_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting cookie category: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    # Public banner + consent log

    def banner_config(self) -> BannerConfig:
        return BannerConfig(settings=self.get_settings(), categories=self.list_categories(enabled_only=True))

    def record_consent(self, record: ConsentRecord, ip_address: Optional[str],
                       user_agent: Optional[str]) -> ConsentLogResponse:
        """Store a visitor's choice; required categories are always accepted"""
        categories = self.list_categories(enabled_only=True)
        known = {c.name for c in categories}
        required = [c.name for c in categories if c.is_required]

        if record.consent_action == "accept-all":
            accepted = [c.name for c in categories]
            rejected = []
        elif record.consent_action == "reject-all":
            accepted = list(required)
            rejected = [c.name for c in categories if not c.is_required]
        else:
            unknown = [n for n in record.accepted_categories + record.rejected_categories if known and n not in known]
            if unknown:
                raise HTTPException(status_code=400, detail=f"Unknown cookie category: {unknown[0]}")
            accepted = list(dict.fromkeys(required + record.accepted_categories))
            rejected = [n for n in dict.fromkeys(record.rejected_categories) if n not in accepted]

        try:
            result = self.supabase.table("cookie_consent_log").insert({
                "session_id": record.session_id,
                "consent_action": record.consent_action,
                "accepted_categories": accepted,
                "rejected_categories": rejected,
                "ip_address": ip_address,
                "user_agent": user_agent,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record consent")
            return ConsentLogResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error logging consent: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_consent_logs(self, limit: int = 100, since: Optional[datetime] = None) -> List[dict]:
        try:
            query = self.supabase.table("cookie_consent_log").select("*")
            if since is not None:
                query = query.gte("created_at", since.isoformat())
            result = query.order("created_at", desc=True).limit(limit).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error listing consent logs: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def analytics(self, now: Optional[datetime] = None) -> ConsentAnalytics:
        now = now or datetime.now(timezone.utc)
        logs = self.list_consent_logs(limit=EXPORT_LIMIT, since=now - timedelta(days=ANALYTICS_WINDOW_DAYS))
        names = [c.name for c in self.list_categories()]
        return summarize_consents(logs, names)

    def export_csv(self) -> str:
        return consent_logs_csv(self.list_consent_logs(limit=EXPORT_LIMIT))
