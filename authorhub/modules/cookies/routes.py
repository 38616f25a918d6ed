from fastapi import APIRouter, Depends, Query, Request, Response
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.cookies.schemas import (
    BannerConfig, ConsentAnalytics, ConsentLogResponse, ConsentRecord,
    CookieCategoryCreate, CookieCategoryResponse, CookieCategoryUpdate,
    CookieSettingsResponse, CookieSettingsUpdate
)
from authorhub.modules.cookies.service import CookieService
from authorhub.core.dependencies import require_permission
from authorhub.core.rate_limit import limiter, PUBLIC_RATE_LIMIT
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/cookies", tags=["cookies"])


def get_cookie_service(supabase: Client = Depends(get_supabase)) -> CookieService:
    return CookieService(supabase)


@router.get("/banner", response_model=BannerConfig)
async def get_banner(service: CookieService = Depends(get_cookie_service)):
    """Public: banner settings plus enabled categories"""
    return service.banner_config()


@router.post("/consent", response_model=ConsentLogResponse, status_code=201)
@limiter.limit(PUBLIC_RATE_LIMIT)
async def record_consent(
    request: Request,
    record: ConsentRecord,
    service: CookieService = Depends(get_cookie_service)
):
    """Public: record a visitor's consent choice"""
    return service.record_consent(
        record,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )


@router.get("/settings", response_model=CookieSettingsResponse)
async def get_settings(
    user_data: Dict = Depends(require_permission("cookies:view")),
    service: CookieService = Depends(get_cookie_service)
):
    """Get consent banner settings"""
    return service.get_settings()


@router.put("/settings", response_model=CookieSettingsResponse)
async def save_settings(
    settings_data: CookieSettingsUpdate,
    user_data: Dict = Depends(require_permission("cookies:edit")),
    service: CookieService = Depends(get_cookie_service)
):
    """Save consent banner settings"""
    return service.save_settings(settings_data)


@router.get("/categories", response_model=List[CookieCategoryResponse])
async def list_categories(
    user_data: Dict = Depends(require_permission("cookies:view")),
    service: CookieService = Depends(get_cookie_service)
):
    """List cookie categories in display order"""
    return service.list_categories()


@router.post("/categories", response_model=CookieCategoryResponse, status_code=201)
async def create_category(
    category_data: CookieCategoryCreate,
    user_data: Dict = Depends(require_permission("cookies:edit")),
    service: CookieService = Depends(get_cookie_service)
):
    """Create a cookie category"""
    return service.create_category(category_data)


@router.patch("/categories/{category_id}", response_model=CookieCategoryResponse)
async def update_category(
    category_id: str,
    update_data: CookieCategoryUpdate,
    user_data: Dict = Depends(require_permission("cookies:edit")),
    service: CookieService = Depends(get_cookie_service)
):
    """Update a cookie category (required categories stay enabled)"""
    return service.update_category(category_id, update_data)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    user_data: Dict = Depends(require_permission("cookies:edit")),
    service: CookieService = Depends(get_cookie_service)
):
    """Delete a cookie category (required categories cannot be deleted)"""
    service.delete_category(category_id)


@router.get("/consents", response_model=List[ConsentLogResponse])
async def list_consents(
    limit: int = Query(100, ge=1, le=1000),
    user_data: Dict = Depends(require_permission("cookies:view")),
    service: CookieService = Depends(get_cookie_service)
):
    """Most recent consent log rows"""
    return [ConsentLogResponse(**row) for row in service.list_consent_logs(limit=limit)]


@router.get("/analytics", response_model=ConsentAnalytics)
async def consent_analytics(
    user_data: Dict = Depends(require_permission("cookies:view")),
    service: CookieService = Depends(get_cookie_service)
):
    """Consent rates and per-category counts for the last 30 days"""
    return service.analytics()


@router.get("/consents/export")
async def export_consents(
    user_data: Dict = Depends(require_permission("cookies:view")),
    service: CookieService = Depends(get_cookie_service)
):
    """Download consent logs as CSV"""
    return Response(
        content=service.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="cookie-consent-log.csv"'}
    )
