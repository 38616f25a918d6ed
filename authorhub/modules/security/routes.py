from fastapi import APIRouter, Depends, Query
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.security.schemas import (
    AlertResult, SecurityLogCreate, SecurityLogResponse, SecurityReport,
    SecurityScanResult, SecuritySettingsUpdate
)
from authorhub.modules.security.service import SecurityService
from authorhub.core.dependencies import require_permission
from supabase import Client
from typing import Any, Dict, List, Optional

router = APIRouter(prefix="/security", tags=["security"])


def get_security_service(supabase: Client = Depends(get_supabase)) -> SecurityService:
    return SecurityService(supabase)


@router.post("/monitor", response_model=SecurityReport)
async def monitor(
    user_data: Dict = Depends(require_permission("security:view")),
    service: SecurityService = Depends(get_security_service)
):
    """Analyze the recent security events; alerts are sent when threats are found"""
    return service.monitor()


@router.post("/scan", response_model=SecurityScanResult)
async def scan(
    user_data: Dict = Depends(require_permission("security:view")),
    service: SecurityService = Depends(get_security_service)
):
    """Check the security settings for weak configuration"""
    return service.scan()


@router.post("/alert", response_model=AlertResult)
async def trigger_alert(
    user_data: Dict = Depends(require_permission("security:edit")),
    service: SecurityService = Depends(get_security_service)
):
    """Manually trigger a security alert"""
    return service.trigger_alert()


@router.get("/settings")
async def get_settings(
    user_data: Dict = Depends(require_permission("security:view")),
    service: SecurityService = Depends(get_security_service)
) -> Optional[Dict[str, Any]]:
    """Get the security settings row"""
    return service.get_settings()


@router.patch("/settings")
async def update_settings(
    updates: SecuritySettingsUpdate,
    user_data: Dict = Depends(require_permission("security:edit")),
    service: SecurityService = Depends(get_security_service)
) -> Dict[str, Any]:
    """Update security settings (the change itself is logged)"""
    return service.update_settings(updates, user_data["id"])


@router.get("/logs", response_model=List[SecurityLogResponse])
async def list_logs(
    severity: Optional[str] = None,
    event_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    user_data: Dict = Depends(require_permission("security:view")),
    service: SecurityService = Depends(get_security_service)
):
    """List security logs, newest first"""
    return service.list_logs(severity=severity, event_type=event_type, limit=limit)


@router.post("/logs", response_model=SecurityLogResponse, status_code=201)
async def record_event(
    data: SecurityLogCreate,
    user_data: Dict = Depends(require_permission("security:edit")),
    service: SecurityService = Depends(get_security_service)
):
    """Record a security event"""
    return service.record_event(data, user_data["id"])


@router.post("/logs/{log_id}/resolve", response_model=SecurityLogResponse)
async def resolve_log(
    log_id: str,
    user_data: Dict = Depends(require_permission("security:edit")),
    service: SecurityService = Depends(get_security_service)
):
    """Mark a security log as resolved"""
    return service.resolve_log(log_id)
