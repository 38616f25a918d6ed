from fastapi import APIRouter, Depends
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.instances.schemas import (
    InstanceRef, InstanceStatusResponse, UnblockHttpResponse,
    SshDiagnosticRequest, SshDiagnosticResponse
)
from authorhub.modules.instances.service import InstanceService
from authorhub.modules.instances.ssh_diagnostics import SshDiagnosticService
from authorhub.core.dependencies import require_permission
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/instances", tags=["instances"])


def get_instance_service(supabase: Client = Depends(get_supabase)) -> InstanceService:
    return InstanceService(supabase)


def get_ssh_service(supabase: Client = Depends(get_supabase)) -> SshDiagnosticService:
    return SshDiagnosticService(supabase)


@router.post("/status", response_model=InstanceStatusResponse)
async def instance_status(
    body: InstanceRef,
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: InstanceService = Depends(get_instance_service)
):
    """Describe an EC2 instance, its status checks and HTTP reachability"""
    return service.get_instance_status(body.instance_id, body.region)


@router.post("/unblock-http", response_model=UnblockHttpResponse)
async def unblock_http(
    body: InstanceRef,
    user_data: Dict = Depends(require_permission("deployments:edit")),
    service: InstanceService = Depends(get_instance_service)
):
    """Open port 80 on the instance's security group"""
    return service.unblock_http(body.instance_id, body.region)


@router.post("/ssh-diagnostic", response_model=SshDiagnosticResponse)
async def ssh_diagnostic(
    body: SshDiagnosticRequest,
    user_data: Dict = Depends(require_permission("deployments:edit")),
    service: SshDiagnosticService = Depends(get_ssh_service)
):
    """Run SSH diagnostics (and optional nginx auto-fix) against a deployed instance"""
    diagnostics = service.diagnose(body.instance_id, body.region, body.auto_fix)
    return SshDiagnosticResponse(
        success=not diagnostics.errors,
        diagnostics=diagnostics,
        auto_fix_applied=body.auto_fix
    )
