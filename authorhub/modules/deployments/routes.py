from fastapi import APIRouter, Depends, Query
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.deployments.schemas import (
    DatabaseStatistics, DeploymentCreate, DeploymentLogsResponse, DeploymentProgress,
    DeploymentResponse, DeploymentUpdate, SsmDeployRequest, SsmDeployResponse
)
from authorhub.modules.deployments.service import DeploymentService
from authorhub.modules.deployments.ssm_deployer import SsmDeployer
from authorhub.modules.deployments.progress import compute_progress, events_from_rows
from authorhub.modules.deployments.statistics import database_statistics
from authorhub.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/deployments", tags=["deployments"])


def get_deployment_service(supabase: Client = Depends(get_supabase)) -> DeploymentService:
    return DeploymentService(supabase)


def get_ssm_deployer(supabase: Client = Depends(get_supabase)) -> SsmDeployer:
    return SsmDeployer(supabase)


@router.get("", response_model=List[DeploymentResponse])
async def list_deployments(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """List deployments, newest first"""
    return service.list_deployments(status=status, limit=limit)


@router.post("", response_model=DeploymentResponse, status_code=201)
async def create_deployment(
    deployment_data: DeploymentCreate,
    user_data: Dict = Depends(require_permission("deployments:create")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """Register a deployment record"""
    return service.create_deployment(deployment_data, user_data["id"])


@router.get("/statistics", response_model=DatabaseStatistics)
async def get_statistics(
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: DeploymentService = Depends(get_deployment_service),
    supabase: Client = Depends(get_supabase)
):
    """Row counts per table, split by the active deployment's last_deployed_at"""
    active = service.list_deployments(status="running", limit=1)
    last_deployed_at = active[0].last_deployed_at if active else None
    return database_statistics(supabase, last_deployed_at)


@router.post("/ssm-deploy", response_model=SsmDeployResponse, status_code=202)
async def ssm_deploy(
    body: SsmDeployRequest,
    user_data: Dict = Depends(require_permission("deployments:create")),
    deployer: SsmDeployer = Depends(get_ssm_deployer)
):
    """Send the build-and-deploy script to an instance through SSM"""
    return deployer.deploy(body, user_data["id"])


@router.get("/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """Get deployment by ID"""
    return service.get_deployment_by_id(deployment_id)


@router.patch("/{deployment_id}", response_model=DeploymentResponse)
async def update_deployment(
    deployment_id: str,
    update_data: DeploymentUpdate,
    user_data: Dict = Depends(require_permission("deployments:edit")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """Update deployment fields"""
    return service.update_deployment(deployment_id, update_data)


@router.delete("/{deployment_id}", status_code=204)
async def delete_deployment(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:delete")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """Delete a deployment record"""
    service.delete_deployment(deployment_id)


@router.get("/{deployment_id}/logs", response_model=DeploymentLogsResponse)
async def get_deployment_logs(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """
    Poll for deployment logs.
    Returns the stored log text and deployment status.
    """
    deployment = service.get_deployment_by_id(deployment_id)
    return DeploymentLogsResponse(
        deployment_id=deployment.id,
        log=deployment.deployment_log or "",
        status=deployment.status,
        has_more=deployment.status in ["pending", "deploying"]
    )


@router.get("/{deployment_id}/progress", response_model=DeploymentProgress)
async def get_deployment_progress(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:view")),
    service: DeploymentService = Depends(get_deployment_service)
):
    """Step-by-step progress built from the deployment's status events"""
    deployment = service.get_deployment_by_id(deployment_id)
    return compute_progress(
        deployment.id,
        events_from_rows(deployment.status_events),
        deployment.status,
        started_at=deployment.created_at,
    )


@router.post("/{deployment_id}/refresh", response_model=DeploymentResponse)
async def refresh_deployment(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:view")),
    deployer: SsmDeployer = Depends(get_ssm_deployer)
):
    """Pull the latest SSM command status and output into the deployment"""
    return deployer.refresh(deployment_id)
