from fastapi import APIRouter, Depends, HTTPException, Request
from authorhub.config.settings import settings
from authorhub.database.supabase_client import get_supabase
from authorhub.modules.deployments.service import DeploymentService
from authorhub.modules.health.classifier import classify_health
from authorhub.modules.health.monitor import HealthMonitor, build_health_monitor
from authorhub.modules.health.schemas import HealthReport, HealthSignals, HealthSummary
from authorhub.core.dependencies import require_permission
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/health", tags=["health"])


def get_running_monitor(request: Request) -> Optional[HealthMonitor]:
    return getattr(request.app.state, "health_monitor", None)


def get_health_monitor(
    monitor: Optional[HealthMonitor] = Depends(get_running_monitor),
    supabase: Client = Depends(get_supabase)
) -> HealthMonitor:
    return monitor or build_health_monitor(supabase)


def get_deployment_service(supabase: Client = Depends(get_supabase)) -> DeploymentService:
    return DeploymentService(supabase)


@router.post("/classify", response_model=HealthReport)
async def classify(
    signals: HealthSignals,
    user_data: Dict = Depends(require_permission("deployments:view"))
):
    """Classify a set of raw signals without touching AWS"""
    return classify_health(
        signals,
        slow_response_ms=settings.slow_response_ms,
        install_grace_minutes=settings.install_grace_minutes,
    )


@router.get("/deployments/{deployment_id}", response_model=HealthReport)
async def deployment_health(
    deployment_id: str,
    user_data: Dict = Depends(require_permission("deployments:view")),
    deployments: DeploymentService = Depends(get_deployment_service),
    monitor: HealthMonitor = Depends(get_health_monitor)
):
    """Probe a deployment's instance now and classify its health"""
    deployment = deployments.get_deployment_by_id(deployment_id)
    if not deployment.ec2_instance_id:
        raise HTTPException(status_code=400, detail="Deployment has no EC2 instance")
    return await monitor.check(deployment)


@router.get("/summary", response_model=HealthSummary)
async def health_summary(
    user_data: Dict = Depends(require_permission("deployments:view")),
    monitor: Optional[HealthMonitor] = Depends(get_running_monitor)
):
    """Latest report per active deployment from the background monitor"""
    if monitor is None:
        raise HTTPException(status_code=503, detail="Health monitor is not enabled")
    return monitor.summary()
