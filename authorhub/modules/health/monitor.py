import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional
from fastapi import HTTPException
from authorhub.config.settings import settings
from authorhub.modules.deployments.schemas import DeploymentResponse
from authorhub.modules.deployments.service import DeploymentService
from authorhub.modules.health.classifier import classify_health, unknown_report
from authorhub.modules.health.schemas import HealthReport, HealthSignals, HealthState, HealthSummary
from authorhub.modules.instances.schemas import InstanceStatusResponse
from authorhub.modules.instances.service import InstanceService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]
Probe = Callable[[DeploymentResponse], InstanceStatusResponse]
ListActive = Callable[[], List[DeploymentResponse]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def deployment_age_minutes(deployment: DeploymentResponse, now: datetime) -> float:
    started = deployment.last_deployed_at or deployment.created_at
    if not started:
        return 0.0
    return max(0.0, (_aware(now) - _aware(started)).total_seconds() / 60)


def signals_from_status(status: InstanceStatusResponse, age_minutes: float) -> HealthSignals:
    diagnostics = status.status.diagnostics
    return HealthSignals(
        is_running=diagnostics.is_running,
        system_ok=diagnostics.system_checks_ok,
        instance_ok=diagnostics.instance_checks_ok,
        http_ok=status.http_accessible,
        response_time_ms=status.http_check_details.response_time_ms if status.http_accessible else None,
        deployment_age_minutes=age_minutes,
    )


def error_message(error: Exception) -> str:
    if isinstance(error, HTTPException):
        detail = error.detail
        if isinstance(detail, dict):
            return str(detail.get("error") or detail)
        return str(detail)
    return str(error) or type(error).__name__


class HealthMonitor:
    """Keeps the latest HealthReport per instance and re-polls active deployments on a timer."""

    def __init__(
        self,
        probe: Probe,
        list_active: ListActive,
        clock: Clock = utcnow,
        sleep: Sleep = asyncio.sleep,
        interval: Optional[float] = None
    ):
        self.probe = probe
        self.list_active = list_active
        self.clock = clock
        self.sleep = sleep
        self.interval = interval if interval is not None else settings.health_poll_interval_seconds
        self.reports: Dict[str, HealthReport] = {}
        self.last_poll_at: Optional[datetime] = None
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._task: Optional[asyncio.Task] = None

    async def _check(self, deployment: DeploymentResponse) -> HealthReport:
        instance_id = deployment.ec2_instance_id
        try:
            status = await asyncio.to_thread(self.probe, deployment)
            now = self.clock()
            signals = signals_from_status(status, deployment_age_minutes(deployment, now))
            report = classify_health(
                signals,
                instance_id=instance_id,
                checked_at=now,
                slow_response_ms=settings.slow_response_ms,
                install_grace_minutes=settings.install_grace_minutes,
            )
        except Exception as e:
            logger.error(f"Health check failed for {instance_id}: {error_message(e)}")
            report = unknown_report(error_message(e), instance_id=instance_id, checked_at=self.clock())
        self.reports[instance_id] = report
        return report

    async def check(self, deployment: DeploymentResponse) -> HealthReport:
        """Classify one deployment; a concurrent call for the same instance reuses the running check."""
        instance_id = deployment.ec2_instance_id
        running = self._in_flight.get(instance_id)
        if running is not None:
            previous = self.reports.get(instance_id)
            if previous is not None:
                return previous
            return await asyncio.shield(running)

        task = asyncio.create_task(self._check(deployment))
        self._in_flight[instance_id] = task
        try:
            return await task
        finally:
            self._in_flight.pop(instance_id, None)

    async def poll_once(self) -> List[HealthReport]:
        deployments = await asyncio.to_thread(self.list_active)
        reports = await asyncio.gather(*(self.check(d) for d in deployments))
        active = {d.ec2_instance_id for d in deployments}
        for instance_id in list(self.reports):
            if instance_id not in active:
                self.reports.pop(instance_id, None)
        self.last_poll_at = self.clock()
        logger.debug(f"Health poll checked {len(reports)} deployment(s)")
        return list(reports)

    async def run(self, max_polls: Optional[int] = None):
        """Poll until cancelled (or for max_polls rounds)"""
        polls = 0
        while max_polls is None or polls < max_polls:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Error in health monitor loop: {str(e)}")
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            await self.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info(f"Health monitor started (interval {self.interval}s)")
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Health monitor stopped")

    def summary(self) -> HealthSummary:
        counts = {state.value: 0 for state in HealthState}
        for report in self.reports.values():
            counts[report.overall.value] += 1
        return HealthSummary(
            counts=counts,
            reports=list(self.reports.values()),
            last_poll_at=self.last_poll_at,
        )


def build_health_monitor(supabase) -> HealthMonitor:
    """Wire the monitor to the instance status probe and the aws_deployments table"""
    instances = InstanceService(supabase)
    deployments = DeploymentService(supabase)
    return HealthMonitor(
        probe=lambda d: instances.get_instance_status(d.ec2_instance_id, d.region),
        list_active=deployments.list_active_deployments,
    )
