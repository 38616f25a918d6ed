"""
Deployment progress from structured status events.

The deploy script prints one line per step transition:

    AUTHORHUB_EVENT {"v": 1, "step": "web_server", "status": "completed", "message": "...", "ts": "..."}

Progress is derived only from these records, never from free-form log text.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from pydantic import ValidationError
from authorhub.modules.deployments.schemas import (
    DeploymentProgress, DeploymentStep, ProgressStep, StatusEvent, StepStatus
)

logger = logging.getLogger(__name__)

EVENT_MARKER = "AUTHORHUB_EVENT"
EVENT_SCHEMA_VERSION = 1

STEP_NAMES = {
    DeploymentStep.INITIALIZE: "Initialize Deployment",
    DeploymentStep.SECURITY_GROUP: "Security Group",
    DeploymentStep.KEY_PAIR: "SSH Key Pair",
    DeploymentStep.EC2_INSTANCE: "EC2 Instance",
    DeploymentStep.SYSTEM_SETUP: "System Setup",
    DeploymentStep.WEB_SERVER: "Web Server",
    DeploymentStep.DATABASE: "Database",
    DeploymentStep.FINALIZE: "Finalize",
}

STEP_MESSAGES = {
    DeploymentStep.INITIALIZE: "Preparing deployment configuration",
    DeploymentStep.SECURITY_GROUP: "Creating security group and firewall rules",
    DeploymentStep.KEY_PAIR: "Generating SSH key pair",
    DeploymentStep.EC2_INSTANCE: "Launching EC2 instance",
    DeploymentStep.SYSTEM_SETUP: "Installing system packages",
    DeploymentStep.WEB_SERVER: "Configuring Nginx web server",
    DeploymentStep.DATABASE: "Setting up database",
    DeploymentStep.FINALIZE: "Completing deployment",
}


def format_event(step: DeploymentStep, status: StepStatus, message: str = "",
                 error: Optional[str] = None, ts: Optional[datetime] = None) -> str:
    """Render one event line exactly as the deploy script prints it."""
    payload: Dict[str, Any] = {
        "v": EVENT_SCHEMA_VERSION,
        "step": step.value,
        "status": status.value,
        "message": message,
        "ts": (ts or datetime.now(timezone.utc)).isoformat(),
    }
    if error:
        payload["error"] = error
    return f"{EVENT_MARKER} {json.dumps(payload)}"


def parse_event(payload: Dict[str, Any]) -> Optional[StatusEvent]:
    if payload.get("v") != EVENT_SCHEMA_VERSION:
        logger.warning(f"Ignoring status event with unsupported version: {payload.get('v')!r}")
        return None
    try:
        return StatusEvent(**payload)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed status event: {e.errors()[0].get('msg')}")
        return None


def extract_events(log_text: str) -> List[StatusEvent]:
    """Pull every valid status event out of raw script output, in order."""
    events: List[StatusEvent] = []
    for line in (log_text or "").splitlines():
        idx = line.find(EVENT_MARKER)
        if idx == -1:
            continue
        raw = line[idx + len(EVENT_MARKER):].strip()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring status event with invalid JSON: {raw[:80]}")
            continue
        if not isinstance(payload, dict):
            logger.warning("Ignoring status event that is not a JSON object")
            continue
        event = parse_event(payload)
        if event:
            events.append(event)
    return events


def events_from_rows(rows: Iterable[Dict[str, Any]]) -> List[StatusEvent]:
    """Rebuild events stored in the status_events column."""
    events = []
    for row in rows or []:
        if isinstance(row, dict):
            event = parse_event(row)
            if event:
                events.append(event)
    return events


def compute_progress(
    deployment_id: str,
    events: List[StatusEvent],
    deployment_status: str,
    started_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> DeploymentProgress:
    latest: Dict[DeploymentStep, StatusEvent] = {}
    for event in events:
        latest[event.step] = event

    steps = []
    for step in DeploymentStep:
        event = latest.get(step)
        if event:
            steps.append(ProgressStep(
                step=step,
                name=STEP_NAMES[step],
                status=event.status,
                message=event.message or STEP_MESSAGES[step],
                timestamp=event.ts,
                error=event.error,
            ))
        else:
            steps.append(ProgressStep(
                step=step,
                name=STEP_NAMES[step],
                status=StepStatus.PENDING,
                message=STEP_MESSAGES[step],
            ))

    counted = [s for s in steps if s.status != StepStatus.SKIPPED]
    completed = [s for s in counted if s.status == StepStatus.COMPLETED]
    percent = round(100.0 * len(completed) / len(counted), 1) if counted else 100.0

    finalize = latest.get(DeploymentStep.FINALIZE)
    # the deployment row's own status outranks individual step events
    if deployment_status == "running":
        overall = "completed"
    elif deployment_status == "failed" or any(s.status == StepStatus.FAILED for s in steps):
        overall = "failed"
    elif finalize and finalize.status == StepStatus.COMPLETED:
        overall = "completed"
    else:
        overall = "deploying"

    elapsed = None
    if started_at:
        now = now or datetime.now(timezone.utc)
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        elapsed = max(0, int((now - started_at).total_seconds()))

    return DeploymentProgress(
        deployment_id=deployment_id,
        overall_status=overall,
        steps=steps,
        percent=percent,
        started_at=started_at,
        elapsed_seconds=elapsed,
    )
