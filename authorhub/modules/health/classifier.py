"""
Deployment health classification.

Turns raw signals about a cloud instance into a coarse overall state plus a
per-component status list. This is the only place the thresholds live; the
per-deployment status endpoint and the fleet monitor both call it.
"""

import math
from typing import Optional
from datetime import datetime
from authorhub.modules.health.schemas import (
    ComponentHealth, HealthReport, HealthSignals, HealthState
)

SLOW_RESPONSE_MS = 2000
INSTALL_GRACE_MINUTES = 5

EC2_INSTANCE = "EC2 Instance"
SYSTEM_HEALTH = "System Health"
INSTANCE_HEALTH = "Instance Health"
WEB_SERVER = "Web Server"
APPLICATION = "Application"

COMPONENT_NAMES = (EC2_INSTANCE, SYSTEM_HEALTH, INSTANCE_HEALTH, WEB_SERVER, APPLICATION)


def _remaining_minutes(age_minutes: float, grace_minutes: float) -> int:
    return max(1, math.ceil(grace_minutes - age_minutes))


def classify_health(
    signals: HealthSignals,
    instance_id: Optional[str] = None,
    checked_at: Optional[datetime] = None,
    slow_response_ms: float = SLOW_RESPONSE_MS,
    install_grace_minutes: float = INSTALL_GRACE_MINUTES,
) -> HealthReport:
    """Apply the threshold rules in order and return the resulting report."""
    installing = signals.deployment_age_minutes < install_grace_minutes
    components = []

    if signals.is_running:
        components.append(ComponentHealth(name=EC2_INSTANCE, state=HealthState.HEALTHY, message="Instance is running"))
    else:
        components.append(ComponentHealth(name=EC2_INSTANCE, state=HealthState.UNHEALTHY, message="Instance is not running"))

    if signals.system_ok:
        components.append(ComponentHealth(name=SYSTEM_HEALTH, state=HealthState.HEALTHY, message="System status checks passed"))
    else:
        components.append(ComponentHealth(name=SYSTEM_HEALTH, state=HealthState.DEGRADED, message="System status checks not passing"))

    if signals.instance_ok:
        components.append(ComponentHealth(name=INSTANCE_HEALTH, state=HealthState.HEALTHY, message="Instance status checks passed"))
    else:
        components.append(ComponentHealth(name=INSTANCE_HEALTH, state=HealthState.DEGRADED, message="Instance status checks not passing"))

    if signals.http_ok:
        components.append(ComponentHealth(name=WEB_SERVER, state=HealthState.HEALTHY, message="Responding to HTTP"))
    elif installing:
        remaining = _remaining_minutes(signals.deployment_age_minutes, install_grace_minutes)
        components.append(ComponentHealth(
            name=WEB_SERVER,
            state=HealthState.DEGRADED,
            message=f"Still installing, ~{remaining} min remaining",
            remaining_minutes=remaining,
        ))
    else:
        components.append(ComponentHealth(name=WEB_SERVER, state=HealthState.UNHEALTHY, message="Not responding to HTTP"))

    rt = signals.response_time_ms
    if signals.http_ok and (rt is None or rt < slow_response_ms):
        # unmeasured latency with a successful probe counts as responsive
        message = f"Responding in {rt:.0f}ms" if rt is not None else "Responding"
        components.append(ComponentHealth(name=APPLICATION, state=HealthState.HEALTHY, message=message))
    elif signals.http_ok:
        components.append(ComponentHealth(name=APPLICATION, state=HealthState.DEGRADED, message=f"Slow response ({rt:.0f}ms)"))
    elif installing:
        components.append(ComponentHealth(name=APPLICATION, state=HealthState.DEGRADED, message="Waiting for web server"))
    else:
        components.append(ComponentHealth(name=APPLICATION, state=HealthState.UNKNOWN, message="Cannot determine application state"))

    if signals.is_running and signals.system_ok and signals.instance_ok and signals.http_ok:
        overall = HealthState.HEALTHY
    elif signals.is_running and (signals.system_ok or signals.instance_ok):
        overall = HealthState.DEGRADED
    else:
        overall = HealthState.UNHEALTHY

    return HealthReport(
        instance_id=instance_id,
        overall=overall,
        components=components,
        signals=signals,
        checked_at=checked_at,
    )


def unknown_report(error: str, instance_id: Optional[str] = None, checked_at: Optional[datetime] = None) -> HealthReport:
    """Synthetic report used when remote status could not be fetched."""
    return HealthReport(
        instance_id=instance_id,
        overall=HealthState.UNKNOWN,
        components=[
            ComponentHealth(name=name, state=HealthState.UNKNOWN, message="Status unavailable")
            for name in COMPONENT_NAMES
        ],
        error=error,
        checked_at=checked_at,
    )
