from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum


class HealthState(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class HealthSignals(BaseModel):
    is_running: bool
    system_ok: bool
    instance_ok: bool
    http_ok: bool
    response_time_ms: Optional[float] = None
    deployment_age_minutes: float = 0.0


class ComponentHealth(BaseModel):
    name: str
    state: HealthState
    message: str
    remaining_minutes: Optional[int] = None


class HealthReport(BaseModel):
    instance_id: Optional[str] = None
    overall: HealthState
    components: List[ComponentHealth]
    signals: Optional[HealthSignals] = None
    error: Optional[str] = None
    checked_at: Optional[datetime] = None

    def component(self, name: str) -> Optional[ComponentHealth]:
        for c in self.components:
            if c.name == name:
                return c
        return None


class HealthSummary(BaseModel):
    counts: Dict[str, int]
    reports: List[HealthReport]
    last_poll_at: Optional[datetime] = None
