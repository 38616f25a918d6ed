from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime

Severity = Literal["low", "medium", "high", "critical"]


class SecurityLogCreate(BaseModel):
    event_type: str = Field(..., min_length=1, max_length=100)
    severity: Severity = "low"
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Dict[str, Any] = {}


class SecurityLogResponse(BaseModel):
    id: str
    event_type: str
    severity: str
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    resolved: Optional[bool] = False
    resolved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TimeSpan(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class BruteForceAttempt(BaseModel):
    ip_address: str
    attempts: int
    timespan: TimeSpan


class PatternAnalysis(BaseModel):
    failed_logins: int = 0
    suspicious_activity: int = 0
    ip_address_patterns: Dict[str, int] = {}
    brute_force_attempts: List[BruteForceAttempt] = []


class Threat(BaseModel):
    type: str
    severity: Severity
    description: str
    ip_address: Optional[str] = None
    attempts: Optional[int] = None
    event_count: Optional[int] = None
    first_seen: Optional[str] = None


class Recommendation(BaseModel):
    priority: Literal["low", "medium", "high"]
    action: str
    description: str


class SeverityBreakdown(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class AlertResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    alert_logged: bool = False
    email_sent: bool = False
    message: Optional[str] = None


class SecurityReport(BaseModel):
    timestamp: datetime
    total_events: int
    severity_breakdown: SeverityBreakdown
    threats: List[Threat]
    analysis: PatternAnalysis
    recommendations: List[Recommendation]
    security_score: int
    alert: Optional[AlertResult] = None


class Vulnerability(BaseModel):
    type: str
    severity: Severity
    description: str


class ScanRecommendation(BaseModel):
    type: str
    priority: Literal["low", "medium", "high"]
    description: str


class SecurityScanResult(BaseModel):
    timestamp: datetime
    vulnerabilities: List[Vulnerability]
    recommendations: List[ScanRecommendation]
    overall_score: int


class SecuritySettingsUpdate(BaseModel):
    ssl_enforcement: Optional[bool] = None
    https_redirect: Optional[bool] = None
    hsts_enabled: Optional[bool] = None
    password_min_length: Optional[int] = Field(None, ge=6, le=128)
    password_require_uppercase: Optional[bool] = None
    password_require_lowercase: Optional[bool] = None
    password_require_numbers: Optional[bool] = None
    password_require_symbols: Optional[bool] = None
    two_factor_enabled: Optional[bool] = None
    session_timeout: Optional[int] = Field(None, ge=1)
    max_login_attempts: Optional[int] = Field(None, ge=1)
    lockout_duration: Optional[int] = Field(None, ge=0)
    firewall_enabled: Optional[bool] = None
    malware_scanning: Optional[bool] = None
    auto_updates: Optional[bool] = None
    ddos_protection: Optional[bool] = None
    log_monitoring: Optional[bool] = None
    data_encryption: Optional[bool] = None
    security_alerts: Optional[bool] = None
    alert_email: Optional[EmailStr] = None
    alert_sms: Optional[str] = None
