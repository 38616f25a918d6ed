"""
Threshold rules over recent security_logs rows.

All functions are pure: they take the raw rows (dicts as returned by the
Supabase client) and never touch the database.
"""

from collections import Counter
from typing import Any, Dict, List, Optional
from authorhub.modules.security.schemas import (
    BruteForceAttempt, PatternAnalysis, Recommendation, SeverityBreakdown, Threat, TimeSpan
)

BRUTE_FORCE_PATTERN_MIN_EVENTS = 5
BRUTE_FORCE_THREAT_MIN_EVENTS = 11
SUSPICIOUS_SPIKE_MIN_EVENTS = 6
FAILED_LOGIN_REVIEW_MIN = 11

SEVERITY_PENALTIES = {"critical": 10, "high": 5, "medium": 2}
VULNERABILITY_PENALTY = 15

Row = Dict[str, Any]


def _is_suspicious(row: Row) -> bool:
    return row.get("severity") in ("high", "critical")


def _ip_counts(logs: List[Row]) -> Counter:
    return Counter(row["ip_address"] for row in logs if row.get("ip_address"))


def _seen(logs: List[Row], ip: Optional[str] = None) -> TimeSpan:
    times = sorted(
        str(row["created_at"]) for row in logs
        if row.get("created_at") and (ip is None or row.get("ip_address") == ip)
    )
    return TimeSpan(start=times[0], end=times[-1]) if times else TimeSpan()


def severity_breakdown(logs: List[Row]) -> SeverityBreakdown:
    counts = Counter(row.get("severity") for row in logs)
    return SeverityBreakdown(
        critical=counts.get("critical", 0),
        high=counts.get("high", 0),
        medium=counts.get("medium", 0),
        low=counts.get("low", 0),
    )


def analyze_patterns(logs: List[Row]) -> PatternAnalysis:
    ip_counts = _ip_counts(logs)
    return PatternAnalysis(
        failed_logins=sum(1 for row in logs if row.get("event_type") == "login_failed"),
        suspicious_activity=sum(1 for row in logs if _is_suspicious(row)),
        ip_address_patterns=dict(ip_counts),
        brute_force_attempts=[
            BruteForceAttempt(ip_address=ip, attempts=count, timespan=_seen(logs, ip))
            for ip, count in ip_counts.items()
            if count >= BRUTE_FORCE_PATTERN_MIN_EVENTS
        ],
    )


def detect_threats(logs: List[Row]) -> List[Threat]:
    threats = []
    for ip, count in _ip_counts(logs).items():
        if count >= BRUTE_FORCE_THREAT_MIN_EVENTS:
            threats.append(Threat(
                type="brute_force_attack",
                severity="high",
                description=f"Multiple failed attempts from IP {ip}",
                ip_address=ip,
                attempts=count,
                first_seen=_seen(logs, ip).start,
            ))

    suspicious = [row for row in logs if _is_suspicious(row)]
    if len(suspicious) >= SUSPICIOUS_SPIKE_MIN_EVENTS:
        threats.append(Threat(
            type="suspicious_activity_spike",
            severity="medium",
            description=f"Unusual increase in security events: {len(suspicious)} high-severity events",
            event_count=len(suspicious),
            first_seen=_seen(suspicious).start,
        ))
    return threats


def generate_recommendations(analysis: PatternAnalysis, threats: List[Threat]) -> List[Recommendation]:
    recommendations = []
    if analysis.failed_logins >= FAILED_LOGIN_REVIEW_MIN:
        recommendations.append(Recommendation(
            priority="high",
            action="Review authentication settings",
            description="Multiple failed login attempts detected - consider implementing additional security measures",
        ))
    if any(t.type == "brute_force_attack" for t in threats):
        recommendations.append(Recommendation(
            priority="high",
            action="Implement rate limiting",
            description="Brute force attempts detected - consider implementing CAPTCHA or rate limiting",
        ))
    if analysis.suspicious_activity > 0:
        recommendations.append(Recommendation(
            priority="medium",
            action="Review security logs",
            description="Suspicious activity detected - review detailed logs for potential threats",
        ))
    return recommendations


def calculate_security_score(logs: List[Row]) -> int:
    score = 100
    for row in logs:
        score -= SEVERITY_PENALTIES.get(row.get("severity"), 0)
    return max(0, min(100, score))


def scan_score(vulnerability_count: int) -> int:
    return max(0, 100 - VULNERABILITY_PENALTY * vulnerability_count)
