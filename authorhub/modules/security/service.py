from supabase import Client
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from authorhub.config.settings import settings
from authorhub.modules.notifications.email_client import EmailClient
from authorhub.modules.security.analyzer import (
    analyze_patterns, calculate_security_score, detect_threats,
    generate_recommendations, scan_score, severity_breakdown
)
from authorhub.modules.security.schemas import (
    AlertResult, ScanRecommendation, SecurityLogCreate, SecurityLogResponse,
    SecurityReport, SecurityScanResult, SecuritySettingsUpdate, Threat, Vulnerability
)
import html
import logging

logger = logging.getLogger(__name__)


def render_alert_email(threats: List[Threat], report: SecurityReport) -> str:
    items = "".join(
        f"<li><strong>{html.escape(t.type)}</strong> ({t.severity}): {html.escape(t.description)}</li>"
        for t in threats
    )
    recommendations = "".join(
        f"<li>{html.escape(r.action)}: {html.escape(r.description)}</li>"
        for r in report.recommendations[:3]
    )
    return (
        f"<h2>Security alert: {len(threats)} high priority threat(s)</h2>"
        f"<ul>{items}</ul>"
        f"<p>Security score: {report.security_score}/100 "
        f"({report.total_events} events in the last {settings.security_window_hours}h)</p>"
        f"<h3>Recommended actions</h3><ul>{recommendations}</ul>"
    )


class SecurityService:
    def __init__(self, supabase: Client, email: Optional[EmailClient] = None):
        self.supabase = supabase
        self.email = email or EmailClient()

    def log_event(self, event_type: str, severity: str, description: str,
                  metadata: Optional[dict] = None, user_id: Optional[str] = None,
                  ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> Optional[dict]:
        """Append one row to security_logs"""
        result = self.supabase.table("security_logs").insert({
            "event_type": event_type,
            "severity": severity,
            "description": description,
            "metadata": metadata or {},
            "user_id": user_id,
            "ip_address": ip_address,
            "user_agent": user_agent,
        }).execute()
        return result.data[0] if result.data else None

    def record_event(self, data: SecurityLogCreate, user_id: Optional[str] = None) -> SecurityLogResponse:
        try:
            row = self.log_event(
                data.event_type, data.severity, data.description or "",
                metadata=data.metadata, user_id=user_id,
                ip_address=data.ip_address, user_agent=data.user_agent
            )
            if not row:
                raise HTTPException(status_code=500, detail="Failed to record security event")
            return SecurityLogResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error recording security event: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_logs(self, severity: Optional[str] = None, event_type: Optional[str] = None,
                  limit: int = 50) -> List[SecurityLogResponse]:
        try:
            query = self.supabase.table("security_logs").select("*")
            if severity:
                query = query.eq("severity", severity)
            if event_type:
                query = query.eq("event_type", event_type)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [SecurityLogResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing security logs: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def resolve_log(self, log_id: str) -> SecurityLogResponse:
        try:
            result = self.supabase.table("security_logs")\
                .update({"resolved": True, "resolved_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", log_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Security log not found")
            return SecurityLogResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error resolving security log: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_settings(self) -> Optional[dict]:
        result = self.supabase.table("security_settings")\
            .select("*")\
            .limit(1)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def recent_logs(self, now: Optional[datetime] = None) -> List[dict]:
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(hours=settings.security_window_hours)
        result = self.supabase.table("security_logs")\
            .select("*")\
            .gte("created_at", since.isoformat())\
            .order("created_at", desc=True)\
            .execute()
        return result.data or []

    def build_report(self, now: Optional[datetime] = None) -> SecurityReport:
        now = now or datetime.now(timezone.utc)
        logs = self.recent_logs(now)
        analysis = analyze_patterns(logs)
        threats = detect_threats(logs)
        return SecurityReport(
            timestamp=now,
            total_events=len(logs),
            severity_breakdown=severity_breakdown(logs),
            threats=threats,
            analysis=analysis,
            recommendations=generate_recommendations(analysis, threats),
            security_score=calculate_security_score(logs),
        )

    def monitor(self, now: Optional[datetime] = None) -> SecurityReport:
        """Analyze the last window of security events and alert when threats are found"""
        try:
            report = self.build_report(now)
            if report.threats:
                report.alert = self.send_alert(report.threats, report)
            return report
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Security monitoring failed: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def trigger_alert(self) -> AlertResult:
        """Manual trigger: build a fresh report and run the alert rules on it"""
        try:
            report = self.build_report()
            return self.send_alert(report.threats, report)
        except Exception as e:
            logger.error(f"Security alert failed: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def send_alert(self, threats: List[Threat], report: SecurityReport) -> AlertResult:
        try:
            config = self.get_settings()
            if not config or not config.get("security_alerts") or not config.get("alert_email"):
                logger.info("Security alerts disabled or no email configured")
                return AlertResult(success=False, reason="alerts_disabled")

            serious = [t for t in threats if t.severity in ("high", "critical")]
            if not serious:
                logger.info("No high severity threats to report")
                return AlertResult(success=False, reason="no_high_severity_threats")

            self.log_event(
                "security_alert_triggered",
                "medium",
                f"Security alert triggered for {len(serious)} high priority threats",
                metadata={
                    "alert_email": config["alert_email"],
                    "threats_count": len(serious),
                    "threats": [{"type": t.type, "severity": t.severity, "description": t.description} for t in serious],
                    "security_score": report.security_score,
                    "recommendations": [r.model_dump() for r in report.recommendations[:3]],
                }
            )

            email_sent = False
            if self.email.configured:
                try:
                    self.email.send(
                        config["alert_email"],
                        f"[{settings.app_name}] Security alert: {len(serious)} threat(s) detected",
                        render_alert_email(serious, report)
                    )
                    email_sent = True
                except Exception as e:
                    logger.error(f"Error sending security alert email: {str(e)}")

            logger.info(f"Security alert logged for {len(serious)} threats")
            return AlertResult(
                success=True,
                alert_logged=True,
                email_sent=email_sent,
                message=f"Alert logged for {len(serious)} threats",
            )
        except Exception as e:
            logger.error(f"Error processing security alert: {str(e)}")
            return AlertResult(success=False, reason="error", message=str(e))

    def scan(self) -> SecurityScanResult:
        """Check security_settings for weak configuration and log the scan"""
        try:
            config = self.get_settings() or {}
            vulnerabilities = []
            recommendations = []
            if config:
                if not config.get("ssl_enforcement"):
                    vulnerabilities.append(Vulnerability(
                        type="ssl_not_enforced",
                        severity="high",
                        description="SSL enforcement is disabled - connections may not be secure",
                    ))
                if not config.get("two_factor_enabled"):
                    vulnerabilities.append(Vulnerability(
                        type="no_two_factor",
                        severity="medium",
                        description="Two-factor authentication is not enabled",
                    ))
                if not config.get("firewall_enabled"):
                    recommendations.append(ScanRecommendation(
                        type="enable_firewall",
                        priority="high",
                        description="Enable firewall protection to block malicious traffic",
                    ))

            result = SecurityScanResult(
                timestamp=datetime.now(timezone.utc),
                vulnerabilities=vulnerabilities,
                recommendations=recommendations,
                overall_score=scan_score(len(vulnerabilities)),
            )
            self.log_event(
                "security_scan_completed",
                "low",
                f"Security scan completed - found {len(vulnerabilities)} vulnerabilities",
                metadata={
                    "vulnerabilities_count": len(vulnerabilities),
                    "recommendations_count": len(recommendations),
                    "security_score": result.overall_score,
                }
            )
            return result
        except Exception as e:
            logger.error(f"Error performing security scan: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_settings(self, updates: SecuritySettingsUpdate, user_id: str) -> dict:
        try:
            update_dict = updates.model_dump(exclude_unset=True)
            if not update_dict:
                raise HTTPException(status_code=400, detail="Settings data required")
            current = self.get_settings()
            if not current:
                raise HTTPException(status_code=404, detail="Security settings not found")

            update_dict["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("security_settings")\
                .update(update_dict)\
                .eq("id", current["id"])\
                .execute()

            self.log_event(
                "security_settings_updated",
                "low",
                "Security settings were updated",
                metadata={"updated_fields": [k for k in update_dict if k != "updated_at"], "updated_by": user_id},
                user_id=user_id
            )
            return result.data[0] if result.data else {**current, **update_dict}
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating security settings: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def record_failed_login(self, email: str, ip_address: Optional[str], user_agent: Optional[str]) -> None:
        """Audit a failed sign-in; never masks the original auth error"""
        try:
            self.log_event(
                "login_failed",
                "medium",
                f"Failed login attempt for {email}",
                metadata={"email": email},
                ip_address=ip_address,
                user_agent=user_agent
            )
        except Exception as e:
            logger.warning(f"Could not record failed login: {str(e)}")
