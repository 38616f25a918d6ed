from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi import HTTPException

from authorhub.modules.notifications.email_client import EmailClient, EmailNotConfigured
from authorhub.modules.security.analyzer import (
    analyze_patterns, calculate_security_score, detect_threats,
    generate_recommendations, scan_score, severity_breakdown
)
from authorhub.modules.security.schemas import SecuritySettingsUpdate
from authorhub.modules.security.service import SecurityService
from tests.fakes import FakeSupabase

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def logs(count, ip="198.51.100.7", severity="medium", event_type="login_failed", start=NOW):
    return [
        {
            "id": f"log-{ip}-{i}",
            "event_type": event_type,
            "severity": severity,
            "ip_address": ip,
            "created_at": (start - timedelta(minutes=i)).isoformat(),
        }
        for i in range(count)
    ]


class FakeEmail:
    def __init__(self, configured=True, fail=False):
        self.configured = configured
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html):
        if self.fail:
            raise RuntimeError("resend down")
        self.sent.append((to, subject, html))
        return "email-1"


def settings_row(**overrides):
    row = {
        "id": "settings-1",
        "security_alerts": True,
        "alert_email": "ops@example.com",
        "ssl_enforcement": True,
        "two_factor_enabled": True,
        "firewall_enabled": True,
    }
    row.update(overrides)
    return row


# analyzer

def test_brute_force_pattern_starts_at_five_events_from_one_ip():
    assert analyze_patterns(logs(4)).brute_force_attempts == []
    attempts = analyze_patterns(logs(5)).brute_force_attempts
    assert len(attempts) == 1
    assert attempts[0].attempts == 5
    assert attempts[0].timespan.start < attempts[0].timespan.end


def test_brute_force_threat_needs_more_than_ten_events():
    assert detect_threats(logs(10)) == []
    threats = detect_threats(logs(11))
    assert [t.type for t in threats] == ["brute_force_attack"]
    assert threats[0].attempts == 11
    assert threats[0].first_seen == (NOW - timedelta(minutes=10)).isoformat()


def test_suspicious_spike_needs_more_than_five_high_events():
    assert detect_threats(logs(5, ip=None, severity="high")) == []
    mixed = logs(3, ip=None, severity="high") + logs(3, ip=None, severity="critical")
    threats = detect_threats(mixed)
    assert [t.type for t in threats] == ["suspicious_activity_spike"]
    assert threats[0].event_count == 6


def test_recommendations_follow_findings():
    rows = logs(11, severity="high")
    analysis = analyze_patterns(rows)
    actions = [r.action for r in generate_recommendations(analysis, detect_threats(rows))]
    assert actions == ["Review authentication settings", "Implement rate limiting", "Review security logs"]
    assert generate_recommendations(analyze_patterns([]), []) == []


def test_security_score_is_clamped():
    assert calculate_security_score([]) == 100
    rows = logs(1, severity="critical") + logs(1, severity="high") + logs(2, severity="medium") + logs(3, severity="low")
    assert calculate_security_score(rows) == 100 - 10 - 5 - 4
    assert calculate_security_score(logs(20, severity="critical")) == 0


def test_severity_breakdown_and_scan_score():
    breakdown = severity_breakdown(logs(2, severity="low") + logs(1, severity="critical"))
    assert (breakdown.low, breakdown.critical, breakdown.high) == (2, 1, 0)
    assert scan_score(0) == 100
    assert scan_score(2) == 70
    assert scan_score(10) == 0


# service

def test_monitor_only_sees_the_recent_window():
    old = logs(11, ip="203.0.113.9", start=NOW - timedelta(days=2))
    db = FakeSupabase({"security_logs": logs(3) + old, "security_settings": [settings_row()]})
    report = SecurityService(db, email=FakeEmail()).monitor(NOW)
    assert report.total_events == 3
    assert report.threats == []
    assert report.alert is None


def test_monitor_alerts_and_emails_on_brute_force():
    email = FakeEmail()
    db = FakeSupabase({"security_logs": logs(12), "security_settings": [settings_row()]})
    report = SecurityService(db, email=email).monitor(NOW)
    assert report.alert.success is True
    assert report.alert.email_sent is True
    assert email.sent[0][0] == "ops@example.com"
    assert "brute_force_attack" in email.sent[0][2]
    triggered = [r for r in db.rows("security_logs") if r["event_type"] == "security_alert_triggered"]
    assert len(triggered) == 1
    assert triggered[0]["metadata"]["threats_count"] == 1


def test_alert_is_logged_even_when_email_fails():
    db = FakeSupabase({"security_logs": logs(12), "security_settings": [settings_row()]})
    report = SecurityService(db, email=FakeEmail(fail=True)).monitor(NOW)
    assert report.alert.alert_logged is True
    assert report.alert.email_sent is False


def test_alert_skipped_when_disabled():
    db = FakeSupabase({"security_logs": logs(12), "security_settings": [settings_row(security_alerts=False)]})
    report = SecurityService(db, email=FakeEmail()).monitor(NOW)
    assert report.alert.success is False
    assert report.alert.reason == "alerts_disabled"


def test_alert_skipped_for_medium_threats_only():
    rows = logs(6, ip=None, severity="high")
    db = FakeSupabase({"security_logs": rows, "security_settings": [settings_row()]})
    email = FakeEmail()
    report = SecurityService(db, email=email).monitor(NOW)
    assert [t.severity for t in report.threats] == ["medium"]
    assert report.alert.reason == "no_high_severity_threats"
    assert email.sent == []


def test_scan_flags_weak_settings_and_logs_itself():
    db = FakeSupabase({"security_settings": [settings_row(ssl_enforcement=False, two_factor_enabled=False,
                                                          firewall_enabled=False)]})
    result = SecurityService(db, email=FakeEmail()).scan()
    assert [v.type for v in result.vulnerabilities] == ["ssl_not_enforced", "no_two_factor"]
    assert [r.type for r in result.recommendations] == ["enable_firewall"]
    assert result.overall_score == 70
    assert db.rows("security_logs")[0]["event_type"] == "security_scan_completed"


def test_scan_without_settings_row_is_clean():
    result = SecurityService(FakeSupabase(), email=FakeEmail()).scan()
    assert result.vulnerabilities == []
    assert result.overall_score == 100


def test_update_settings_validation():
    service = SecurityService(FakeSupabase(), email=FakeEmail())
    with pytest.raises(HTTPException) as exc:
        service.update_settings(SecuritySettingsUpdate(), "admin-1")
    assert exc.value.status_code == 400
    with pytest.raises(HTTPException) as exc:
        service.update_settings(SecuritySettingsUpdate(two_factor_enabled=True), "admin-1")
    assert exc.value.status_code == 404


def test_update_settings_writes_and_audits():
    db = FakeSupabase({"security_settings": [settings_row(two_factor_enabled=False)]})
    updated = SecurityService(db, email=FakeEmail()).update_settings(
        SecuritySettingsUpdate(two_factor_enabled=True), "admin-1"
    )
    assert updated["two_factor_enabled"] is True
    audit = db.rows("security_logs")[0]
    assert audit["event_type"] == "security_settings_updated"
    assert audit["metadata"]["updated_fields"] == ["two_factor_enabled"]


def test_resolve_unknown_log_is_404():
    with pytest.raises(HTTPException) as exc:
        SecurityService(FakeSupabase(), email=FakeEmail()).resolve_log("missing")
    assert exc.value.status_code == 404


def test_record_failed_login_never_raises():
    db = FakeSupabase()
    service = SecurityService(db, email=FakeEmail())
    service.record_failed_login("a@example.com", "198.51.100.7", "curl/8")
    assert db.rows("security_logs")[0]["event_type"] == "login_failed"

    db.fail_tables.add("security_logs")
    service.record_failed_login("a@example.com", None, None)


# email client

def test_email_client_posts_to_resend():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.read()
        return httpx.Response(200, json={"id": "msg-1"})

    client = EmailClient(api_key="re_test", sender="AuthorHub <alerts@example.com>",
                         url="https://api.resend.test/emails",
                         client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert client.send("ops@example.com", "Hello", "<p>hi</p>") == "msg-1"
    assert seen["auth"] == "Bearer re_test"
    assert b'"to":["ops@example.com"]' in seen["body"].replace(b" ", b"")


def test_email_client_raises_on_http_error():
    client = EmailClient(api_key="re_test", url="https://api.resend.test/emails",
                         client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(422))))
    with pytest.raises(httpx.HTTPStatusError):
        client.send("ops@example.com", "Hello", "<p>hi</p>")


def test_email_client_requires_api_key():
    client = EmailClient(api_key="")
    assert client.configured is False
    with pytest.raises(EmailNotConfigured):
        client.send("ops@example.com", "Hello", "<p>hi</p>")
