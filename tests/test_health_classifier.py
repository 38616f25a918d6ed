import itertools

import pytest

from authorhub.modules.health.classifier import (
    APPLICATION, EC2_INSTANCE, INSTANCE_HEALTH, SYSTEM_HEALTH, WEB_SERVER,
    COMPONENT_NAMES, classify_health, unknown_report
)
from authorhub.modules.health.schemas import HealthSignals, HealthState


def signals(**overrides):
    values = dict(
        is_running=True, system_ok=True, instance_ok=True, http_ok=True,
        response_time_ms=500, deployment_age_minutes=10,
    )
    values.update(overrides)
    return HealthSignals(**values)


def test_all_signals_good_is_healthy_everywhere():
    report = classify_health(signals())
    assert report.overall == HealthState.HEALTHY
    assert [c.name for c in report.components] == list(COMPONENT_NAMES)
    assert all(c.state == HealthState.HEALTHY for c in report.components)


@pytest.mark.parametrize("system_ok,instance_ok,http_ok,rt,age", itertools.product(
    [True, False], [True, False], [True, False], [None, 100, 5000], [0, 3, 30]
))
def test_not_running_is_always_unhealthy(system_ok, instance_ok, http_ok, rt, age):
    report = classify_health(signals(
        is_running=False, system_ok=system_ok, instance_ok=instance_ok,
        http_ok=http_ok, response_time_ms=rt, deployment_age_minutes=age,
    ))
    assert report.overall == HealthState.UNHEALTHY
    assert report.component(EC2_INSTANCE).state == HealthState.UNHEALTHY


@pytest.mark.parametrize("rt", [0, 1, 500, 1999])
def test_fast_http_response_means_healthy_application(rt):
    report = classify_health(signals(response_time_ms=rt, system_ok=False))
    assert report.component(APPLICATION).state == HealthState.HEALTHY


def test_slow_http_response_degrades_application():
    report = classify_health(signals(response_time_ms=2000))
    app = report.component(APPLICATION)
    assert app.state == HealthState.DEGRADED
    assert "2000ms" in app.message


def test_missing_latency_with_successful_probe_counts_as_healthy():
    report = classify_health(signals(response_time_ms=None))
    assert report.component(APPLICATION).state == HealthState.HEALTHY


@pytest.mark.parametrize("age", [5, 6, 60])
def test_http_down_after_grace_period_is_unhealthy_web_server(age):
    report = classify_health(signals(http_ok=False, response_time_ms=None, deployment_age_minutes=age))
    assert report.component(WEB_SERVER).state == HealthState.UNHEALTHY
    assert report.component(APPLICATION).state == HealthState.UNKNOWN


def test_installing_instance_reports_remaining_minutes():
    report = classify_health(signals(
        system_ok=False, http_ok=False, response_time_ms=None, deployment_age_minutes=2,
    ))
    assert report.overall == HealthState.DEGRADED
    web = report.component(WEB_SERVER)
    assert web.state == HealthState.DEGRADED
    assert "~3 min remaining" in web.message
    assert web.remaining_minutes == 3
    assert report.component(APPLICATION).state == HealthState.DEGRADED
    assert report.component(SYSTEM_HEALTH).state == HealthState.DEGRADED
    assert report.component(INSTANCE_HEALTH).state == HealthState.HEALTHY


def test_remaining_minutes_never_below_one():
    report = classify_health(signals(http_ok=False, deployment_age_minutes=4.9))
    assert report.component(WEB_SERVER).remaining_minutes == 1


def test_running_with_both_checks_failing_is_unhealthy():
    report = classify_health(signals(system_ok=False, instance_ok=False))
    assert report.overall == HealthState.UNHEALTHY


def test_http_down_with_checks_passing_is_degraded_overall():
    report = classify_health(signals(http_ok=False, deployment_age_minutes=30))
    assert report.overall == HealthState.DEGRADED


def test_custom_thresholds_are_respected():
    report = classify_health(signals(response_time_ms=800), slow_response_ms=500)
    assert report.component(APPLICATION).state == HealthState.DEGRADED
    report = classify_health(signals(http_ok=False, deployment_age_minutes=8), install_grace_minutes=10)
    assert report.component(WEB_SERVER).remaining_minutes == 2


def test_unknown_report_marks_every_component_unknown():
    report = unknown_report("AWS credentials not configured", instance_id="i-123")
    assert report.overall == HealthState.UNKNOWN
    assert report.error == "AWS credentials not configured"
    assert len(report.components) == len(COMPONENT_NAMES)
    assert {c.state for c in report.components} == {HealthState.UNKNOWN}
