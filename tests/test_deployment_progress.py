import json
from datetime import datetime, timedelta, timezone

from authorhub.modules.deployments.progress import (
    EVENT_MARKER, STEP_NAMES, compute_progress, events_from_rows, extract_events, format_event
)
from authorhub.modules.deployments.schemas import DeploymentStep, StatusEvent, StepStatus

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def event(step, status, message=""):
    return StatusEvent(step=step, status=status, message=message)


def test_format_event_round_trips_through_extract():
    line = format_event(DeploymentStep.WEB_SERVER, StepStatus.COMPLETED, "built", ts=T0)
    assert line.startswith(EVENT_MARKER + " ")
    events = extract_events(f"some output\n{line}\nmore output\n")
    assert len(events) == 1
    assert events[0].step == DeploymentStep.WEB_SERVER
    assert events[0].status == StepStatus.COMPLETED
    assert events[0].ts == T0


def test_extract_events_skips_bad_lines():
    good = json.dumps({"v": 1, "step": "finalize", "status": "in_progress", "message": "reloading"})
    log = "\n".join([
        f"{EVENT_MARKER} {{not json",
        f"{EVENT_MARKER} [1, 2]",
        f"{EVENT_MARKER} " + json.dumps({"v": 2, "step": "finalize", "status": "completed"}),
        f"{EVENT_MARKER} " + json.dumps({"v": 1, "step": "launch_rocket", "status": "completed"}),
        "Deployment Complete - just prose, no marker",
        f"+ echo {EVENT_MARKER} {good}",
    ])
    events = extract_events(log)
    assert [(e.step, e.status) for e in events] == [(DeploymentStep.FINALIZE, StepStatus.IN_PROGRESS)]


def test_events_from_rows_ignores_non_dicts():
    rows = [{"v": 1, "step": "initialize", "status": "completed"}, "junk", None]
    events = events_from_rows(rows)
    assert len(events) == 1


def test_no_events_means_all_pending_and_deploying():
    progress = compute_progress("d1", [], "deploying")
    assert progress.overall_status == "deploying"
    assert progress.percent == 0
    assert [s.name for s in progress.steps] == list(STEP_NAMES.values())
    assert {s.status for s in progress.steps} == {StepStatus.PENDING}


def test_latest_event_per_step_wins_and_skipped_steps_do_not_count():
    events = [
        event(DeploymentStep.INITIALIZE, StepStatus.COMPLETED),
        event(DeploymentStep.SECURITY_GROUP, StepStatus.SKIPPED),
        event(DeploymentStep.KEY_PAIR, StepStatus.SKIPPED),
        event(DeploymentStep.EC2_INSTANCE, StepStatus.SKIPPED),
        event(DeploymentStep.SYSTEM_SETUP, StepStatus.IN_PROGRESS),
        event(DeploymentStep.SYSTEM_SETUP, StepStatus.COMPLETED),
        event(DeploymentStep.WEB_SERVER, StepStatus.IN_PROGRESS),
    ]
    progress = compute_progress("d1", events, "deploying")
    by_step = {s.step: s for s in progress.steps}
    assert by_step[DeploymentStep.SYSTEM_SETUP].status == StepStatus.COMPLETED
    assert by_step[DeploymentStep.WEB_SERVER].status == StepStatus.IN_PROGRESS
    # 2 of 5 countable steps completed
    assert progress.percent == 40.0
    assert progress.overall_status == "deploying"


def test_failed_step_fails_the_deployment():
    events = [event(DeploymentStep.WEB_SERVER, StepStatus.FAILED, "npm run build exited 1")]
    progress = compute_progress("d1", events, "deploying")
    assert progress.overall_status == "failed"


def test_finalize_completed_means_completed():
    events = [event(step, StepStatus.COMPLETED) for step in DeploymentStep]
    progress = compute_progress("d1", events, "deploying")
    assert progress.overall_status == "completed"
    assert progress.percent == 100.0


def test_running_row_outranks_step_events():
    events = [event(DeploymentStep.DATABASE, StepStatus.FAILED)]
    assert compute_progress("d1", events, "running").overall_status == "completed"


def test_failed_row_outranks_completed_finalize():
    events = [event(DeploymentStep.FINALIZE, StepStatus.COMPLETED)]
    assert compute_progress("d1", events, "failed").overall_status == "failed"


def test_all_skipped_is_full_progress():
    events = [event(step, StepStatus.SKIPPED) for step in DeploymentStep]
    assert compute_progress("d1", events, "deploying").percent == 100.0


def test_elapsed_seconds_from_start():
    progress = compute_progress("d1", [], "deploying", started_at=T0, now=T0 + timedelta(minutes=2, seconds=5))
    assert progress.elapsed_seconds == 125
    naive = compute_progress("d1", [], "deploying", started_at=T0.replace(tzinfo=None), now=T0 + timedelta(seconds=30))
    assert naive.elapsed_seconds == 30
