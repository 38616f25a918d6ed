from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from authorhub.modules.site.schemas import SectionCreate, SectionUpdate, ThemeCreate
from authorhub.modules.site.service import SectionService, ThemeService
from authorhub.modules.subscriptions.schemas import PlanCreate, PlanUpdate, SubscriptionAssign
from authorhub.modules.subscriptions.service import SubscriptionService, trial_status
from tests.fakes import FakeSupabase

NOW = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)


def plans():
    return [
        {"id": "plan-free", "name": "Free", "price_monthly": 0, "max_books": 1},
        {"id": "plan-pro", "name": "Pro", "price_monthly": 9.99, "max_books": -1},
    ]


# sections

def test_sections_append_after_the_last_one():
    service = SectionService(FakeSupabase())
    first = service.create(SectionCreate(title="Hero", type="hero"))
    second = service.create(SectionCreate(title="Books", type="books"))
    pinned = service.create(SectionCreate(title="Pinned", type="text", order_index=7))
    after = service.create(SectionCreate(title="Footer", type="footer"))
    assert (first.order_index, second.order_index, pinned.order_index, after.order_index) == (0, 1, 7, 8)


def test_reorder_sets_positions():
    service = SectionService(FakeSupabase())
    a = service.create(SectionCreate(title="A", type="text"))
    b = service.create(SectionCreate(title="B", type="text"))
    c = service.create(SectionCreate(title="C", type="text"))
    ordered = service.reorder([c.id, a.id, b.id])
    assert [s.title for s in ordered] == ["C", "A", "B"]
    assert [s.order_index for s in ordered] == [0, 1, 2]


def test_reorder_rejects_duplicates_and_unknown_ids():
    service = SectionService(FakeSupabase())
    a = service.create(SectionCreate(title="A", type="text"))
    with pytest.raises(HTTPException) as exc:
        service.reorder([a.id, a.id])
    assert exc.value.status_code == 400
    with pytest.raises(HTTPException) as exc:
        service.reorder([a.id, "ghost"])
    assert exc.value.status_code == 404


def test_section_update_and_enabled_filter():
    service = SectionService(FakeSupabase())
    a = service.create(SectionCreate(title="A", type="text"))
    service.create(SectionCreate(title="B", type="text"))
    updated = service.update(a.id, SectionUpdate(enabled=False, config={"columns": 2}))
    assert updated.enabled is False
    assert updated.config == {"columns": 2}
    assert [s.title for s in service.list(enabled_only=True)] == ["B"]


def test_missing_theme_is_404_and_themes_sort_by_name():
    service = ThemeService(FakeSupabase())
    service.create(ThemeCreate(name="Nocturne", premium=True))
    service.create(ThemeCreate(name="Classic"))
    assert [t.name for t in service.list()] == ["Classic", "Nocturne"]
    with pytest.raises(HTTPException) as exc:
        service.delete("ghost")
    assert exc.value.status_code == 404
    assert exc.value.detail == "Theme not found"


# trials

def test_trial_status_rounds_days_up():
    assert trial_status("trialing", NOW + timedelta(days=2, hours=1), NOW) == (True, 3)
    assert trial_status("trialing", (NOW + timedelta(hours=5)).isoformat(), NOW) == (True, 1)


def test_trial_status_expired_or_not_trialing():
    assert trial_status("trialing", NOW - timedelta(seconds=1), NOW) == (False, 0)
    assert trial_status("active", NOW + timedelta(days=3), NOW) == (False, 0)
    assert trial_status("trialing", None, NOW) == (False, 0)


# plans and subscriptions

def test_plans_listed_by_price():
    service = SubscriptionService(FakeSupabase({"subscription_plans": list(reversed(plans()))}))
    assert [p.name for p in service.list_plans()] == ["Free", "Pro"]


def test_create_and_update_plan():
    db = FakeSupabase({"subscription_plans": []})
    service = SubscriptionService(db)
    plan = service.create_plan(PlanCreate(name="Studio", price_monthly=29, blog=True))
    updated = service.update_plan(plan.id, PlanUpdate(price_monthly=24))
    assert updated.price_monthly == 24
    assert updated.blog is True
    with pytest.raises(HTTPException) as exc:
        service.update_plan("ghost", PlanUpdate(name="x"))
    assert exc.value.status_code == 404


def test_user_without_subscription_falls_back_to_free():
    service = SubscriptionService(FakeSupabase({"subscription_plans": plans(), "user_subscriptions": []}))
    sub = service.get_subscription("author-1", NOW)
    assert sub.status == "inactive"
    assert sub.plan.name == "Free"
    assert sub.plan_id == "plan-free"
    assert sub.is_trial is False


def test_assign_trial_replaces_current_subscription():
    db = FakeSupabase({
        "subscription_plans": plans(),
        "user_subscriptions": [{"id": "old", "user_id": "author-1", "plan_id": "plan-free", "status": "active",
                                "created_at": (NOW - timedelta(days=30)).isoformat()}],
        "profiles": [{"id": "author-1"}],
    })
    service = SubscriptionService(db)
    sub = service.assign_plan("author-1", SubscriptionAssign(plan_id="plan-pro", status="trialing", trial_days=7), NOW)
    assert sub.plan.name == "Pro"
    assert sub.is_trial is True
    assert sub.trial_days_left == 7
    assert sub.trial_ends_at == NOW + timedelta(days=7)
    statuses = {row["id"]: row["status"] for row in db.rows("user_subscriptions")}
    assert statuses["old"] == "cancelled"
    assert db.rows("profiles")[0]["subscription_plan_id"] == "plan-pro"

    current = service.get_subscription("author-1", NOW + timedelta(days=1))
    assert current.plan_id == "plan-pro"
    assert current.trial_days_left == 6


def test_assign_trial_without_days_uses_default():
    db = FakeSupabase({"subscription_plans": plans(), "user_subscriptions": [], "profiles": []})
    sub = SubscriptionService(db).assign_plan("author-1", SubscriptionAssign(plan_id="plan-pro", status="trialing"), NOW)
    assert sub.trial_days_left == 14


def test_assign_unknown_plan_is_404():
    service = SubscriptionService(FakeSupabase({"subscription_plans": plans()}))
    with pytest.raises(HTTPException) as exc:
        service.assign_plan("author-1", SubscriptionAssign(plan_id="ghost"))
    assert exc.value.status_code == 404


def test_cancel_subscription():
    db = FakeSupabase({
        "subscription_plans": plans(),
        "user_subscriptions": [{"id": "s1", "user_id": "author-1", "plan_id": "plan-pro", "status": "active"}],
    })
    service = SubscriptionService(db)
    after = service.cancel_subscription("author-1")
    assert after.status == "inactive"
    assert after.plan.name == "Free"
    with pytest.raises(HTTPException) as exc:
        service.cancel_subscription("author-1")
    assert exc.value.status_code == 404
