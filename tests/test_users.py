import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from authorhub.config.settings import settings
from authorhub.modules.users.schemas import ModeratorPermissionUpdate, ProfileUpdate
from authorhub.modules.users.service import UserService
from tests.fakes import FakeSupabase

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def db():
    return FakeSupabase({
        "profiles": [
            {"id": "author-1", "email": "ada@example.com", "full_name": "Ada Writer",
             "created_at": "2026-01-02T00:00:00+00:00"},
            {"id": "author-2", "email": "sam@example.com", "full_name": "Sam Poet",
             "created_at": "2026-01-03T00:00:00+00:00"},
            {"id": "mod-1", "email": "mod@example.com", "full_name": "Mo Derator",
             "created_at": "2026-01-01T00:00:00+00:00"},
        ],
        "user_roles": [
            {"user_id": "author-1", "role": "user"},
            {"user_id": "mod-1", "role": "moderator"},
        ],
        "moderator_permissions": [],
    })


@pytest.fixture
def service(db):
    return UserService(db)


def test_list_users_newest_first_and_search(service):
    assert [u.id for u in service.list_users()] == ["author-2", "author-1", "mod-1"]
    assert [u.id for u in service.list_users(search="ada")] == ["author-1"]
    assert [u.id for u in service.list_users(search="POET")] == ["author-2"]


def test_get_missing_user_is_404(service):
    with pytest.raises(HTTPException) as exc:
        service.get_user_by_id("ghost")
    assert exc.value.status_code == 404


def test_update_profile(service):
    updated = service.update_user("author-1", ProfileUpdate(bio="Writes mysteries", slug="ada-writer"))
    assert updated.bio == "Writes mysteries"
    assert updated.slug == "ada-writer"
    assert service.update_user("author-1", ProfileUpdate()).bio == "Writes mysteries"


def test_delete_user_removes_roles_and_permissions(service, db):
    db.tables["moderator_permissions"].append({"user_id": "mod-1", "feature": "books", "can_view": True})
    service.delete_user("mod-1")
    assert [p["id"] for p in db.rows("profiles")] == ["author-1", "author-2"]
    assert all(r["user_id"] != "mod-1" for r in db.rows("user_roles"))
    assert db.rows("moderator_permissions") == []


# avatars

def test_upload_avatar_stores_file_and_updates_profile(service, db):
    result = service.upload_avatar("author-1", PNG, "image/png")
    assert result.path.startswith("author-1/avatar-")
    assert result.path.endswith(".png")
    assert result.avatar_url == f"https://storage.test/{settings.avatars_bucket}/{result.path}"
    stored, options = db.storage.objects[(settings.avatars_bucket, result.path)]
    assert stored == PNG
    assert options["content-type"] == "image/png"
    assert db.rows("profiles")[0]["avatar_url"] == result.avatar_url


@pytest.mark.parametrize("content, content_type, code", [
    (PNG, "application/pdf", 400),
    (PNG, None, 400),
    (b"", "image/png", 400),
])
def test_upload_avatar_rejects_bad_files(service, content, content_type, code):
    with pytest.raises(HTTPException) as exc:
        service.upload_avatar("author-1", content, content_type)
    assert exc.value.status_code == code


def test_upload_avatar_too_large(service, monkeypatch):
    monkeypatch.setattr(settings, "avatar_max_bytes", 16)
    with pytest.raises(HTTPException) as exc:
        service.upload_avatar("author-1", PNG, "image/png")
    assert exc.value.status_code == 413


def test_upload_avatar_for_unknown_user(service):
    with pytest.raises(HTTPException) as exc:
        service.upload_avatar("ghost", PNG, "image/jpeg")
    assert exc.value.status_code == 404


# moderator permissions

def test_permission_feature_validation():
    with pytest.raises(ValidationError) as exc:
        ModeratorPermissionUpdate(feature="spaceships")
    assert "Unknown feature: spaceships" in str(exc.value)
    with pytest.raises(ValidationError) as exc:
        ModeratorPermissionUpdate(feature="deployments", can_view=True)
    assert "deployments is reserved for admins" in str(exc.value)


def test_permissions_only_for_moderators(service):
    with pytest.raises(HTTPException) as exc:
        service.set_moderator_permission("author-1", ModeratorPermissionUpdate(feature="books", can_view=True))
    assert exc.value.status_code == 400


def test_set_moderator_permission_upserts_per_feature(service, db):
    service.set_moderator_permission("mod-1", ModeratorPermissionUpdate(feature="books", can_view=True))
    service.set_moderator_permission("mod-1", ModeratorPermissionUpdate(feature="books", can_view=True, can_edit=True))
    service.set_moderator_permission("mod-1", ModeratorPermissionUpdate(feature="blog", can_approve=True))
    grants = service.list_moderator_permissions("mod-1")
    assert [g.feature for g in grants] == ["blog", "books"]
    assert grants[1].can_edit is True
    assert len(db.rows("moderator_permissions")) == 2
