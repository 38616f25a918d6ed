from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from tests.fakes import ADMIN, AUTHOR, MODERATOR, OTHER_AUTHOR, FakeSupabase


@pytest.fixture
def fake_db():
    return FakeSupabase({
        "user_roles": [
            {"user_id": ADMIN["id"], "role": "admin"},
            {"user_id": MODERATOR["id"], "role": "moderator"},
            {"user_id": AUTHOR["id"], "role": "user"},
            {"user_id": OTHER_AUTHOR["id"], "role": "user"},
        ],
        "moderator_permissions": [],
    })


@pytest.fixture
def api(fake_db):
    """TestClient factory: api(user) returns a client authenticated as user"""
    from authorhub.main import app
    from authorhub.database.supabase_client import get_service_supabase, get_supabase
    from authorhub.core.dependencies import get_current_user_id

    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db

    def client_for(user: Optional[Dict[str, Any]] = None) -> TestClient:
        if user is not None:
            app.dependency_overrides[get_current_user_id] = lambda: dict(user)
        else:
            app.dependency_overrides.pop(get_current_user_id, None)
        return TestClient(app)

    yield client_for
    app.dependency_overrides.clear()
