from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.db.session import get_db
from app.main import app
from app.services.auth.session import get_current_user
from app.storage.local import LocalStorage, get_storage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "uploads"), {"covers", "chapters"})


@pytest.fixture
def client(session_factory, storage):
    def _get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with patch("app.api.routes.chapters.check_unlock_rate_limit", return_value=True):
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Act as the given user for every following request."""

    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    return _login


@pytest.fixture
def csrf_headers(client):
    token = client.get("/api/csrf-token").json()["csrfToken"]
    return {"X-CSRF-Token": token}
