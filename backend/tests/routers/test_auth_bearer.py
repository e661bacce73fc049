from datetime import datetime, timedelta
from typing import Any, AsyncIterator

import pytest
from padel_booking.config import get_settings
from padel_booking.deps import CurrentUser, get_current_user, get_session, require_manager
from padel_booking.models import User, UserRole
from padel_booking.utils.auth import create_access_token
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient


class DummySession:
    def __init__(self, role: UserRole | None) -> None:
        self.role = role

    async def scalar(self, *args: Any, **kwargs: Any) -> User | None:
        if self.role is None:
            return None
        now = datetime(2026, 1, 1)
        return User(id="uid-123", email="p@example.com", role=self.role, no_show_user=False, created_at=now, updated_at=now)

    async def commit(self) -> None:
        return None

    async def rollback(self) -> None:
        return None


def _make_app(role: UserRole | None) -> TestClient:
    app = FastAPI()

    async def override_get_session() -> AsyncIterator[DummySession]:
        yield DummySession(role)

    app.dependency_overrides[get_session] = override_get_session

    @app.get("/protected")
    async def protected(current: CurrentUser = Depends(get_current_user)) -> dict[str, str]:
        return {"user_id": current.id}

    @app.get("/managers-only")
    async def managers_only(current: CurrentUser = Depends(require_manager)) -> dict[str, str]:
        return {"user_id": current.id}

    return TestClient(app)


def _token(secret: str, *, expired: bool = False) -> str:
    delta = timedelta(seconds=-1) if expired else timedelta(minutes=30)
    return create_access_token(user_id="uid-123", secret=secret, expires_delta=delta)


@pytest.fixture(autouse=True)
def _auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_protected_accepts_valid_token() -> None:
    client = _make_app(UserRole.USER)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 200
    assert res.json()["user_id"] == "uid-123"


def test_protected_rejects_missing_header() -> None:
    client = _make_app(UserRole.USER)
    res = client.get("/protected")
    assert res.status_code == 401
    assert res.headers.get("www-authenticate", "").lower().startswith("bearer")


def test_protected_rejects_invalid_token() -> None:
    client = _make_app(UserRole.USER)
    res = client.get("/protected", headers={"Authorization": "Bearer invalid"})
    assert res.status_code == 401


def test_protected_rejects_expired_token() -> None:
    client = _make_app(UserRole.USER)
    token = _token("testsecret", expired=True)
    res = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_protected_rejects_when_user_not_found() -> None:
    client = _make_app(None)
    res = client.get("/protected", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 401


def test_manager_route_rejects_regular_user() -> None:
    client = _make_app(UserRole.USER)
    res = client.get("/managers-only", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 403


def test_manager_route_accepts_manager() -> None:
    client = _make_app(UserRole.MANAGER)
    res = client.get("/managers-only", headers={"Authorization": f"Bearer {_token('testsecret')}"})
    assert res.status_code == 200
