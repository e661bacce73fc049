from datetime import datetime, timedelta
from typing import Any

import pytest
from padel_booking.config import Settings
from padel_booking.deps import CurrentUser, get_current_user, get_identity, require_manager, require_verified_user
from padel_booking.models import User, UserRole
from padel_booking.utils.auth import Identity, create_access_token
from fastapi import HTTPException
from sqlalchemy.exc import ProgrammingError

SETTINGS = Settings(auth_secret="testsecret")


def _user(role: UserRole = UserRole.USER) -> User:
    now = datetime(2026, 1, 1)
    return User(
        id="uid-123",
        email="player@example.com",
        name="Player",
        role=role,
        no_show_user=False,
        created_at=now,
        updated_at=now,
    )


class DummySession:
    def __init__(self, result: User | None | Exception) -> None:
        self.result = result
        self.committed = False
        self.rolled_back = False

    async def scalar(self, *args: Any, **kwargs: Any) -> User | None:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


def _token(**kwargs: Any) -> str:
    return create_access_token(secret=SETTINGS.auth_secret, algorithm=SETTINGS.auth_algorithm, **kwargs)


@pytest.mark.asyncio
async def test_get_identity_accepts_valid_token() -> None:
    token = _token(user_id="uid-123", email="player@example.com")
    identity = await get_identity(authorization=f"Bearer {token}", settings=SETTINGS)
    assert identity == Identity(user_id="uid-123", email="player@example.com", email_verified=True)


@pytest.mark.asyncio
async def test_get_identity_rejects_missing_header() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_identity(authorization=None, settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_identity_rejects_other_scheme() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_identity(authorization="Basic abc", settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_identity_rejects_expired_token() -> None:
    token = _token(user_id="uid-1", expires_delta=timedelta(seconds=-1))
    with pytest.raises(HTTPException) as excinfo:
        await get_identity(authorization=f"Bearer {token}", settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_identity_rejects_wrong_secret() -> None:
    token = create_access_token(user_id="uid-1", secret="other-secret")
    with pytest.raises(HTTPException) as excinfo:
        await get_identity(authorization=f"Bearer {token}", settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_loads_profile_and_ends_transaction() -> None:
    identity = Identity(user_id="uid-123", email="player@example.com", email_verified=True)
    session = DummySession(_user())
    current = await get_current_user(identity=identity, session=session)  # type: ignore[arg-type]
    assert current.id == "uid-123"
    assert current.is_manager is False
    assert session.committed is True


@pytest.mark.asyncio
async def test_get_current_user_rejects_when_profile_missing() -> None:
    identity = Identity(user_id="uid-404", email=None, email_verified=True)
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user(identity=identity, session=DummySession(None))  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_handles_missing_users_table() -> None:
    identity = Identity(user_id="uid-1", email=None, email_verified=True)
    session = DummySession(ProgrammingError("missing", None, Exception("cause")))
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user(identity=identity, session=session)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 500
    assert session.rolled_back is True


@pytest.mark.asyncio
async def test_require_verified_user_rejects_unverified_email() -> None:
    current = CurrentUser(identity=Identity("uid-123", "player@example.com", False), profile=_user())
    with pytest.raises(HTTPException) as excinfo:
        await require_verified_user(current=current)
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_require_manager() -> None:
    identity = Identity("uid-123", "player@example.com", True)
    with pytest.raises(HTTPException) as excinfo:
        await require_manager(current=CurrentUser(identity=identity, profile=_user()))
    assert excinfo.value.status_code == 403

    manager = CurrentUser(identity=identity, profile=_user(UserRole.MANAGER))
    assert await require_manager(current=manager) is manager
