from datetime import date, datetime
from typing import Any, AsyncIterator, cast

import pytest
from padel_booking.deps import CurrentUser, get_current_user, get_session
from padel_booking.domain.errors import StatusTransitionError, UserNotFoundError
from padel_booking.models import Booking, BookingStatus, User, UserRole
from padel_booking.routers import admin as router
from padel_booking.schemas import ManagerBookingCreate, ManagerUserUpdate
from padel_booking.utils.auth import Identity
from padel_booking.utils.locks import CourtDayLocks
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

NOW = datetime(2026, 5, 4, 12, 0)


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


def _user(role: UserRole, user_id: str = "manager-1") -> User:
    now = datetime(2026, 1, 1)
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        name=user_id,
        role=role,
        no_show_user=False,
        created_at=now,
        updated_at=now,
    )


def _manager() -> CurrentUser:
    return CurrentUser(identity=Identity("manager-1", "manager-1@example.com", True), profile=_user(UserRole.MANAGER))


def _booking(status: BookingStatus = BookingStatus.CONFIRMED) -> Booking:
    now = datetime(2026, 5, 1)
    return Booking(
        id=55,
        court_id="court-b",
        booking_date=date(2026, 5, 4),
        start_minute=9 * 60,
        end_minute=10 * 60,
        status=status,
        manager_id="manager-1",
        customer_name="Walk-in",
        price=20,
        created_at=now,
        updated_at=now,
    )


def _patch_repos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "SqlAlchemyCourtRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyBookingRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyUserRepository", lambda s: s)  # type: ignore[assignment]


def test_admin_routes_require_manager_role() -> None:
    app = FastAPI()
    app.include_router(router.router)

    async def override_get_session() -> AsyncIterator[DummySession]:
        yield DummySession()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(
        identity=Identity("user-1", "user-1@example.com", True),
        profile=_user(UserRole.USER, "user-1"),
    )
    client = TestClient(app)

    assert client.get("/admin/users").status_code == 403
    assert client.get("/admin/bookings", params={"date": "2026-05-04"}).status_code == 403


@pytest.mark.asyncio
async def test_manager_booking_emits_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_book(*args: object, **kwargs: Any) -> Booking:
        seen.update(kwargs)
        return _booking()

    calls: list[dict[str, Any]] = []
    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "book_for_manager", fake_book)  # type: ignore[attr-defined]
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    payload = ManagerBookingCreate(
        court_id="court-b",
        date=date(2026, 5, 4),
        start_time="09:00",
        duration=1,
        customer_name="Walk-in",
    )
    result = await router.create_booking(
        payload=payload,
        session=cast(AsyncSession, DummySession()),
        manager=_manager(),
        locks=CourtDayLocks(),
    )

    assert result.manager_id == "manager-1"
    assert seen["start_minute"] == 540
    assert seen["price"] is None
    assert calls[0]["initiator"] == "manager"
    assert calls[0]["action"] == "booking.created"


@pytest.mark.asyncio
async def test_no_show_uses_mark_no_show(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_no_show(*args: object, **kwargs: Any) -> tuple[Booking, BookingStatus]:
        assert kwargs["booking_id"] == 55
        return _booking(BookingStatus.NO_SHOW), BookingStatus.CONFIRMED

    calls: list[dict[str, Any]] = []
    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "mark_no_show", fake_no_show)  # type: ignore[attr-defined]
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result = await router.change_booking_status(
        action="no-show",
        booking_id=55,
        session=cast(AsyncSession, DummySession()),
        manager=_manager(),
        now=NOW,
    )

    assert result.status == BookingStatus.NO_SHOW
    assert calls[0]["action"] == "booking.no_show"
    assert calls[0]["status_from"] == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_manager_cancel_of_started_booking_returns_409(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_cancel(*args: object, **kwargs: Any) -> tuple[Booking, BookingStatus]:
        assert kwargs["is_manager"] is True
        raise StatusTransitionError("cannot cancel past bookings")

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "cancel_booking", fake_cancel)  # type: ignore[attr-defined]

    with pytest.raises(HTTPException) as excinfo:
        await router.change_booking_status(
            action="cancel",
            booking_id=55,
            session=cast(AsyncSession, DummySession()),
            manager=_manager(),
            now=NOW,
        )
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_revenue(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_revenue(*args: object, **kwargs: Any) -> int:
        assert kwargs["now"] == NOW
        return 140

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "completed_revenue", fake_revenue)  # type: ignore[attr-defined]

    result = await router.completed_revenue(
        booking_date=date(2026, 5, 4),
        session=cast(AsyncSession, DummySession()),
        now=NOW,
    )
    assert result.completed_total == 140


@pytest.mark.asyncio
async def test_update_user_passes_only_set_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_update(*args: object, **kwargs: Any) -> User:
        seen.update(kwargs)
        user = _user(UserRole.USER, "user-9")
        user.no_show_user = True
        return user

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.user_usecase, "update_user", fake_update)  # type: ignore[attr-defined]

    result = await router.update_user(
        user_id="user-9",
        payload=ManagerUserUpdate(no_show_user=True),
        session=cast(AsyncSession, DummySession()),
    )
    assert seen["changes"] == {"no_show_user": True}
    assert result.no_show_user is True


@pytest.mark.asyncio
async def test_update_unknown_user_returns_404(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_update(*args: object, **kwargs: Any) -> User:
        raise UserNotFoundError("user nope not found")

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.user_usecase, "update_user", fake_update)  # type: ignore[attr-defined]

    with pytest.raises(HTTPException) as excinfo:
        await router.update_user(
            user_id="nope",
            payload=ManagerUserUpdate(role=UserRole.MANAGER),
            session=cast(AsyncSession, DummySession()),
        )
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_bookings_for_date_passes_include_all(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_list(*args: object, **kwargs: Any) -> list[Booking]:
        seen.update(kwargs)
        return [_booking(), _booking(BookingStatus.CANCELLED)]

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "list_bookings_for_date", fake_list)  # type: ignore[attr-defined]

    result = await router.list_bookings_for_date(
        booking_date=date(2026, 5, 4),
        include_all=True,
        session=cast(AsyncSession, DummySession()),
    )
    assert seen == {"booking_date": date(2026, 5, 4), "include_all": True}
    assert [b.status for b in result] == [BookingStatus.CONFIRMED, BookingStatus.CANCELLED]


@pytest.mark.asyncio
async def test_recent_bookings_uses_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_recent(*args: object, **kwargs: Any) -> list[Booking]:
        assert kwargs["limit"] == 10
        return [_booking()]

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "list_recent_bookings", fake_recent)  # type: ignore[attr-defined]

    result = await router.list_recent_bookings(limit=10, session=cast(AsyncSession, DummySession()))
    assert [b.id for b in result] == [55]


@pytest.mark.parametrize("body", [{"role": None}, {"no_show_user": None, "name": "Ana"}])
def test_update_user_rejects_null_for_required_fields(monkeypatch: pytest.MonkeyPatch, body: dict[str, Any]) -> None:
    async def fake_update(*args: object, **kwargs: Any) -> User:
        pytest.fail("update must not run for a rejected payload")

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.user_usecase, "update_user", fake_update)  # type: ignore[attr-defined]

    app = FastAPI()
    app.include_router(router.router)

    async def override_get_session() -> AsyncIterator[DummySession]:
        yield DummySession()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user] = _manager
    res = TestClient(app).patch("/admin/users/user-9", json=body)
    assert res.status_code == 422


def test_update_user_allows_null_for_optional_profile_fields() -> None:
    payload = ManagerUserUpdate.model_validate({"phone": None, "no_show_user": False})
    assert payload.model_dump(exclude_unset=True) == {"phone": None, "no_show_user": False}


@pytest.mark.asyncio
async def test_manager_booking_holds_court_day_lock_until_commit(monkeypatch: pytest.MonkeyPatch) -> None:
    locks = CourtDayLocks()
    held_at_commit: list[int] = []

    class CommitTrackingSession(DummySession):
        async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
            held_at_commit.append(len(locks))
            return False

    async def fake_book(*args: object, **kwargs: Any) -> Booking:
        return _booking()

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.booking_usecase, "book_for_manager", fake_book)  # type: ignore[attr-defined]
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: None)

    await router.create_booking(
        payload=ManagerBookingCreate(
            court_id="court-b",
            date=date(2026, 5, 4),
            start_time="09:00",
            duration=1,
            customer_name="Walk-in",
        ),
        session=cast(AsyncSession, CommitTrackingSession()),
        manager=_manager(),
        locks=locks,
    )
    assert held_at_commit == [1]
    assert len(locks) == 0
