from datetime import date, datetime
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import CurrentUser, get_locks, get_session, get_venue_now, require_manager
from ..domain.errors import BookingDomainError
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyCourtRepository,
    SqlAlchemyUserRepository,
)
from ..models import Booking, BookingStatus
from ..schemas import BookingRead, ClockTime, ManagerBookingCreate, ManagerUserUpdate, RevenueRead, UserRead
from ..usecases import bookings as booking_usecase
from ..usecases import slots as slot_usecase
from ..usecases import users as user_usecase
from ..utils.audit_log import AuditAction, emit_audit_log
from ..utils.locks import CourtDayLocks
from ..utils.time import parse_hhmm
from .errors import to_http_error

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_manager)])


def _audit(action: AuditAction, booking: Booking, *, manager_id: str, status_from: BookingStatus | None) -> None:
    try:
        emit_audit_log(
            action=action,
            initiator="manager",
            booking_id=booking.id,
            court_id=booking.court_id,
            booking_date=booking.booking_date,
            start_minute=booking.start_minute,
            end_minute=booking.end_minute,
            actor_id=manager_id,
            status_from=status_from,
            status_to=booking.status,
            price=booking.price,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.get("/bookings", response_model=List[BookingRead])
async def list_bookings_for_date(
    booking_date: date = Query(..., alias="date"),
    include_all: bool = Query(default=False, description="include cancelled and no-show bookings"),
    session: AsyncSession = Depends(get_session),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    bookings = await booking_usecase.list_bookings_for_date(
        booking_repo,
        booking_date=booking_date,
        include_all=include_all,
    )
    return [BookingRead.from_db(booking=booking) for booking in bookings]


@router.get("/bookings/recent", response_model=List[BookingRead])
async def list_recent_bookings(
    limit: int = Query(default=30, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    bookings = await booking_usecase.list_recent_bookings(booking_repo, limit=limit)
    return [BookingRead.from_db(booking=booking) for booking in bookings]


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: ManagerBookingCreate,
    session: AsyncSession = Depends(get_session),
    manager: CurrentUser = Depends(require_manager),
    locks: CourtDayLocks = Depends(get_locks),
) -> BookingRead:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    async with locks.hold(payload.court_id, payload.date), session.begin():
        try:
            booking = await booking_usecase.book_for_manager(
                court_repo,
                booking_repo,
                manager_id=manager.id,
                court_id=payload.court_id,
                booking_date=payload.date,
                start_minute=parse_hhmm(payload.start_time),
                duration_hours=payload.duration,
                customer_name=payload.customer_name,
                customer_email=payload.customer_email,
                customer_phone=payload.customer_phone,
                price=payload.price,
            )
        except BookingDomainError as exc:
            raise to_http_error(exc)

    _audit("booking.created", booking, manager_id=manager.id, status_from=None)
    return BookingRead.from_db(booking=booking)


@router.post("/bookings/{booking_id}/{action}", response_model=BookingRead)
async def change_booking_status(
    action: Literal["cancel", "no-show"],
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    manager: CurrentUser = Depends(require_manager),
    now: datetime = Depends(get_venue_now),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            if action == "cancel":
                updated, previous = await booking_usecase.cancel_booking(
                    booking_repo,
                    booking_id=booking_id,
                    actor_id=manager.id,
                    is_manager=True,
                    now=now,
                )
            else:
                updated, previous = await booking_usecase.mark_no_show(booking_repo, booking_id=booking_id, now=now)
        except BookingDomainError as exc:
            raise to_http_error(exc)

    _audit(
        "booking.cancelled" if action == "cancel" else "booking.no_show",
        updated,
        manager_id=manager.id,
        status_from=previous,
    )
    return BookingRead.from_db(booking=updated)


@router.get("/durations", response_model=dict[str, float])
async def court_max_durations(
    booking_date: date = Query(..., alias="date"),
    start_time: ClockTime = Query(..., description="HH:MM"),
    session: AsyncSession = Depends(get_session),
) -> dict[str, float]:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    return await slot_usecase.get_court_max_durations(
        court_repo,
        booking_repo,
        booking_date=booking_date,
        start_minute=parse_hhmm(start_time),
    )


@router.get("/revenue", response_model=RevenueRead)
async def completed_revenue(
    booking_date: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_venue_now),
) -> RevenueRead:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    total = await booking_usecase.completed_revenue(court_repo, booking_repo, booking_date=booking_date, now=now)
    return RevenueRead(date=booking_date, completed_total=total)


@router.get("/users", response_model=List[UserRead])
async def list_users(session: AsyncSession = Depends(get_session)) -> list[UserRead]:
    user_repo = SqlAlchemyUserRepository(session)
    users = await user_usecase.list_users(user_repo)
    return [UserRead.from_db(user=user) for user in users]


@router.patch("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    payload: ManagerUserUpdate,
    session: AsyncSession = Depends(get_session),
) -> UserRead:
    user_repo = SqlAlchemyUserRepository(session)
    async with session.begin():
        try:
            user = await user_usecase.update_user(
                user_repo,
                user_id=user_id,
                changes=payload.model_dump(exclude_unset=True),
            )
        except BookingDomainError as exc:
            raise to_http_error(exc)
    return UserRead.from_db(user=user)
