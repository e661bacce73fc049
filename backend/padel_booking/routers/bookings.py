import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Cookie, Depends, HTTPException, Path, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import CurrentUser, get_current_user, get_locks, get_mailer, get_session, get_venue_now, require_verified_user
from ..domain.errors import BookingDomainError
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyCourtRepository
from ..models import Booking, BookingStatus
from ..schemas import BookingCreate, BookingRead, PendingBooking
from ..usecases import bookings as booking_usecase
from ..usecases import notifications
from ..utils.audit_log import emit_audit_log
from ..utils.locks import CourtDayLocks
from ..utils.mailer import Mailer
from ..utils.time import parse_hhmm
from .errors import to_http_error

logger = logging.getLogger(__name__)

PENDING_BOOKING_COOKIE = "pendingBooking"

router = APIRouter(prefix="", tags=["bookings"])


def _audit_created(booking: Booking, *, actor_id: str) -> None:
    try:
        emit_audit_log(
            action="booking.created",
            initiator="user",
            booking_id=booking.id,
            court_id=booking.court_id,
            booking_date=booking.booking_date,
            start_minute=booking.start_minute,
            end_minute=booking.end_minute,
            actor_id=actor_id,
            status_from=None,
            status_to=booking.status,
            price=booking.price,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


async def _create_for_user(
    session: AsyncSession,
    locks: CourtDayLocks,
    current: CurrentUser,
    now: datetime,
    payload: BookingCreate | PendingBooking,
) -> Booking:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    # Released only after commit.
    async with locks.hold(payload.court_id, payload.date), session.begin():
        return await booking_usecase.book_for_customer(
            court_repo,
            booking_repo,
            user=current.profile,
            court_id=payload.court_id,
            booking_date=payload.date,
            start_minute=parse_hhmm(payload.start_time),
            duration_hours=payload.duration,
            now=now,
        )


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    current: CurrentUser = Depends(require_verified_user),
    locks: CourtDayLocks = Depends(get_locks),
    mailer: Mailer = Depends(get_mailer),
    now: datetime = Depends(get_venue_now),
    settings: Settings = Depends(get_settings),
) -> BookingRead:
    try:
        booking = await _create_for_user(session, locks, current, now, payload)
    except BookingDomainError as exc:
        raise to_http_error(exc)

    _audit_created(booking, actor_id=current.id)
    await notifications.notify_booking_confirmed(mailer, booking, venue_email=settings.venue_notify_email)
    return BookingRead.from_db(booking=booking)


@router.get("/me/bookings", response_model=List[BookingRead])
async def list_my_bookings(
    session: AsyncSession = Depends(get_session),
    current: CurrentUser = Depends(get_current_user),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    bookings = await booking_usecase.list_user_bookings(booking_repo, user_id=current.id)
    return [BookingRead.from_db(booking=booking) for booking in bookings]


@router.post("/me/bookings/{booking_id}/cancel", response_model=BookingRead)
async def cancel_my_booking(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    current: CurrentUser = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
    now: datetime = Depends(get_venue_now),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            updated, previous = await booking_usecase.cancel_booking(
                booking_repo,
                booking_id=booking_id,
                actor_id=current.id,
                is_manager=False,
                now=now,
            )
        except BookingDomainError as exc:
            raise to_http_error(exc)

    try:
        emit_audit_log(
            action="booking.cancelled",
            initiator="user",
            booking_id=updated.id,
            court_id=updated.court_id,
            booking_date=updated.booking_date,
            start_minute=updated.start_minute,
            end_minute=updated.end_minute,
            actor_id=current.id,
            status_from=previous,
            status_to=BookingStatus.CANCELLED,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    await notifications.notify_booking_cancelled(mailer, updated)
    return BookingRead.from_db(booking=updated)


@router.post("/pending-booking", status_code=status.HTTP_204_NO_CONTENT)
async def store_pending_booking(
    payload: PendingBooking,
    settings: Settings = Depends(get_settings),
) -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.set_cookie(
        PENDING_BOOKING_COOKIE,
        payload.model_dump_json(),
        max_age=settings.pending_booking_cookie_max_age,
        httponly=True,
        samesite="lax",
    )
    return response


def _discarding_pending(status_code: int, detail: object) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content={"detail": detail})
    response.delete_cookie(PENDING_BOOKING_COOKIE)
    return response


@router.post("/me/pending-booking/resume", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def resume_pending_booking(
    pending_cookie: str | None = Cookie(default=None, alias=PENDING_BOOKING_COOKIE),
    session: AsyncSession = Depends(get_session),
    current: CurrentUser = Depends(require_verified_user),
    locks: CourtDayLocks = Depends(get_locks),
    mailer: Mailer = Depends(get_mailer),
    now: datetime = Depends(get_venue_now),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Replay the booking stashed before the login redirect; the cookie is always discarded."""
    if pending_cookie is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no pending booking")
    try:
        pending = PendingBooking.model_validate_json(pending_cookie)
    except ValidationError:
        return _discarding_pending(status.HTTP_400_BAD_REQUEST, "invalid pending booking")

    try:
        booking = await _create_for_user(session, locks, current, now, pending)
    except BookingDomainError as exc:
        http_error = to_http_error(exc)
        return _discarding_pending(http_error.status_code, http_error.detail)
    except SQLAlchemyError:
        logger.exception("pending booking replay failed user=%s", current.id)
        return _discarding_pending(status.HTTP_503_SERVICE_UNAVAILABLE, "booking store unavailable")

    _audit_created(booking, actor_id=current.id)
    await notifications.notify_booking_confirmed(mailer, booking, venue_email=settings.venue_notify_email)
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=BookingRead.from_db(booking=booking).model_dump(mode="json"),
    )
    response.delete_cookie(PENDING_BOOKING_COOKIE)
    return response
