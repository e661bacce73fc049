from dataclasses import dataclass
from datetime import date, datetime

from ..domain.errors import (
    BookingNotFoundError,
    CourtNotFoundError,
    InvalidSelectionError,
    NoShowPolicyError,
)
from ..domain.pricing import calculate_price
from ..domain.repositories import BookingRepository, CourtRepository
from ..domain.services import CourtDaySnapshot, validate_booking, validate_status_change
from ..domain.slots import end_time, generate_slots, is_valid_selection
from ..models import Booking, BookingStatus, User
from ..utils.time import has_passed, past_cutoff_minute
from .courts import get_court, pricing_periods_of
from .slots import ensure_allowed_duration


@dataclass(frozen=True)
class BookingCandidate:
    court_id: str
    booking_date: date
    start_minute: int
    end_minute: int
    price: int
    user_id: str | None = None
    manager_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None


async def reserve(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    candidate: BookingCandidate,
) -> Booking:
    """
    Commit a booking after re-checking the interval against a fresh read.

    Must run inside the caller's transaction, with the caller holding the
    court-day lock until that transaction commits, so the re-check and the
    insert see the same state as every other writer for the court and day.
    """
    court = await court_repo.get_for_update(candidate.court_id)
    if court is None:
        raise CourtNotFoundError(f"court {candidate.court_id} not found")

    confirmed = await booking_repo.list_for_date(candidate.booking_date, BookingStatus.CONFIRMED)
    validate_booking(
        CourtDaySnapshot(
            court_id=candidate.court_id,
            start_minute=candidate.start_minute,
            end_minute=candidate.end_minute,
            confirmed_bookings=confirmed,
        )
    )

    return await booking_repo.create(
        court_id=candidate.court_id,
        booking_date=candidate.booking_date,
        start_minute=candidate.start_minute,
        end_minute=candidate.end_minute,
        price=candidate.price,
        status=BookingStatus.CONFIRMED,
        user_id=candidate.user_id,
        manager_id=candidate.manager_id,
        customer_name=candidate.customer_name,
        customer_email=candidate.customer_email,
        customer_phone=candidate.customer_phone,
    )


async def book_for_customer(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    user: User,
    court_id: str,
    booking_date: date,
    start_minute: int,
    duration_hours: float,
    now: datetime,
) -> Booking:
    if user.no_show_user:
        raise NoShowPolicyError("booking not allowed due to no-show policy")
    ensure_allowed_duration(duration_hours)
    court = await get_court(court_repo, court_id=court_id)

    courts = await court_repo.list_all()
    confirmed = await booking_repo.list_for_date(booking_date, BookingStatus.CONFIRMED)
    slots = generate_slots(confirmed, [c.id for c in courts])
    if not is_valid_selection(slots, start_minute, duration_hours, now_minute=past_cutoff_minute(booking_date, now)):
        raise InvalidSelectionError("invalid time slot selection")
    end_minute = end_time(slots, start_minute, duration_hours)
    if end_minute is None:
        raise InvalidSelectionError("could not calculate end time")

    candidate = BookingCandidate(
        court_id=court.id,
        booking_date=booking_date,
        start_minute=start_minute,
        end_minute=end_minute,
        price=calculate_price(pricing_periods_of(court), start_minute, duration_hours),
        user_id=user.id,
        customer_name=user.name or "",
        customer_email=user.email or "",
        customer_phone=user.phone or "",
    )
    return await reserve(court_repo, booking_repo, candidate)


async def book_for_manager(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    manager_id: str,
    court_id: str,
    booking_date: date,
    start_minute: int,
    duration_hours: float,
    customer_name: str,
    customer_email: str | None,
    customer_phone: str | None,
    price: int | None,
) -> Booking:
    ensure_allowed_duration(duration_hours)
    court = await get_court(court_repo, court_id=court_id)
    if price is None:
        price = calculate_price(pricing_periods_of(court), start_minute, duration_hours)
    candidate = BookingCandidate(
        court_id=court.id,
        booking_date=booking_date,
        start_minute=start_minute,
        end_minute=start_minute + round(duration_hours * 60),
        price=price,
        manager_id=manager_id,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
    )
    return await reserve(court_repo, booking_repo, candidate)


async def cancel_booking(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    actor_id: str,
    is_manager: bool,
    now: datetime,
) -> tuple[Booking, BookingStatus]:
    booking = await booking_repo.get_for_update(booking_id)
    # Customers only see their own bookings.
    if booking is None or (not is_manager and booking.user_id != actor_id):
        raise BookingNotFoundError("booking not found")
    previous = booking.status
    validate_status_change(
        previous,
        BookingStatus.CANCELLED,
        has_started=has_passed(booking.booking_date, booking.start_minute, now),
        has_ended=has_passed(booking.booking_date, booking.end_minute, now),
    )
    updated = await booking_repo.update_status(booking, BookingStatus.CANCELLED)
    return updated, previous


async def mark_no_show(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    now: datetime,
) -> tuple[Booking, BookingStatus]:
    booking = await booking_repo.get_for_update(booking_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    previous = booking.status
    validate_status_change(
        previous,
        BookingStatus.NO_SHOW,
        has_started=has_passed(booking.booking_date, booking.start_minute, now),
        has_ended=has_passed(booking.booking_date, booking.end_minute, now),
    )
    updated = await booking_repo.update_status(booking, BookingStatus.NO_SHOW)
    return updated, previous


async def list_user_bookings(booking_repo: BookingRepository, *, user_id: str) -> list[Booking]:
    """Newest first, cancelled bookings after all others."""
    bookings = await booking_repo.list_by_user(user_id)
    newest_first = sorted(bookings, key=lambda b: (b.booking_date, b.start_minute), reverse=True)
    return sorted(newest_first, key=lambda b: b.status == BookingStatus.CANCELLED)


async def list_bookings_for_date(
    booking_repo: BookingRepository,
    *,
    booking_date: date,
    include_all: bool,
) -> list[Booking]:
    status = None if include_all else BookingStatus.CONFIRMED
    return await booking_repo.list_for_date(booking_date, status)


async def list_recent_bookings(booking_repo: BookingRepository, *, limit: int) -> list[Booking]:
    return await booking_repo.list_recent(limit)


async def completed_revenue(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    booking_date: date,
    now: datetime,
) -> int:
    """Priced total of confirmed bookings on ``booking_date`` that have already started."""
    courts = {court.id: court for court in await court_repo.list_all()}
    total = 0
    for booking in await booking_repo.list_for_date(booking_date, BookingStatus.CONFIRMED):
        court = courts.get(booking.court_id)
        if court is None or not has_passed(booking.booking_date, booking.start_minute, now):
            continue
        duration_hours = (booking.end_minute - booking.start_minute) / 60
        total += calculate_price(pricing_periods_of(court), booking.start_minute, duration_hours)
    return total
