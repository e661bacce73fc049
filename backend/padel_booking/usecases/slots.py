from datetime import date, datetime

from ..domain.errors import InvalidSelectionError
from ..domain.pricing import calculate_price
from ..domain.repositories import BookingRepository, CourtRepository
from ..domain.services import validate_interval
from ..domain.slots import (
    ALLOWED_DURATIONS,
    TimeSlot,
    available_courts,
    end_time,
    generate_slots,
    max_duration_for_court,
)
from ..models import BookingStatus, Court
from ..utils.time import has_passed
from .courts import get_court, pricing_periods_of


def ensure_allowed_duration(duration_hours: float) -> None:
    if duration_hours not in ALLOWED_DURATIONS:
        raise InvalidSelectionError("duration must be 1, 1.5 or 2 hours")


async def get_day_slots(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    booking_date: date,
) -> list[TimeSlot]:
    courts = await court_repo.list_all()
    confirmed = await booking_repo.list_for_date(booking_date, BookingStatus.CONFIRMED)
    return generate_slots(confirmed, [court.id for court in courts])


async def get_available_courts(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    booking_date: date,
    start_minute: int,
    duration_hours: float,
    now: datetime,
) -> list[Court]:
    ensure_allowed_duration(duration_hours)
    if has_passed(booking_date, start_minute, now):
        return []
    courts = await court_repo.list_all()
    confirmed = await booking_repo.list_for_date(booking_date, BookingStatus.CONFIRMED)
    slots = generate_slots(confirmed, [court.id for court in courts])
    end_minute = end_time(slots, start_minute, duration_hours)
    if end_minute is None:
        raise InvalidSelectionError("invalid time slot selection")
    free = set(available_courts([court.id for court in courts], confirmed, start_minute, end_minute))
    return [court for court in courts if court.id in free]


async def get_court_max_durations(
    court_repo: CourtRepository,
    booking_repo: BookingRepository,
    *,
    booking_date: date,
    start_minute: int,
) -> dict[str, float]:
    courts = await court_repo.list_all()
    confirmed = await booking_repo.list_for_date(booking_date, BookingStatus.CONFIRMED)
    return {court.id: max_duration_for_court(court.id, confirmed, start_minute) for court in courts}


async def quote_price(
    court_repo: CourtRepository,
    *,
    court_id: str,
    start_minute: int,
    duration_hours: float,
) -> int:
    ensure_allowed_duration(duration_hours)
    validate_interval(start_minute, start_minute + round(duration_hours * 60))
    court = await get_court(court_repo, court_id=court_id)
    return calculate_price(pricing_periods_of(court), start_minute, duration_hours)
