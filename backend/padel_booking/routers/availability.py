from datetime import date, datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, get_venue_now
from ..domain.errors import BookingDomainError
from ..domain.slots import end_time, is_valid_selection, max_duration
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyCourtRepository
from ..schemas import ClockTime, CourtRead, DayAvailability, SelectionCheck, TimeSlotRead
from ..usecases import slots as slot_usecase
from ..utils.time import format_minutes, parse_hhmm, past_cutoff_minute
from .errors import to_http_error

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/{booking_date}", response_model=DayAvailability)
async def get_day_availability(
    booking_date: date,
    session: AsyncSession = Depends(get_session),
) -> DayAvailability:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    slots = await slot_usecase.get_day_slots(court_repo, booking_repo, booking_date=booking_date)
    return DayAvailability(date=booking_date, slots=[TimeSlotRead.from_domain(slot=slot) for slot in slots])


@router.get("/{booking_date}/selection", response_model=SelectionCheck)
async def check_selection(
    booking_date: date,
    start_time: ClockTime = Query(..., description="HH:MM"),
    duration: float = Query(..., description="hours: 1, 1.5 or 2"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_venue_now),
) -> SelectionCheck:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        slot_usecase.ensure_allowed_duration(duration)
    except BookingDomainError as exc:
        raise to_http_error(exc)
    slots = await slot_usecase.get_day_slots(court_repo, booking_repo, booking_date=booking_date)
    start_minute = parse_hhmm(start_time)
    end_minute = end_time(slots, start_minute, duration)
    return SelectionCheck(
        date=booking_date,
        start_time=start_time,
        duration=duration,
        is_valid=is_valid_selection(
            slots,
            start_minute,
            duration,
            now_minute=past_cutoff_minute(booking_date, now),
        ),
        max_duration=max_duration(slots, start_minute),
        end_time=format_minutes(end_minute) if end_minute is not None else None,
    )


@router.get("/{booking_date}/courts", response_model=List[CourtRead])
async def list_available_courts(
    booking_date: date,
    start_time: ClockTime = Query(..., description="HH:MM"),
    duration: float = Query(..., description="hours: 1, 1.5 or 2"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_venue_now),
) -> list[CourtRead]:
    court_repo = SqlAlchemyCourtRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        courts = await slot_usecase.get_available_courts(
            court_repo,
            booking_repo,
            booking_date=booking_date,
            start_minute=parse_hhmm(start_time),
            duration_hours=duration,
            now=now,
        )
    except BookingDomainError as exc:
        raise to_http_error(exc)
    return [CourtRead.from_db(court=court) for court in courts]
