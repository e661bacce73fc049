from dataclasses import dataclass
from typing import Sequence

from ..models import BookingStatus
from .errors import InvalidSelectionError, SlotUnavailableError, StatusTransitionError
from .pricing import CLOSING_MINUTE, OPENING_MINUTE, SLOT_MINUTES
from .slots import BookedInterval, is_court_booked


@dataclass(frozen=True)
class CourtDaySnapshot:
    court_id: str
    start_minute: int
    end_minute: int
    confirmed_bookings: Sequence[BookedInterval]


def validate_interval(start_minute: int, end_minute: int) -> None:
    if start_minute >= end_minute:
        raise InvalidSelectionError("start time must be earlier than end time")
    if start_minute < OPENING_MINUTE or end_minute > CLOSING_MINUTE:
        raise InvalidSelectionError("booking must fall within opening hours")
    if start_minute % SLOT_MINUTES or end_minute % SLOT_MINUTES:
        raise InvalidSelectionError("booking must align to half-hour slots")


def validate_booking(snapshot: CourtDaySnapshot) -> None:
    """
    Pure pre-commit check: the candidate interval must not overlap any
    confirmed booking on the same court. Raises SlotUnavailableError otherwise.
    """
    validate_interval(snapshot.start_minute, snapshot.end_minute)
    if is_court_booked(snapshot.court_id, snapshot.start_minute, snapshot.end_minute, snapshot.confirmed_bookings):
        raise SlotUnavailableError("this time slot is no longer available")


def validate_status_change(
    current: BookingStatus,
    target: BookingStatus,
    *,
    has_started: bool,
    has_ended: bool,
) -> None:
    if current != BookingStatus.CONFIRMED:
        raise StatusTransitionError(f"booking is already {current.value}")
    if target == BookingStatus.CANCELLED:
        if has_started:
            raise StatusTransitionError("cannot cancel past bookings")
        return
    if target == BookingStatus.NO_SHOW:
        if not has_ended:
            raise StatusTransitionError("booking has not ended yet")
        return
    raise StatusTransitionError(f"cannot move booking to {target.value}")
