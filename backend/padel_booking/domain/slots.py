from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from .pricing import CLOSING_MINUTE, OPENING_MINUTE, SLOT_MINUTES

ALLOWED_DURATIONS: tuple[float, ...] = (1, 1.5, 2)
MAX_SCAN_SLOTS = 4


class BookedInterval(Protocol):
    court_id: str
    start_minute: int
    end_minute: int


@dataclass(frozen=True)
class TimeSlot:
    start_minute: int
    end_minute: int
    available_court_ids: tuple[str, ...]

    @property
    def is_available(self) -> bool:
        return len(self.available_court_ids) > 0


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect."""
    return a_start < b_end and b_start < a_end


def required_slot_count(duration_hours: float) -> int:
    return round(duration_hours * 2)


def is_court_booked(court_id: str, start_minute: int, end_minute: int, bookings: Iterable[BookedInterval]) -> bool:
    return any(
        booking.court_id == court_id
        and intervals_overlap(start_minute, end_minute, booking.start_minute, booking.end_minute)
        for booking in bookings
    )


def available_courts(
    court_ids: Iterable[str],
    bookings: Sequence[BookedInterval],
    start_minute: int,
    end_minute: int,
) -> list[str]:
    return [court_id for court_id in court_ids if not is_court_booked(court_id, start_minute, end_minute, bookings)]


def generate_slots(bookings: Sequence[BookedInterval], court_ids: Sequence[str]) -> list[TimeSlot]:
    """Build the day's half-hour grid, 07:00 up to 23:00, ascending by start.

    ``bookings`` must already be limited to the day's confirmed bookings.
    """
    slots: list[TimeSlot] = []
    for start in range(OPENING_MINUTE, CLOSING_MINUTE, SLOT_MINUTES):
        end = start + SLOT_MINUTES
        free = available_courts(court_ids, bookings, start, end)
        slots.append(TimeSlot(start_minute=start, end_minute=end, available_court_ids=tuple(free)))
    return slots


def find_slot_index(slots: Sequence[TimeSlot], start_minute: int) -> int | None:
    for index, slot in enumerate(slots):
        if slot.start_minute == start_minute:
            return index
    return None


def is_valid_selection(
    slots: Sequence[TimeSlot],
    start_minute: int,
    duration_hours: float,
    *,
    now_minute: int | None = None,
) -> bool:
    """
    A selection is valid when the start slot exists and has not passed, the
    grid has enough slots left, and the required run is available and gapless.
    ``now_minute`` is the cutoff for the selected day (see ``past_cutoff_minute``).
    """
    start_index = find_slot_index(slots, start_minute)
    if start_index is None:
        return False
    if now_minute is not None and start_minute <= now_minute:
        return False

    required = required_slot_count(duration_hours)
    if required < 1 or start_index + required > len(slots):
        return False

    for offset in range(required):
        slot = slots[start_index + offset]
        if not slot.is_available:
            return False
        if offset > 0 and slot.start_minute != slots[start_index + offset - 1].end_minute:
            return False
    return True


def _duration_for_run(consecutive: int) -> float:
    # One free half-hour is below the one-hour minimum.
    if consecutive >= 4:
        return 2
    if consecutive >= 3:
        return 1.5
    if consecutive >= 2:
        return 1
    return 0


def max_duration(slots: Sequence[TimeSlot], start_minute: int) -> float:
    start_index = find_slot_index(slots, start_minute)
    if start_index is None:
        return 0
    consecutive = 0
    for slot in slots[start_index : start_index + MAX_SCAN_SLOTS]:
        if not slot.is_available:
            break
        consecutive += 1
    return _duration_for_run(consecutive)


def max_duration_for_court(court_id: str, bookings: Sequence[BookedInterval], start_minute: int) -> float:
    """Same scan as ``max_duration`` but against one court's bookings."""
    consecutive = 0
    for offset in range(MAX_SCAN_SLOTS):
        slot_start = start_minute + offset * SLOT_MINUTES
        if slot_start >= CLOSING_MINUTE:
            break
        if is_court_booked(court_id, slot_start, slot_start + SLOT_MINUTES, bookings):
            break
        consecutive += 1
    return _duration_for_run(consecutive)


def end_time(slots: Sequence[TimeSlot], start_minute: int, duration_hours: float) -> int | None:
    start_index = find_slot_index(slots, start_minute)
    required = required_slot_count(duration_hours)
    if start_index is None or required < 1:
        return None
    last_index = start_index + required - 1
    if last_index >= len(slots):
        return None
    return slots[last_index].end_minute
