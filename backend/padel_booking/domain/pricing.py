from dataclasses import dataclass
from typing import Iterable, Sequence

SLOT_MINUTES = 30
OPENING_MINUTE = 7 * 60
CLOSING_MINUTE = 23 * 60


@dataclass(frozen=True)
class PricingPeriod:
    start_minute: int
    end_minute: int
    price_per_half_hour: int

    def covers(self, minute: int) -> bool:
        return self.start_minute <= minute < self.end_minute


def find_period(periods: Iterable[PricingPeriod], minute: int) -> PricingPeriod | None:
    """First period containing ``minute``; overlapping periods resolve in list order."""
    for period in periods:
        if period.covers(minute):
            return period
    return None


def calculate_price(periods: Sequence[PricingPeriod], start_minute: int, duration_hours: float) -> int:
    """
    Sum the half-hourly rate of every 30-minute boundary in
    ``[start, start + duration)``. A boundary no period covers adds nothing.
    """
    end_minute = start_minute + round(duration_hours * 60)
    total = 0
    for minute in range(start_minute, end_minute, SLOT_MINUTES):
        period = find_period(periods, minute)
        if period is not None:
            total += period.price_per_half_hour
    return total


def find_pricing_gaps(
    periods: Sequence[PricingPeriod],
    *,
    opening_minute: int = OPENING_MINUTE,
    closing_minute: int = CLOSING_MINUTE,
) -> list[tuple[int, int]]:
    """Return merged ``(start, end)`` runs of opening hours no period prices."""
    gaps: list[tuple[int, int]] = []
    for minute in range(opening_minute, closing_minute, SLOT_MINUTES):
        if find_period(periods, minute) is not None:
            continue
        if gaps and gaps[-1][1] == minute:
            gaps[-1] = (gaps[-1][0], minute + SLOT_MINUTES)
        else:
            gaps.append((minute, minute + SLOT_MINUTES))
    return gaps
