import uuid
from typing import Any, Sequence

from ..domain.errors import CourtNotFoundError, PricingGapError
from ..domain.pricing import PricingPeriod, find_pricing_gaps
from ..domain.repositories import CourtRepository
from ..models import Court, CourtType


def pricing_periods_of(court: Court) -> list[PricingPeriod]:
    return [
        PricingPeriod(
            start_minute=row.start_minute,
            end_minute=row.end_minute,
            price_per_half_hour=row.price_per_half_hour,
        )
        for row in court.pricing_periods
    ]


def ensure_full_coverage(periods: Sequence[PricingPeriod]) -> None:
    gaps = find_pricing_gaps(periods)
    if gaps:
        raise PricingGapError(gaps)


async def list_courts(court_repo: CourtRepository) -> list[Court]:
    return await court_repo.list_all()


async def get_court(court_repo: CourtRepository, *, court_id: str) -> Court:
    court = await court_repo.get(court_id)
    if court is None:
        raise CourtNotFoundError(f"court {court_id} not found")
    return court


async def create_court(
    court_repo: CourtRepository,
    *,
    court_id: str | None,
    name: str,
    description: str,
    type: CourtType,
    features: list[str],
    pricing_periods: Sequence[PricingPeriod],
) -> Court:
    ensure_full_coverage(pricing_periods)
    return await court_repo.create(
        court_id=court_id or uuid.uuid4().hex,
        name=name,
        description=description,
        type=type,
        features=features,
        pricing_periods=pricing_periods,
    )


async def update_court(
    court_repo: CourtRepository,
    *,
    court_id: str,
    changes: dict[str, Any],
    pricing_periods: Sequence[PricingPeriod] | None,
) -> Court:
    if pricing_periods is not None:
        ensure_full_coverage(pricing_periods)
    court = await get_court(court_repo, court_id=court_id)
    return await court_repo.update(court, changes=changes, pricing_periods=pricing_periods)


async def delete_court(court_repo: CourtRepository, *, court_id: str) -> None:
    court = await get_court(court_repo, court_id=court_id)
    await court_repo.delete(court)
