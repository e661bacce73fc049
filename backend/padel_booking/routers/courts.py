from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, require_manager
from ..domain.errors import BookingDomainError
from ..infrastructure.repositories import SqlAlchemyCourtRepository
from ..schemas import ClockTime, CourtCreate, CourtRead, CourtUpdate, PriceQuote
from ..usecases import courts as court_usecase
from ..usecases import slots as slot_usecase
from ..utils.time import parse_hhmm
from .errors import to_http_error

router = APIRouter(prefix="/courts", tags=["courts"])


@router.get("", response_model=List[CourtRead])
async def list_courts(session: AsyncSession = Depends(get_session)) -> list[CourtRead]:
    court_repo = SqlAlchemyCourtRepository(session)
    courts = await court_usecase.list_courts(court_repo)
    return [CourtRead.from_db(court=court) for court in courts]


@router.get("/{court_id}", response_model=CourtRead)
async def get_court(court_id: str, session: AsyncSession = Depends(get_session)) -> CourtRead:
    court_repo = SqlAlchemyCourtRepository(session)
    try:
        court = await court_usecase.get_court(court_repo, court_id=court_id)
    except BookingDomainError as exc:
        raise to_http_error(exc)
    return CourtRead.from_db(court=court)


@router.get("/{court_id}/price", response_model=PriceQuote)
async def quote_price(
    court_id: str,
    start_time: ClockTime = Query(..., description="HH:MM"),
    duration: float = Query(..., description="hours: 1, 1.5 or 2"),
    session: AsyncSession = Depends(get_session),
) -> PriceQuote:
    court_repo = SqlAlchemyCourtRepository(session)
    try:
        price = await slot_usecase.quote_price(
            court_repo,
            court_id=court_id,
            start_minute=parse_hhmm(start_time),
            duration_hours=duration,
        )
    except BookingDomainError as exc:
        raise to_http_error(exc)
    return PriceQuote(court_id=court_id, start_time=start_time, duration=duration, price=price)


@router.post(
    "",
    response_model=CourtRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_manager)],
)
async def create_court(payload: CourtCreate, session: AsyncSession = Depends(get_session)) -> CourtRead:
    court_repo = SqlAlchemyCourtRepository(session)
    async with session.begin():
        if payload.id is not None and await court_repo.get(payload.id) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="court id already exists")
        try:
            court = await court_usecase.create_court(
                court_repo,
                court_id=payload.id,
                name=payload.name,
                description=payload.description,
                type=payload.type,
                features=payload.features,
                pricing_periods=[period.to_domain() for period in payload.pricing_periods],
            )
        except BookingDomainError as exc:
            raise to_http_error(exc)
    return CourtRead.from_db(court=court)


@router.patch("/{court_id}", response_model=CourtRead, dependencies=[Depends(require_manager)])
async def update_court(
    court_id: str,
    payload: CourtUpdate,
    session: AsyncSession = Depends(get_session),
) -> CourtRead:
    court_repo = SqlAlchemyCourtRepository(session)
    changes = payload.model_dump(exclude_unset=True, exclude={"pricing_periods"})
    periods = (
        [period.to_domain() for period in payload.pricing_periods] if payload.pricing_periods is not None else None
    )
    async with session.begin():
        try:
            court = await court_usecase.update_court(
                court_repo,
                court_id=court_id,
                changes=changes,
                pricing_periods=periods,
            )
        except BookingDomainError as exc:
            raise to_http_error(exc)
    return CourtRead.from_db(court=court)


@router.delete("/{court_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_manager)])
async def delete_court(court_id: str, session: AsyncSession = Depends(get_session)) -> Response:
    court_repo = SqlAlchemyCourtRepository(session)
    async with session.begin():
        try:
            await court_usecase.delete_court(court_repo, court_id=court_id)
        except BookingDomainError as exc:
            raise to_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
