from fastapi import HTTPException, status

from ..domain.errors import (
    BookingDomainError,
    BookingNotFoundError,
    CourtNotFoundError,
    InvalidSelectionError,
    NoShowPolicyError,
    PricingGapError,
    SlotUnavailableError,
    StatusTransitionError,
    UserNotFoundError,
)
from ..utils.time import format_minutes

_STATUS_BY_ERROR: dict[type[BookingDomainError], int] = {
    InvalidSelectionError: status.HTTP_400_BAD_REQUEST,
    PricingGapError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
    StatusTransitionError: status.HTTP_409_CONFLICT,
    CourtNotFoundError: status.HTTP_404_NOT_FOUND,
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    NoShowPolicyError: status.HTTP_403_FORBIDDEN,
}


def to_http_error(exc: BookingDomainError) -> HTTPException:
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, PricingGapError):
        gaps = [f"{format_minutes(start)}-{format_minutes(end)}" for start, end in exc.gaps]
        return HTTPException(status_code=status_code, detail={"message": str(exc), "gaps": gaps})
    return HTTPException(status_code=status_code, detail=str(exc))
