class BookingDomainError(Exception):
    """Base class for failures the caller can act on."""


class InvalidSelectionError(BookingDomainError):
    """Requested court/date/time/duration is not bookable as asked."""


class PricingGapError(BookingDomainError):
    """A court's pricing periods leave part of the opening hours unpriced."""

    def __init__(self, gaps: list[tuple[int, int]]) -> None:
        self.gaps = gaps
        super().__init__("pricing periods do not cover opening hours")


class SlotUnavailableError(BookingDomainError):
    """The interval was taken between the user's read and the commit."""


class CourtNotFoundError(BookingDomainError):
    pass


class BookingNotFoundError(BookingDomainError):
    pass


class UserNotFoundError(BookingDomainError):
    pass


class StatusTransitionError(BookingDomainError):
    pass


class NoShowPolicyError(BookingDomainError):
    """User is flagged for previous no-shows and may not book."""
