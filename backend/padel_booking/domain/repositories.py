from __future__ import annotations

from datetime import date
from typing import Any, Protocol, Sequence

from ..models import BlogPost, Booking, BookingStatus, Court, CourtType, User
from .pricing import PricingPeriod


class CourtRepository(Protocol):
    async def list_all(self) -> list[Court]: ...

    async def get(self, court_id: str) -> Court | None: ...

    async def get_for_update(self, court_id: str) -> Court | None: ...

    async def create(
        self,
        *,
        court_id: str,
        name: str,
        description: str,
        type: CourtType,
        features: list[str],
        pricing_periods: Sequence[PricingPeriod],
    ) -> Court: ...

    async def update(
        self,
        court: Court,
        *,
        changes: dict[str, Any],
        pricing_periods: Sequence[PricingPeriod] | None,
    ) -> Court: ...

    async def delete(self, court: Court) -> None: ...


class BookingRepository(Protocol):
    async def list_for_date(self, booking_date: date, status: BookingStatus | None = None) -> list[Booking]: ...

    async def list_by_user(self, user_id: str) -> list[Booking]: ...

    async def list_recent(self, limit: int) -> list[Booking]: ...

    async def get(self, booking_id: int) -> Booking | None: ...

    async def get_for_update(self, booking_id: int) -> Booking | None: ...

    async def create(
        self,
        *,
        court_id: str,
        booking_date: date,
        start_minute: int,
        end_minute: int,
        price: int,
        status: BookingStatus,
        user_id: str | None,
        manager_id: str | None,
        customer_name: str | None,
        customer_email: str | None,
        customer_phone: str | None,
    ) -> Booking: ...

    async def update_status(self, booking: Booking, status: BookingStatus) -> Booking: ...


class UserRepository(Protocol):
    async def get(self, user_id: str) -> User | None: ...

    async def list_all(self) -> list[User]: ...

    async def upsert(self, user_id: str, *, email: str, changes: dict[str, Any]) -> User: ...

    async def update(self, user: User, *, changes: dict[str, Any]) -> User: ...


class BlogRepository(Protocol):
    async def list_all(self) -> list[BlogPost]: ...

    async def get(self, post_id: int) -> BlogPost | None: ...

    async def create(self, *, title: str, content: str, image_url: str | None, author: str) -> BlogPost: ...
