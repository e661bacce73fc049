from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.pricing import PricingPeriod
from ..domain.repositories import BlogRepository, BookingRepository, CourtRepository, UserRepository
from ..models import BlogPost, Booking, BookingStatus, Court, CourtPricingPeriod, CourtType, User, UserRole
from ..utils.time import utc_now_naive


def _pricing_rows(periods: Sequence[PricingPeriod]) -> list[CourtPricingPeriod]:
    return [
        CourtPricingPeriod(
            position=position,
            start_minute=period.start_minute,
            end_minute=period.end_minute,
            price_per_half_hour=period.price_per_half_hour,
        )
        for position, period in enumerate(periods)
    ]


class SqlAlchemyCourtRepository(CourtRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> List[Court]:
        rows = await self.session.scalars(select(Court).order_by(Court.id))
        return list(rows.all())

    async def get(self, court_id: str) -> Court | None:
        return await self.session.get(Court, court_id)

    async def get_for_update(self, court_id: str) -> Court | None:
        result = await self.session.scalar(select(Court).where(Court.id == court_id).with_for_update())
        return result if isinstance(result, Court) else None

    async def create(
        self,
        *,
        court_id: str,
        name: str,
        description: str,
        type: CourtType,
        features: list[str],
        pricing_periods: Sequence[PricingPeriod],
    ) -> Court:
        now = utc_now_naive()
        court = Court(
            id=court_id,
            name=name,
            description=description,
            type=type,
            features=list(features),
            pricing_periods=_pricing_rows(pricing_periods),
            created_at=now,
            updated_at=now,
        )
        self.session.add(court)
        await self.session.flush()
        return court

    async def update(
        self,
        court: Court,
        *,
        changes: dict[str, Any],
        pricing_periods: Sequence[PricingPeriod] | None,
    ) -> Court:
        for field, value in changes.items():
            setattr(court, field, value)
        if pricing_periods is not None:
            court.pricing_periods.clear()
            # Flush the orphan deletes before reusing positions.
            await self.session.flush()
            court.pricing_periods.extend(_pricing_rows(pricing_periods))
        court.updated_at = utc_now_naive()
        self.session.add(court)
        await self.session.flush()
        return court

    async def delete(self, court: Court) -> None:
        await self.session.delete(court)
        await self.session.flush()


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_date(self, booking_date: date, status: BookingStatus | None = None) -> List[Booking]:
        stmt: Select[tuple[Booking]] = (
            select(Booking).where(Booking.booking_date == booking_date).order_by(Booking.start_minute, Booking.id)
        )
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def list_by_user(self, user_id: str) -> List[Booking]:
        rows = await self.session.scalars(select(Booking).where(Booking.user_id == user_id))
        return list(rows.all())

    async def list_recent(self, limit: int) -> List[Booking]:
        stmt = (
            select(Booking)
            .order_by(Booking.booking_date.desc(), Booking.start_minute.asc(), Booking.id.asc())
            .limit(limit)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def get(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def get_for_update(self, booking_id: int) -> Optional[Booking]:
        result = await self.session.scalar(select(Booking).where(Booking.id == booking_id).with_for_update())
        return result if isinstance(result, Booking) else None

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
    ) -> Booking:
        now = utc_now_naive()
        booking = Booking(
            court_id=court_id,
            booking_date=booking_date,
            start_minute=start_minute,
            end_minute=end_minute,
            price=price,
            status=status,
            user_id=user_id,
            manager_id=manager_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def update_status(self, booking: Booking, status: BookingStatus) -> Booking:
        booking.status = status
        booking.updated_at = utc_now_naive()
        self.session.add(booking)
        await self.session.flush()
        return booking


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def list_all(self) -> List[User]:
        rows = await self.session.scalars(select(User).order_by(User.created_at))
        return list(rows.all())

    async def upsert(self, user_id: str, *, email: str, changes: dict[str, Any]) -> User:
        user = await self.session.get(User, user_id)
        now = utc_now_naive()
        if user is None:
            user = User(id=user_id, email=email, role=UserRole.USER, no_show_user=False, created_at=now)
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = now
        self.session.add(user)
        await self.session.flush()
        return user

    async def update(self, user: User, *, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = utc_now_naive()
        self.session.add(user)
        await self.session.flush()
        return user


class SqlAlchemyBlogRepository(BlogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> List[BlogPost]:
        rows = await self.session.scalars(select(BlogPost).order_by(BlogPost.created_at.desc()))
        return list(rows.all())

    async def get(self, post_id: int) -> Optional[BlogPost]:
        return await self.session.get(BlogPost, post_id)

    async def create(self, *, title: str, content: str, image_url: str | None, author: str) -> BlogPost:
        post = BlogPost(
            title=title,
            content=content,
            image_url=image_url,
            author=author,
            created_at=utc_now_naive(),
        )
        self.session.add(post)
        await self.session.flush()
        return post
