from datetime import date, datetime
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_serializer, model_validator

from .domain.pricing import PricingPeriod
from .domain.slots import TimeSlot
from .models import BlogPost, Booking, BookingStatus, Court, CourtType, User, UserRole
from .utils.time import format_minutes, parse_hhmm

Duration = Literal[1, 1.5, 2]


def _check_hhmm(value: str) -> str:
    parse_hhmm(value)
    return value


ClockTime = Annotated[str, AfterValidator(_check_hhmm)]


def _reject_nulls(model: BaseModel, *fields: str) -> None:
    """Partial updates may omit these fields but not send them as null."""
    nulled = sorted(f for f in fields if f in model.model_fields_set and getattr(model, f) is None)
    if nulled:
        raise ValueError(f"{', '.join(nulled)} may not be null")


class PricingPeriodSchema(BaseModel):
    start_time: ClockTime
    end_time: ClockTime
    price_per_half_hour: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "PricingPeriodSchema":
        if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
            raise ValueError("start_time must be earlier than end_time")
        return self

    def to_domain(self) -> PricingPeriod:
        return PricingPeriod(
            start_minute=parse_hhmm(self.start_time),
            end_minute=parse_hhmm(self.end_time),
            price_per_half_hour=self.price_per_half_hour,
        )


class CourtCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    type: CourtType = CourtType.INDOOR
    features: list[str] = Field(default_factory=list)
    pricing_periods: list[PricingPeriodSchema] = Field(min_length=1)


class CourtUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[CourtType] = None
    features: Optional[list[str]] = None
    pricing_periods: Optional[list[PricingPeriodSchema]] = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _check_nulls(self) -> "CourtUpdate":
        _reject_nulls(self, "name", "description", "type", "features", "pricing_periods")
        return self


class CourtRead(BaseModel):
    id: str
    name: str
    description: str
    type: CourtType
    features: list[str]
    pricing_periods: list[PricingPeriodSchema]

    @classmethod
    def from_db(cls, *, court: Court) -> "CourtRead":
        return cls(
            id=court.id,
            name=court.name,
            description=court.description,
            type=court.type,
            features=list(court.features or []),
            pricing_periods=[
                PricingPeriodSchema(
                    start_time=format_minutes(row.start_minute),
                    end_time=format_minutes(row.end_minute),
                    price_per_half_hour=row.price_per_half_hour,
                )
                for row in court.pricing_periods
            ],
        )


class TimeSlotRead(BaseModel):
    start_time: str
    end_time: str
    is_available: bool
    available_courts: list[str]

    @classmethod
    def from_domain(cls, *, slot: TimeSlot) -> "TimeSlotRead":
        return cls(
            start_time=format_minutes(slot.start_minute),
            end_time=format_minutes(slot.end_minute),
            is_available=slot.is_available,
            available_courts=list(slot.available_court_ids),
        )


class DayAvailability(BaseModel):
    date: date
    slots: list[TimeSlotRead]


class SelectionCheck(BaseModel):
    date: date
    start_time: str
    duration: float
    is_valid: bool
    max_duration: float
    end_time: Optional[str]


class PriceQuote(BaseModel):
    court_id: str
    start_time: str
    duration: float
    price: int


class BookingCreate(BaseModel):
    court_id: str
    date: date
    start_time: ClockTime
    duration: Duration


class ManagerBookingCreate(BookingCreate):
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)


class PendingBooking(BaseModel):
    date: date
    start_time: ClockTime
    court_id: str
    duration: Duration
    price: int = Field(ge=0)


class BookingRead(BaseModel):
    id: int
    court_id: str
    date: date
    start_time: str
    end_time: str
    status: BookingStatus
    price: int
    created_at: datetime
    user_id: Optional[str] = None
    manager_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    @field_serializer("created_at")
    def _ser_created_at(self, dt: datetime) -> str:
        return dt.isoformat()

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            id=booking.id,
            court_id=booking.court_id,
            date=booking.booking_date,
            start_time=format_minutes(booking.start_minute),
            end_time=format_minutes(booking.end_minute),
            status=booking.status,
            price=booking.price,
            created_at=booking.created_at,
            user_id=booking.user_id,
            manager_id=booking.manager_id,
            customer_name=booking.customer_name,
            customer_email=booking.customer_email,
            customer_phone=booking.customer_phone,
        )


class RevenueRead(BaseModel):
    date: date
    completed_total: int


class UserProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    birthdate: Optional[date] = None


class ManagerUserUpdate(UserProfileUpdate):
    no_show_user: Optional[bool] = None
    role: Optional[UserRole] = None

    @model_validator(mode="after")
    def _check_nulls(self) -> "ManagerUserUpdate":
        _reject_nulls(self, "no_show_user", "role")
        return self


class UserRead(BaseModel):
    id: str
    email: str
    name: Optional[str]
    phone: Optional[str]
    birthdate: Optional[date]
    role: UserRole
    no_show_user: bool

    @classmethod
    def from_db(cls, *, user: User) -> "UserRead":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            phone=user.phone,
            birthdate=user.birthdate,
            role=user.role,
            no_show_user=user.no_show_user,
        )


class ContactMessage(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    message: str = Field(min_length=1, max_length=5000)


class BlogPostCreate(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    image_url: Optional[str] = None


class BlogPostRead(BaseModel):
    id: int
    title: str
    content: str
    image_url: Optional[str]
    author: str
    created_at: datetime

    @classmethod
    def from_db(cls, *, post: BlogPost) -> "BlogPostRead":
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            image_url=post.image_url,
            author=post.author,
            created_at=post.created_at,
        )
