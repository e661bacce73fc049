from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .models import User, UserRole
from .utils.auth import Identity, decode_access_token
from .utils.locks import CourtDayLocks
from .utils.mailer import Mailer
from .utils.time import venue_now

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


@dataclass(frozen=True)
class CurrentUser:
    identity: Identity
    profile: User

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def is_manager(self) -> bool:
        return self.profile.role == UserRole.MANAGER


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_locks(request: Request) -> CourtDayLocks:
    return request.app.state.court_day_locks


def get_venue_now(settings: Settings = Depends(get_settings)) -> datetime:
    return venue_now(settings.venue_timezone)


async def get_identity(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    if authorization is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers=_BEARER_CHALLENGE,
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token required",
            headers=_BEARER_CHALLENGE,
        )
    try:
        return decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers=_BEARER_CHALLENGE,
        ) from exc


async def get_current_user(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> CurrentUser:
    try:
        profile = await session.scalar(select(User).where(User.id == identity.user_id))
        # End the implicit transaction so handlers can open their own with session.begin().
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="user lookup failed",
        ) from exc
    if not isinstance(profile, User):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user profile not found",
            headers=_BEARER_CHALLENGE,
        )
    return CurrentUser(identity=identity, profile=profile)


async def require_verified_user(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current.identity.email_verified:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="email address not verified")
    return current


async def require_manager(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current.is_manager:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="manager role required")
    return current
