from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import CurrentUser, get_current_user, get_identity, get_session
from ..infrastructure.repositories import SqlAlchemyUserRepository
from ..schemas import UserProfileUpdate, UserRead
from ..usecases import users as user_usecase
from ..utils.auth import Identity

router = APIRouter(prefix="/me", tags=["users"])


@router.get("/profile", response_model=UserRead)
async def get_my_profile(current: CurrentUser = Depends(get_current_user)) -> UserRead:
    return UserRead.from_db(user=current.profile)


@router.put("/profile", response_model=UserRead)
async def save_my_profile(
    payload: UserProfileUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> UserRead:
    if not identity.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="token carries no email")
    user_repo = SqlAlchemyUserRepository(session)
    async with session.begin():
        user = await user_usecase.save_own_profile(
            user_repo,
            user_id=identity.user_id,
            email=identity.email,
            changes=payload.model_dump(exclude_unset=True),
        )
    return UserRead.from_db(user=user)
