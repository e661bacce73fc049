from typing import Any

from ..domain.errors import UserNotFoundError
from ..domain.repositories import UserRepository
from ..models import User


async def get_user(user_repo: UserRepository, *, user_id: str) -> User:
    user = await user_repo.get(user_id)
    if user is None:
        raise UserNotFoundError(f"user {user_id} not found")
    return user


async def save_own_profile(
    user_repo: UserRepository,
    *,
    user_id: str,
    email: str,
    changes: dict[str, Any],
) -> User:
    # Role and no-show flag are manager-controlled.
    allowed = {k: v for k, v in changes.items() if k in {"name", "phone", "birthdate"}}
    return await user_repo.upsert(user_id, email=email, changes=allowed)


async def list_users(user_repo: UserRepository) -> list[User]:
    return await user_repo.list_all()


async def update_user(user_repo: UserRepository, *, user_id: str, changes: dict[str, Any]) -> User:
    user = await get_user(user_repo, user_id=user_id)
    return await user_repo.update(user, changes=changes)
