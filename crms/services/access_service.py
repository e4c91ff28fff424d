# crms/services/access_service.py

from typing import Iterable, List

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from crms.core.constants import GRANTABLE_ACCESSES
from crms.models.user import User


def _check_names(accesses: Iterable[str]) -> List[str]:
    unknown = [a for a in accesses if a not in GRANTABLE_ACCESSES]
    if unknown:
        raise ValueError(f"Unknown access: {', '.join(unknown)}")
    # de-duplicate, keep first occurrence
    return list(dict.fromkeys(accesses))


async def _get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise LookupError("User not found.")
    return user


async def grant_access(session: AsyncSession, user_id: int, accesses: List[str]) -> User:
    """Replaces the user's accesses with the given list."""
    user = await _get_user(session, user_id)
    user.accesses = _check_names(accesses)

    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Accesses of user {user_id} set to {user.accesses}")
    return user


async def remove_access(session: AsyncSession, user_id: int, accesses: List[str]) -> User:
    user = await _get_user(session, user_id)
    to_remove = set(_check_names(accesses))
    # new list so the JSON column is marked dirty
    user.accesses = [a for a in (user.accesses or []) if a not in to_remove]

    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Removed {sorted(to_remove)} from user {user_id}")
    return user


def has_access(user: User, access: str) -> bool:
    return access in (user.accesses or [])
