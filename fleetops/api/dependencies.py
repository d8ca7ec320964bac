"""FastAPI dependency injection helpers."""

from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.authorization import Action, ensure_allowed
from fleetops.domain.errors import Unauthorized
from fleetops.infrastructure.database import async_session_factory
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import UserRepository
from fleetops.infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Callable[[], datetime]:
    """Wall clock for time-based rules; overridden in tests."""
    return utcnow


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    if credentials is None:
        raise Unauthorized("Not authorized, no token")

    payload = decode_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None:
        raise Unauthorized("Not authorized, token failed")

    user = await UserRepository(db).get_by_id(int(user_id))
    if user is None:
        raise Unauthorized("Not authorized, user not found")
    if not user.is_active:
        raise Unauthorized("Not authorized, account deactivated")
    return user


def require(action: Action):
    """Dependency factory: the current user, if their role permits *action*."""

    async def dependency(user: UserModel = Depends(get_current_user)) -> UserModel:
        ensure_allowed(user.role, action)
        return user

    return dependency
