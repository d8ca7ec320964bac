"""Account registration, login and administration."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.enums import Role
from fleetops.domain.errors import (
    DuplicateEntry,
    Forbidden,
    Unauthorized,
    UserNotFound,
    ValidationError,
)
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import UserRepository
from fleetops.infrastructure.security import hash_password, verify_password

logger = logging.getLogger(__name__)


async def register_user(
    session: AsyncSession,
    *,
    full_name: str,
    email: str,
    password: str,
    role: Role,
    phone: str | None = None,
    department: str | None = None,
) -> UserModel:
    if Role(role) == Role.ADMIN:
        raise Forbidden("Admin accounts cannot be self-registered")
    repo = UserRepository(session)
    email = email.strip().lower()
    if await repo.get_by_email(email) is not None:
        raise DuplicateEntry("User already exists with this email")

    user = await repo.create(
        UserModel(
            full_name=full_name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role,
            phone=phone,
            department=department,
            is_active=True,
        )
    )
    logger.info("User %s registered with role %s", user.id, Role(role).value)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> UserModel:
    user = await UserRepository(session).get_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account has been deactivated")
    return user


# ── Account administration ────────────────────────────────────────────


async def list_users(
    session: AsyncSession,
    *,
    role: Role | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> list[UserModel]:
    return await UserRepository(session).find(
        role=role, is_active=is_active, search=search
    )


async def set_active(
    session: AsyncSession, user_id: int, active: bool, actor: UserModel
) -> UserModel:
    """Activate or deactivate an account; nobody may lock themselves out."""
    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        raise UserNotFound()
    if user.id == actor.id and not active:
        raise ValidationError("You cannot deactivate your own account")
    user.is_active = active
    await session.flush()
    logger.info(
        "User %s %s by %s",
        user.id,
        "activated" if active else "deactivated",
        actor.id,
    )
    return user
