"""
Driver records and performance figures.

Drivers are users with role ``driver``; their licence, duty and safety
attributes live on the user row.  Licence expiry is always derived from
``license_expiry`` and the caller's "now", never stored.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.analytics import percent, round_half_up
from fleetops.domain.drivers import (
    clamp_safety_score,
    license_expired,
    license_expiring_soon,
)
from fleetops.domain.enums import DutyStatus, LicenseCategory, Role
from fleetops.domain.errors import (
    DriverNotFound,
    DriverUnavailable,
    DuplicateEntry,
    ValidationError,
)
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import TripRepository, UserRepository
from fleetops.infrastructure.security import hash_password

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "full_name",
    "phone",
    "department",
    "license_number",
    "license_category",
    "license_expiry",
    "duty_status",
    "safety_score",
    "complaints",
    "is_active",
)


def placeholder_email(full_name: str, now: datetime) -> str:
    slug = re.sub(r"[^a-z0-9]+", ".", full_name.lower()).strip(".")
    return f"{slug or 'driver'}.{int(now.timestamp() * 1000)}@drivers.fleetops.app"


async def create_driver(
    session: AsyncSession,
    *,
    full_name: str,
    email: Optional[str] = None,
    password: Optional[str] = None,
    phone: Optional[str] = None,
    department: Optional[str] = None,
    license_number: str = "",
    license_category: Optional[LicenseCategory] = None,
    license_expiry: Optional[datetime] = None,
    duty_status: DutyStatus = DutyStatus.ON_DUTY,
    safety_score: float = 100.0,
    complaints: int = 0,
    now: datetime,
) -> UserModel:
    if not full_name.strip():
        raise ValidationError("Driver name (full_name) is required")
    repo = UserRepository(session)
    email = (email or "").strip().lower() or placeholder_email(full_name, now)
    if await repo.get_by_email(email) is not None:
        raise DuplicateEntry("Email already exists for another user")

    driver = await repo.create(
        UserModel(
            full_name=full_name.strip(),
            email=email,
            # Drivers without a password cannot log in until one is set.
            password_hash=hash_password(password or secrets.token_urlsafe(16)),
            role=Role.DRIVER,
            phone=phone,
            department=department,
            is_active=True,
            license_number=license_number.strip(),
            license_category=license_category,
            license_expiry=license_expiry,
            duty_status=duty_status,
            safety_score=clamp_safety_score(safety_score),
            complaints=complaints,
        )
    )
    logger.info("Driver %s created", driver.id)
    return driver


async def get_driver(session: AsyncSession, driver_id: int) -> UserModel:
    user = await UserRepository(session).get_by_id(driver_id)
    if user is None or Role(user.role) != Role.DRIVER:
        raise DriverNotFound()
    return user


async def update_driver(
    session: AsyncSession, driver_id: int, changes: dict[str, Any]
) -> UserModel:
    driver = await get_driver(session, driver_id)
    for field in EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "safety_score" and value is not None:
            value = clamp_safety_score(value)
        if value is None and field not in ("license_expiry", "license_category"):
            continue
        setattr(driver, field, value)
    await session.flush()
    return driver


async def delete_driver(session: AsyncSession, driver_id: int) -> bool:
    """Remove a driver, or deactivate one that trips still reference.

    Returns ``True`` when the row was deleted.  A driver on a Pending or On
    Way trip cannot be removed.
    """
    driver = await get_driver(session, driver_id)
    trips = TripRepository(session)
    if await trips.count_active(driver_id=driver.id):
        raise DriverUnavailable("Driver has an active trip and cannot be removed")

    total, _ = (await trips.stats_by_driver([driver.id])).get(driver.id, (0, 0))
    if total:
        driver.is_active = False
        await session.flush()
        logger.info("Driver %s deactivated (%d trips on record)", driver.id, total)
        return False

    await UserRepository(session).delete(driver)
    logger.info("Driver %s deleted", driver_id)
    return True


# ── Performance ───────────────────────────────────────────────────────


@dataclass
class DriverPerformance:
    driver: UserModel
    total_trips: int
    completed_trips: int
    completion_rate: int
    license_expired: bool


async def driver_performance(
    session: AsyncSession, *, now: datetime, search: str | None = None
) -> list[DriverPerformance]:
    drivers = await UserRepository(session).list_drivers(
        active_only=True, search=search
    )
    stats = await TripRepository(session).stats_by_driver([d.id for d in drivers])
    rows = []
    for driver in drivers:
        total, delivered = stats.get(driver.id, (0, 0))
        rows.append(
            DriverPerformance(
                driver=driver,
                total_trips=total,
                completed_trips=delivered,
                completion_rate=percent(delivered, total),
                license_expired=license_expired(driver.license_expiry, now),
            )
        )
    return rows


async def performance_summary(
    session: AsyncSession, *, now: datetime, warning_days: int
) -> dict[str, int]:
    drivers = await UserRepository(session).list_drivers(active_only=True)
    total = len(drivers)

    def _count(status: DutyStatus) -> int:
        return sum(1 for d in drivers if DutyStatus(d.duty_status) == status)

    avg_score = (
        round_half_up(sum(d.safety_score or 0 for d in drivers) / total)
        if total
        else 0
    )
    return {
        "total_drivers": total,
        "on_duty": _count(DutyStatus.ON_DUTY),
        "off_duty": _count(DutyStatus.OFF_DUTY),
        "on_break": _count(DutyStatus.ON_BREAK),
        "suspended": _count(DutyStatus.SUSPENDED),
        "expired_licenses": sum(
            1 for d in drivers if license_expired(d.license_expiry, now)
        ),
        "expiring_soon": sum(
            1
            for d in drivers
            if license_expiring_soon(d.license_expiry, now, warning_days)
        ),
        "avg_safety_score": avg_score,
    }
