"""Row factories and auth helpers shared by the test modules."""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.enums import (
    CapacityUnit,
    DutyStatus,
    Role,
    TripStatus,
    VehicleStatus,
    VehicleType,
)
from fleetops.infrastructure.models import TripModel, UserModel, VehicleModel
from fleetops.infrastructure.security import create_access_token, hash_password

# Fixed "now" for every time-based rule under test.
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)

_seq = count(1)


async def make_user(
    session: AsyncSession,
    *,
    role: Role = Role.FLEET_MANAGER,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    is_active: bool = True,
    **fields,
) -> UserModel:
    n = next(_seq)
    user = UserModel(
        full_name=full_name or f"{role.value.replace('_', ' ').title()} {n}",
        email=email or f"{role.value}{n}@example.com",
        password_hash=PASSWORD_HASH,
        role=role,
        is_active=is_active,
        **fields,
    )
    session.add(user)
    await session.flush()
    return user


async def make_driver(session: AsyncSession, **fields) -> UserModel:
    fields.setdefault("duty_status", DutyStatus.ON_DUTY)
    fields.setdefault("license_number", f"DL-{next(_seq):04d}")
    return await make_user(session, role=Role.DRIVER, **fields)


async def make_vehicle(
    session: AsyncSession,
    *,
    plate: Optional[str] = None,
    max_capacity: float = 2,
    capacity_unit: CapacityUnit = CapacityUnit.TON,
    status: VehicleStatus = VehicleStatus.AVAILABLE,
    vehicle_type: VehicleType = VehicleType.TRUCK,
    model: str = "Tata Prima",
) -> VehicleModel:
    vehicle = VehicleModel(
        license_plate=plate or f"MH-{next(_seq):04d}",
        model=model,
        type=vehicle_type,
        max_capacity=max_capacity,
        capacity_unit=capacity_unit,
        odometer=0,
        status=status,
    )
    session.add(vehicle)
    await session.flush()
    return vehicle


async def make_trip(
    session: AsyncSession,
    vehicle: VehicleModel,
    driver: UserModel,
    *,
    status: TripStatus = TripStatus.DELIVERED,
    estimated_fuel_cost: float = 0,
    days_ago: int = 0,
    cargo_weight: float = 100,
) -> TripModel:
    """Insert a historical trip directly, bypassing dispatch."""
    created = NOW - timedelta(days=days_ago)
    trip = TripModel(
        vehicle_id=vehicle.id,
        driver_id=driver.id,
        cargo_weight=cargo_weight,
        origin="Pune",
        destination="Mumbai",
        estimated_fuel_cost=estimated_fuel_cost,
        status=status,
        created_at=created,
        updated_at=created,
    )
    session.add(trip)
    await session.flush()
    return trip


def auth_header(user: UserModel) -> dict[str, str]:
    token = create_access_token(user.id, Role(user.role).value)
    return {"Authorization": f"Bearer {token}"}
