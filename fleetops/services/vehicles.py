"""Vehicle registry operations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.enums import CapacityUnit, VehicleStatus, VehicleType
from fleetops.domain.errors import (
    DuplicateEntry,
    InvalidState,
    InvalidTransition,
    VehicleNotFound,
)
from fleetops.domain.lifecycle import VEHICLE_MANUAL_LIFECYCLE
from fleetops.infrastructure.models import VehicleModel
from fleetops.infrastructure.repositories import VehicleRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("model", "type", "max_capacity", "capacity_unit", "odometer")


def normalize_plate(plate: str) -> str:
    return plate.strip().upper()


async def register_vehicle(
    session: AsyncSession,
    *,
    license_plate: str,
    model: str,
    type: VehicleType,
    max_capacity: float,
    capacity_unit: CapacityUnit = CapacityUnit.TON,
    odometer: float = 0.0,
    now: datetime,
) -> VehicleModel:
    repo = VehicleRepository(session)
    plate = normalize_plate(license_plate)
    if await repo.get_by_plate(plate) is not None:
        raise DuplicateEntry("Vehicle with this license plate already exists")

    vehicle = await repo.create(
        VehicleModel(
            license_plate=plate,
            model=model.strip(),
            type=type,
            max_capacity=max_capacity,
            capacity_unit=capacity_unit,
            odometer=odometer,
            status=VehicleStatus.AVAILABLE,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("Vehicle %s registered as %s", vehicle.id, plate)
    return vehicle


async def get_vehicle(session: AsyncSession, vehicle_id: int) -> VehicleModel:
    vehicle = await VehicleRepository(session).get_by_id(vehicle_id)
    if vehicle is None:
        raise VehicleNotFound()
    return vehicle


async def update_vehicle(
    session: AsyncSession, vehicle_id: int, changes: dict[str, Any]
) -> VehicleModel:
    """Edit registry attributes.  Status is never written here."""
    vehicle = await get_vehicle(session, vehicle_id)
    for field in EDITABLE_FIELDS:
        if changes.get(field) is not None:
            setattr(vehicle, field, changes[field])
    await session.flush()
    return vehicle


async def change_vehicle_status(
    session: AsyncSession, vehicle_id: int, new_status: VehicleStatus
) -> VehicleModel:
    """Retire a vehicle or bring a retired one back into service."""
    repo = VehicleRepository(session)
    vehicle = await get_vehicle(session, vehicle_id)
    current = VehicleStatus(vehicle.status)
    VEHICLE_MANUAL_LIFECYCLE.ensure(current, new_status)
    if not await repo.set_status(vehicle, new_status, expected=current):
        raise InvalidTransition(
            f"Vehicle {vehicle.id} was moved to "
            f"{VehicleStatus(vehicle.status).value} by another request"
        )
    logger.info("Vehicle %s: %s -> %s", vehicle.id, current.value, new_status.value)
    return vehicle


async def delete_vehicle(session: AsyncSession, vehicle_id: int) -> None:
    vehicle = await get_vehicle(session, vehicle_id)
    if VehicleStatus(vehicle.status) == VehicleStatus.ON_TRIP:
        raise InvalidState("Vehicle is on a trip and cannot be deleted")
    await VehicleRepository(session).delete(vehicle)
    logger.info("Vehicle %s deleted", vehicle_id)
