"""
Maintenance coupling: service records drive the vehicle's shop status.

* Opening a log pulls the vehicle into the shop, whatever it was doing.
* Completing a log returns the vehicle to Available, but only if it is
  still In Shop (a vehicle retired meanwhile stays retired).
* Deleting an open log frees the vehicle once no other open log remains.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.enums import MaintenanceStatus, VehicleStatus
from fleetops.domain.errors import (
    InvalidTransition,
    MaintenanceLogNotFound,
    VehicleNotFound,
)
from fleetops.domain.lifecycle import MAINTENANCE_LIFECYCLE
from fleetops.infrastructure.models import MaintenanceLogModel
from fleetops.infrastructure.repositories import (
    MaintenanceRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("issue", "date", "cost")


async def _release_if_in_shop(session: AsyncSession, vehicle_id: int) -> None:
    repo = VehicleRepository(session)
    vehicle = await repo.get_by_id(vehicle_id)
    if vehicle is None:
        return
    if await repo.release(vehicle, expected=VehicleStatus.IN_SHOP):
        logger.info("Vehicle %s back from the shop", vehicle_id)


async def open_maintenance(
    session: AsyncSession,
    *,
    vehicle_id: int,
    issue: str,
    date: datetime,
    cost: float = 0.0,
    now: datetime,
) -> MaintenanceLogModel:
    vehicles = VehicleRepository(session)
    vehicle = await vehicles.get_by_id(vehicle_id)
    if vehicle is None:
        raise VehicleNotFound()

    log = await MaintenanceRepository(session).create(
        MaintenanceLogModel(
            vehicle_id=vehicle.id,
            issue=issue.strip(),
            date=date,
            cost=cost or 0.0,
            status=MaintenanceStatus.NEW,
            created_at=now,
            updated_at=now,
        )
    )
    previous = VehicleStatus(vehicle.status)
    await vehicles.send_to_shop(vehicle)
    logger.info(
        "Maintenance log %s opened; vehicle %s %s -> In Shop",
        log.id,
        vehicle.id,
        previous.value,
    )
    return log


async def get_maintenance(session: AsyncSession, log_id: int) -> MaintenanceLogModel:
    log = await MaintenanceRepository(session).get_by_id(log_id)
    if log is None:
        raise MaintenanceLogNotFound()
    return log


async def update_maintenance(
    session: AsyncSession, log_id: int, changes: dict[str, Any]
) -> MaintenanceLogModel:
    """Edit descriptive fields; status has its own operation."""
    log = await get_maintenance(session, log_id)
    for field in EDITABLE_FIELDS:
        if changes.get(field) is not None:
            setattr(log, field, changes[field])
    await session.flush()
    return log


async def change_maintenance_status(
    session: AsyncSession, log_id: int, new_status: MaintenanceStatus
) -> MaintenanceLogModel:
    repo = MaintenanceRepository(session)
    log = await get_maintenance(session, log_id)
    current = MaintenanceStatus(log.status)
    MAINTENANCE_LIFECYCLE.ensure(current, new_status)

    if not await repo.transition(log, new_status, expected=current):
        raise InvalidTransition(
            f"Maintenance log {log.id} was moved to "
            f"{MaintenanceStatus(log.status).value} by another request"
        )
    logger.info(
        "Maintenance log %s: %s -> %s", log.id, current.value, new_status.value
    )

    if new_status == MaintenanceStatus.COMPLETED:
        await _release_if_in_shop(session, log.vehicle_id)
    return log


async def delete_maintenance(session: AsyncSession, log_id: int) -> None:
    repo = MaintenanceRepository(session)
    log = await get_maintenance(session, log_id)
    was_open = MaintenanceStatus(log.status) != MaintenanceStatus.COMPLETED
    vehicle_id = log.vehicle_id
    await repo.delete(log)

    if was_open and await repo.count_open(vehicle_id) == 0:
        await _release_if_in_shop(session, vehicle_id)
    logger.info("Maintenance log %s deleted", log_id)
