"""
Dispatch Workflow
=================

Creating a trip locks a vehicle/driver pair; finishing it releases them.

Validation order (first failure wins)
-------------------------------------
1. driver exists and is an active driver  -> ``DriverNotFound`` / ``DriverInactive``
   with no Pending or On Way trip         -> ``DriverUnavailable``
2. vehicle exists and is Available        -> ``VehicleNotFound`` / ``VehicleUnavailable``
3. cargo fits the capacity in kg          -> ``CapacityExceeded``

Concurrency safety
------------------
The read in step 2 is advisory.  The vehicle is claimed with a conditional
``UPDATE ... WHERE status = 'Available'``; if another request claimed it in
between, zero rows change and the dispatch fails with ``VehicleUnavailable``.
The driver is guarded the same way by the partial unique index on active
trips per driver: a concurrent second insert fails and is reported as
``DriverUnavailable``.  The claim and the trip insert share the request
transaction, so neither is visible to other requests until both are
committed.

Ending a trip frees its vehicle only when no other trip still holds it; a
vehicle recycled through the shop may already carry a newer trip.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.capacity import Capacity
from fleetops.domain.enums import Role, TripStatus, VehicleStatus
from fleetops.domain.errors import (
    DriverInactive,
    DriverNotFound,
    DriverUnavailable,
    InvalidTransition,
    TripNotFound,
    VehicleNotFound,
    VehicleUnavailable,
)
from fleetops.domain.lifecycle import TRIP_LIFECYCLE, VEHICLE_LIFECYCLE
from fleetops.infrastructure.models import TripModel, UserModel, VehicleModel
from fleetops.infrastructure.repositories import (
    TripRepository,
    UserRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


async def _resolve_driver(session: AsyncSession, driver_id: int) -> UserModel:
    driver = await UserRepository(session).get_by_id(driver_id)
    if driver is None or Role(driver.role) != Role.DRIVER:
        raise DriverNotFound()
    if not driver.is_active:
        raise DriverInactive()
    if await TripRepository(session).count_active(driver_id=driver.id):
        raise DriverUnavailable()
    return driver


async def _resolve_vehicle(session: AsyncSession, vehicle_id: int) -> VehicleModel:
    vehicle = await VehicleRepository(session).get_by_id(vehicle_id)
    if vehicle is None:
        raise VehicleNotFound()
    return vehicle


def _unavailable(vehicle: VehicleModel) -> VehicleUnavailable:
    return VehicleUnavailable(
        f'Vehicle is currently "{VehicleStatus(vehicle.status).value}" '
        "and cannot be dispatched"
    )


async def dispatch_trip(
    session: AsyncSession,
    *,
    vehicle_id: int,
    driver_id: int,
    cargo_weight: float,
    origin: str,
    destination: str,
    estimated_fuel_cost: float = 0.0,
    now: datetime,
) -> TripModel:
    """Validate, claim the vehicle, and create a Pending trip."""
    driver = await _resolve_driver(session, driver_id)
    vehicle = await _resolve_vehicle(session, vehicle_id)

    if not VEHICLE_LIFECYCLE.can_transition(
        VehicleStatus(vehicle.status), VehicleStatus.ON_TRIP
    ):
        logger.warning(
            "Dispatch rejected: vehicle %s is %s", vehicle.id, vehicle.status
        )
        raise _unavailable(vehicle)

    Capacity(vehicle.max_capacity, vehicle.capacity_unit).ensure_admits(cargo_weight)

    if not await VehicleRepository(session).claim_for_trip(vehicle, driver.id):
        logger.warning("Dispatch lost race for vehicle %s", vehicle.id)
        raise _unavailable(vehicle)

    try:
        trip = await TripRepository(session).create(
            TripModel(
                vehicle_id=vehicle.id,
                driver_id=driver.id,
                cargo_weight=cargo_weight,
                origin=origin.strip(),
                destination=destination.strip(),
                estimated_fuel_cost=estimated_fuel_cost,
                status=TripStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
        )
    except IntegrityError:
        logger.warning("Dispatch lost race for driver %s", driver.id)
        raise DriverUnavailable()
    logger.info(
        "Trip %s dispatched: vehicle=%s driver=%s cargo=%skg",
        trip.id,
        vehicle.id,
        driver.id,
        cargo_weight,
    )
    return trip


async def _release_vehicle(session: AsyncSession, vehicle_id: int) -> None:
    """Free an ended trip's vehicle unless something else already took it over."""
    if await TripRepository(session).count_active(vehicle_id=vehicle_id):
        logger.info("Vehicle %s still held by another trip", vehicle_id)
        return
    repo = VehicleRepository(session)
    vehicle = await repo.get_by_id(vehicle_id)
    if vehicle is None:
        return
    if await repo.release(vehicle, expected=VehicleStatus.ON_TRIP):
        logger.info("Vehicle %s released to Available", vehicle_id)


async def get_trip(session: AsyncSession, trip_id: int) -> TripModel:
    trip = await TripRepository(session).get_by_id(trip_id)
    if trip is None:
        raise TripNotFound()
    return trip


async def advance_trip(
    session: AsyncSession, trip_id: int, new_status: TripStatus
) -> TripModel:
    """Move a trip along its lifecycle; terminal states free the vehicle."""
    repo = TripRepository(session)
    trip = await get_trip(session, trip_id)
    current = TripStatus(trip.status)
    TRIP_LIFECYCLE.ensure(current, new_status)

    if not await repo.transition(trip, new_status, expected=current):
        raise InvalidTransition(
            f"Trip {trip.id} was moved to {TripStatus(trip.status).value} "
            "by another request"
        )

    logger.info("Trip %s: %s -> %s", trip.id, current.value, new_status.value)
    if TRIP_LIFECYCLE.is_terminal(new_status):
        await _release_vehicle(session, trip.vehicle_id)
    return trip


async def delete_trip(session: AsyncSession, trip_id: int) -> None:
    repo = TripRepository(session)
    trip = await get_trip(session, trip_id)
    was_active = not TRIP_LIFECYCLE.is_terminal(TripStatus(trip.status))
    vehicle_id = trip.vehicle_id
    await repo.delete(trip)
    if was_active:
        await _release_vehicle(session, vehicle_id)
    logger.info("Trip %s deleted", trip_id)
