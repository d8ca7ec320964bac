"""
Dispatch validator and trip lifecycle.

Demonstrates:
1. The end-to-end dispatch / deliver flow frees the vehicle again.
2. Capacity is compared in kg with the boundary accepted.
3. A second dispatch against a busy vehicle fails without side effects.
4. The conditional UPDATE rejects a claim made from a stale read.
5. A driver holds at most one active trip.
6. Ending a stale trip leaves a vehicle held by a newer trip alone.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from fleetops.domain.enums import (
    CapacityUnit,
    MaintenanceStatus,
    TripStatus,
    VehicleStatus,
)
from fleetops.domain.errors import (
    CapacityExceeded,
    DriverInactive,
    DriverNotFound,
    DriverUnavailable,
    InvalidTransition,
    VehicleNotFound,
    VehicleUnavailable,
)
from fleetops.infrastructure.models import TripModel, VehicleModel
from fleetops.services import dispatch, maintenance
from tests.factories import NOW, make_driver, make_trip, make_user, make_vehicle


async def _dispatch(session, vehicle, driver, cargo_weight=1800, **extra):
    return await dispatch.dispatch_trip(
        session,
        vehicle_id=vehicle.id,
        driver_id=driver.id,
        cargo_weight=cargo_weight,
        origin="Pune",
        destination="Mumbai",
        now=NOW,
        **extra,
    )


async def _trip_count(session) -> int:
    return (await session.execute(select(func.count(TripModel.id)))).scalar()


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_dispatch_deliver_releases_vehicle(self, db_session):
        v1 = await make_vehicle(db_session, plate="V1", max_capacity=2)
        driver = await make_driver(db_session)

        t1 = await _dispatch(db_session, v1, driver, cargo_weight=1800)
        assert t1.status == TripStatus.PENDING
        assert v1.status == VehicleStatus.ON_TRIP
        assert v1.assigned_driver_id == driver.id

        with pytest.raises(VehicleUnavailable, match="On Trip"):
            await _dispatch(
                db_session, v1, await make_driver(db_session), cargo_weight=100
            )
        assert await _trip_count(db_session) == 1

        await dispatch.advance_trip(db_session, t1.id, TripStatus.ON_WAY)
        assert v1.status == VehicleStatus.ON_TRIP

        await dispatch.advance_trip(db_session, t1.id, TripStatus.DELIVERED)
        assert v1.status == VehicleStatus.AVAILABLE
        assert v1.assigned_driver_id is None

    @pytest.mark.asyncio
    async def test_cancel_releases_vehicle(self, db_session):
        vehicle = await make_vehicle(db_session)
        trip = await _dispatch(db_session, vehicle, await make_driver(db_session))

        await dispatch.advance_trip(db_session, trip.id, TripStatus.CANCELLED)
        assert vehicle.status == VehicleStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_terminal_trip_cannot_move(self, db_session):
        vehicle = await make_vehicle(db_session)
        trip = await _dispatch(db_session, vehicle, await make_driver(db_session))
        await dispatch.advance_trip(db_session, trip.id, TripStatus.CANCELLED)

        with pytest.raises(InvalidTransition):
            await dispatch.advance_trip(db_session, trip.id, TripStatus.ON_WAY)
        assert trip.status == TripStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_terminal_trip_does_not_release_a_vehicle_in_the_shop(
        self, db_session
    ):
        vehicle = await make_vehicle(db_session)
        trip = await _dispatch(db_session, vehicle, await make_driver(db_session))
        await db_session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle.id)
            .values(status=VehicleStatus.IN_SHOP, assigned_driver_id=None)
        )

        await dispatch.advance_trip(db_session, trip.id, TripStatus.CANCELLED)
        await db_session.refresh(vehicle)
        assert vehicle.status == VehicleStatus.IN_SHOP

    @pytest.mark.asyncio
    async def test_deleting_an_active_trip_releases_vehicle(self, db_session):
        vehicle = await make_vehicle(db_session)
        trip = await _dispatch(db_session, vehicle, await make_driver(db_session))

        await dispatch.delete_trip(db_session, trip.id)
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert await _trip_count(db_session) == 0


class TestCapacity:
    @pytest.mark.asyncio
    async def test_five_tons_accepts_5000_kg(self, db_session):
        vehicle = await make_vehicle(db_session, max_capacity=5)
        trip = await _dispatch(
            db_session, vehicle, await make_driver(db_session), cargo_weight=5000
        )
        assert trip.cargo_weight == 5000

    @pytest.mark.asyncio
    async def test_five_tons_rejects_5001_kg(self, db_session):
        vehicle = await make_vehicle(db_session, max_capacity=5)
        with pytest.raises(CapacityExceeded):
            await _dispatch(
                db_session, vehicle, await make_driver(db_session), cargo_weight=5001
            )
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert await _trip_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_kg_capacity_is_not_scaled(self, db_session):
        vehicle = await make_vehicle(
            db_session, max_capacity=750, capacity_unit=CapacityUnit.KG
        )
        with pytest.raises(CapacityExceeded):
            await _dispatch(
                db_session, vehicle, await make_driver(db_session), cargo_weight=800
            )


class TestRejections:
    @pytest.mark.asyncio
    async def test_unknown_driver(self, db_session):
        vehicle = await make_vehicle(db_session)
        with pytest.raises(DriverNotFound):
            await dispatch.dispatch_trip(
                db_session,
                vehicle_id=vehicle.id,
                driver_id=9999,
                cargo_weight=10,
                origin="A",
                destination="B",
                now=NOW,
            )

    @pytest.mark.asyncio
    async def test_non_driver_account_is_not_a_driver(self, db_session):
        vehicle = await make_vehicle(db_session)
        manager = await make_user(db_session)
        with pytest.raises(DriverNotFound):
            await _dispatch(db_session, vehicle, manager)

    @pytest.mark.asyncio
    async def test_inactive_driver(self, db_session):
        vehicle = await make_vehicle(db_session)
        driver = await make_driver(db_session, is_active=False)
        with pytest.raises(DriverInactive):
            await _dispatch(db_session, vehicle, driver)
        assert vehicle.status == VehicleStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_unknown_vehicle(self, db_session):
        driver = await make_driver(db_session)
        with pytest.raises(VehicleNotFound):
            await dispatch.dispatch_trip(
                db_session,
                vehicle_id=9999,
                driver_id=driver.id,
                cargo_weight=10,
                origin="A",
                destination="B",
                now=NOW,
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [VehicleStatus.IN_SHOP, VehicleStatus.RETIRED])
    async def test_vehicle_not_available(self, db_session, status):
        vehicle = await make_vehicle(db_session, status=status)
        with pytest.raises(VehicleUnavailable):
            await _dispatch(db_session, vehicle, await make_driver(db_session))


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_claim_from_stale_read_is_rejected(self, db_session):
        """Another request takes the vehicle between our read and our write."""
        vehicle = await make_vehicle(db_session)
        driver = await make_driver(db_session)

        # Behind the ORM's back: the identity map still says Available.
        await db_session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle.id)
            .values(status=VehicleStatus.ON_TRIP)
            .execution_options(synchronize_session=False)
        )
        assert vehicle.status == VehicleStatus.AVAILABLE

        with pytest.raises(VehicleUnavailable):
            await _dispatch(db_session, vehicle, driver)
        assert await _trip_count(db_session) == 0
        assert vehicle.status == VehicleStatus.ON_TRIP

    @pytest.mark.asyncio
    async def test_second_active_trip_for_a_driver_violates_index(self, db_session):
        """Two concurrent dispatches that both pass the busy check."""
        driver = await make_driver(db_session)
        await make_trip(
            db_session, await make_vehicle(db_session), driver, status=TripStatus.PENDING
        )
        with pytest.raises(IntegrityError):
            await make_trip(
                db_session,
                await make_vehicle(db_session),
                driver,
                status=TripStatus.ON_WAY,
            )


class TestDriverLock:
    @pytest.mark.asyncio
    async def test_busy_driver_is_rejected(self, db_session):
        driver = await make_driver(db_session)
        v1 = await make_vehicle(db_session)
        v2 = await make_vehicle(db_session)
        await _dispatch(db_session, v1, driver)

        with pytest.raises(DriverUnavailable):
            await _dispatch(db_session, v2, driver)
        assert v2.status == VehicleStatus.AVAILABLE
        assert await _trip_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_driver_is_free_again_after_delivery(self, db_session):
        driver = await make_driver(db_session)
        v1 = await make_vehicle(db_session)
        v2 = await make_vehicle(db_session)
        trip = await _dispatch(db_session, v1, driver)
        await dispatch.advance_trip(db_session, trip.id, TripStatus.ON_WAY)
        await dispatch.advance_trip(db_session, trip.id, TripStatus.DELIVERED)

        second = await _dispatch(db_session, v2, driver)
        assert second.status == TripStatus.PENDING

    @pytest.mark.asyncio
    async def test_finished_trips_do_not_hold_the_driver(self, db_session):
        driver = await make_driver(db_session)
        vehicle = await make_vehicle(db_session)
        await make_trip(db_session, vehicle, driver, status=TripStatus.DELIVERED)
        await make_trip(db_session, vehicle, driver, status=TripStatus.CANCELLED)

        trip = await _dispatch(db_session, vehicle, driver)
        assert trip.driver_id == driver.id


class TestStaleTripAfterShop:
    """T1 loses its vehicle to the shop; the vehicle comes back and takes T2."""

    async def _recycle(self, db_session):
        vehicle = await make_vehicle(db_session)
        t1 = await _dispatch(db_session, vehicle, await make_driver(db_session))
        log = await maintenance.open_maintenance(
            db_session, vehicle_id=vehicle.id, issue="Brakes", date=NOW, now=NOW
        )
        await maintenance.change_maintenance_status(
            db_session, log.id, MaintenanceStatus.COMPLETED
        )
        assert vehicle.status == VehicleStatus.AVAILABLE

        second_driver = await make_driver(db_session)
        t2 = await _dispatch(db_session, vehicle, second_driver)
        return vehicle, t1, t2, second_driver

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [TripStatus.CANCELLED, TripStatus.ON_WAY])
    async def test_ending_stale_trip_keeps_vehicle_on_new_trip(
        self, db_session, status
    ):
        vehicle, t1, t2, second_driver = await self._recycle(db_session)

        await dispatch.advance_trip(db_session, t1.id, status)
        if status == TripStatus.ON_WAY:
            await dispatch.advance_trip(db_session, t1.id, TripStatus.DELIVERED)

        await db_session.refresh(vehicle)
        assert t2.status == TripStatus.PENDING
        assert vehicle.status == VehicleStatus.ON_TRIP
        assert vehicle.assigned_driver_id == second_driver.id

    @pytest.mark.asyncio
    async def test_deleting_stale_trip_keeps_vehicle_on_new_trip(self, db_session):
        vehicle, t1, _, second_driver = await self._recycle(db_session)

        await dispatch.delete_trip(db_session, t1.id)
        await db_session.refresh(vehicle)
        assert vehicle.status == VehicleStatus.ON_TRIP
        assert vehicle.assigned_driver_id == second_driver.id

    @pytest.mark.asyncio
    async def test_new_trip_still_releases_when_it_ends(self, db_session):
        vehicle, t1, t2, _ = await self._recycle(db_session)
        await dispatch.advance_trip(db_session, t1.id, TripStatus.CANCELLED)

        await dispatch.advance_trip(db_session, t2.id, TripStatus.CANCELLED)
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert vehicle.assigned_driver_id is None
