"""Analytics aggregator against a real (SQLite) store."""

from datetime import timedelta

import pytest

from fleetops.domain.enums import ExpenseStatus, TripStatus, VehicleStatus
from fleetops.infrastructure.models import ExpenseModel, MaintenanceLogModel
from fleetops.services import analytics
from tests.factories import NOW, make_driver, make_trip, make_vehicle


async def _expense(session, trip, fuel, misc=0, distance=0):
    expense = ExpenseModel(
        trip_id=trip.id,
        driver_id=trip.driver_id,
        fuel_cost=fuel,
        misc_expense=misc,
        distance=distance,
        status=ExpenseStatus.APPROVED,
        created_at=trip.created_at,
        updated_at=trip.created_at,
    )
    session.add(expense)
    await session.flush()
    return expense


async def _maintenance(session, vehicle, cost, days_ago=0):
    log = MaintenanceLogModel(
        vehicle_id=vehicle.id,
        issue="Service",
        date=NOW - timedelta(days=days_ago),
        cost=cost,
        created_at=NOW - timedelta(days=days_ago),
        updated_at=NOW - timedelta(days=days_ago),
    )
    session.add(log)
    await session.flush()
    return log


class TestFleetBreakdown:
    @pytest.mark.asyncio
    async def test_three_of_ten_on_trip_is_thirty_percent(self, db_session):
        for _ in range(3):
            await make_vehicle(db_session, status=VehicleStatus.ON_TRIP)
        for _ in range(6):
            await make_vehicle(db_session)
        await make_vehicle(db_session, status=VehicleStatus.IN_SHOP)

        fleet = await analytics.fleet_breakdown(db_session)
        assert fleet["total"] == 10
        assert fleet["on_trip"] == 3
        assert fleet["in_shop"] == 1
        assert fleet["utilization"] == 30

    @pytest.mark.asyncio
    async def test_empty_fleet(self, db_session):
        fleet = await analytics.fleet_breakdown(db_session)
        assert fleet["total"] == 0
        assert fleet["utilization"] == 0

    @pytest.mark.asyncio
    async def test_vehicle_stats(self, db_session):
        vehicle = await make_vehicle(db_session, status=VehicleStatus.ON_TRIP)
        await make_vehicle(db_session)
        driver = await make_driver(db_session)
        await make_trip(db_session, vehicle, driver, status=TripStatus.PENDING)

        stats = await analytics.vehicle_stats(db_session)
        assert stats == {
            "active_fleet": 1,
            "maintenance_alerts": 0,
            "available": 1,
            "total": 2,
            "utilization": 50,
            "pending_cargo": 1,
        }


class TestTripsAndMoney:
    @pytest.mark.asyncio
    async def test_trip_completion_rate(self, db_session):
        vehicle = await make_vehicle(db_session)
        driver = await make_driver(db_session)
        for status in (
            TripStatus.DELIVERED,
            TripStatus.DELIVERED,
            TripStatus.DELIVERED,
            TripStatus.CANCELLED,
        ):
            await make_trip(db_session, vehicle, driver, status=status)

        trips = await analytics.trip_breakdown(db_session)
        assert trips["total"] == 4
        assert trips["delivered"] == 3
        assert trips["completion_rate"] == 75

    @pytest.mark.asyncio
    async def test_financial_totals_and_roi(self, db_session):
        vehicle = await make_vehicle(db_session)
        driver = await make_driver(db_session)
        delivered = await make_trip(
            db_session, vehicle, driver, estimated_fuel_cost=3000
        )
        cancelled = await make_trip(
            db_session,
            vehicle,
            driver,
            status=TripStatus.CANCELLED,
            estimated_fuel_cost=9999,
        )
        await _expense(db_session, delivered, fuel=1200, misc=300, distance=400)
        await _expense(db_session, cancelled, fuel=300, distance=100)
        await _maintenance(db_session, vehicle, 500)

        totals = await analytics.financial_totals(db_session)
        assert totals["total_fuel"] == 1500
        assert totals["total_misc"] == 300
        assert totals["total_maintenance"] == 500
        assert totals["total_operational_cost"] == 2300
        assert totals["total_distance"] == 500
        assert totals["avg_fuel_per_trip"] == 750
        assert totals["revenue"] == 3000
        assert totals["roi_percent"] == 30.4

    @pytest.mark.asyncio
    async def test_vehicle_costs_merge_maintenance(self, db_session):
        busy = await make_vehicle(db_session, plate="BUSY")
        shop_only = await make_vehicle(db_session, plate="SHOP")
        driver = await make_driver(db_session)
        trip = await make_trip(db_session, busy, driver)
        await _expense(db_session, trip, fuel=400, misc=100, distance=1000)
        await _maintenance(db_session, shop_only, 2000)

        costs = {c.license_plate: c for c in await analytics.vehicle_costs(db_session)}
        assert costs["BUSY"].trips == 1
        assert costs["BUSY"].fuel_efficiency == 2.5
        assert costs["SHOP"].trips == 0
        assert costs["SHOP"].total_with_maintenance == 2000


class TestTimeWindows:
    @pytest.mark.asyncio
    async def test_dead_stock(self, db_session):
        driver = await make_driver(db_session)
        stale = await make_vehicle(db_session, plate="STALE")
        fresh = await make_vehicle(db_session, plate="FRESH")
        never = await make_vehicle(db_session, plate="NEVER")
        await make_vehicle(db_session, plate="GONE", status=VehicleStatus.RETIRED)
        await make_trip(db_session, stale, driver, days_ago=40)
        await make_trip(db_session, fresh, driver, days_ago=10)

        idle = await analytics.dead_stock(db_session, now=NOW, window_days=30)
        assert [v.license_plate for v in idle] == ["NEVER", "STALE"]
        assert fresh not in idle
        assert never in idle

    @pytest.mark.asyncio
    async def test_monthly_revenue(self, db_session):
        vehicle = await make_vehicle(db_session)
        driver = await make_driver(db_session)
        # NOW is 18 Oct; both trips fall in October.
        await make_trip(db_session, vehicle, driver, estimated_fuel_cost=1000, days_ago=2)
        await make_trip(db_session, vehicle, driver, estimated_fuel_cost=1500, days_ago=12)
        await make_trip(
            db_session, vehicle, driver, estimated_fuel_cost=800, days_ago=40
        )

        months = await analytics.monthly_summary(db_session, now=NOW, months=3)
        assert [m.label for m in months] == ["Aug 2026", "Sep 2026", "Oct 2026"]
        assert months[-1].revenue == 2500
        assert months[1].revenue == 800

    @pytest.mark.asyncio
    async def test_dashboard_keeps_only_vehicles_with_trips_in_rollup(
        self, db_session
    ):
        vehicle = await make_vehicle(db_session)
        shop_only = await make_vehicle(db_session)
        driver = await make_driver(db_session)
        trip = await make_trip(db_session, vehicle, driver)
        await _expense(db_session, trip, fuel=100)
        await _maintenance(db_session, shop_only, 900)

        report = await analytics.dashboard(
            db_session,
            now=NOW,
            per_vehicle_top_n=10,
            costliest_top_n=5,
            dead_stock_window_days=30,
        )
        assert [c.vehicle_id for c in report["per_vehicle_costs"]] == [vehicle.id]
        assert [c.vehicle_id for c in report["costliest_vehicles"]] == [
            shop_only.id,
            vehicle.id,
        ]
