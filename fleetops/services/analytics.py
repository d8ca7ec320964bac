"""
Analytics Aggregator
====================

Read-only figures for the dashboard, recomputed from the store on every
request.  Nothing here writes or caches.

Consistency
-----------
Each figure comes from its own query with no snapshot isolation, so a
dashboard rendered while trips are being dispatched may be off by one
between sections.  Do not use these numbers for reconciliation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.domain.analytics import (
    MonthSummary,
    VehicleCost,
    costliest,
    percent,
    roi_percent,
    round_half_up,
    summarize_months,
    top_by_fuel_cost,
    trailing_months,
)
from fleetops.domain.enums import TripStatus, VehicleStatus
from fleetops.infrastructure.models import VehicleModel
from fleetops.infrastructure.repositories import (
    ExpenseRepository,
    MaintenanceRepository,
    TripRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


async def fleet_breakdown(session: AsyncSession) -> dict:
    counts = await VehicleRepository(session).count_by_status()
    total = sum(counts.values())
    return {
        "total": total,
        "available": counts[VehicleStatus.AVAILABLE],
        "on_trip": counts[VehicleStatus.ON_TRIP],
        "in_shop": counts[VehicleStatus.IN_SHOP],
        "retired": counts[VehicleStatus.RETIRED],
        "utilization": percent(counts[VehicleStatus.ON_TRIP], total),
    }


async def trip_breakdown(session: AsyncSession) -> dict:
    counts = await TripRepository(session).count_by_status()
    total = sum(counts.values())
    return {
        "total": total,
        "pending": counts[TripStatus.PENDING],
        "on_way": counts[TripStatus.ON_WAY],
        "delivered": counts[TripStatus.DELIVERED],
        "cancelled": counts[TripStatus.CANCELLED],
        "completion_rate": percent(counts[TripStatus.DELIVERED], total),
    }


async def vehicle_stats(session: AsyncSession) -> dict:
    """Dashboard KPI tiles."""
    fleet = await fleet_breakdown(session)
    trips = await TripRepository(session).count_by_status()
    return {
        "active_fleet": fleet["on_trip"],
        "maintenance_alerts": fleet["in_shop"],
        "available": fleet["available"],
        "total": fleet["total"],
        "utilization": fleet["utilization"],
        "pending_cargo": trips[TripStatus.PENDING],
    }


async def financial_totals(session: AsyncSession) -> dict:
    expenses = await ExpenseRepository(session).totals()
    maintenance = await MaintenanceRepository(session).total_cost()
    revenue = await TripRepository(session).delivered_revenue()

    operational = expenses["fuel"] + expenses["misc"] + maintenance
    avg_fuel = expenses["fuel"] / expenses["count"] if expenses["count"] else 0
    return {
        "total_fuel": expenses["fuel"],
        "total_misc": expenses["misc"],
        "total_maintenance": maintenance,
        "total_operational_cost": operational,
        "total_distance": expenses["distance"],
        "avg_fuel_per_trip": round_half_up(avg_fuel),
        "revenue": revenue,
        "roi_percent": roi_percent(revenue, operational),
    }


async def vehicle_costs(session: AsyncSession) -> list[VehicleCost]:
    """Expense rollup per vehicle (via each expense's trip) plus maintenance."""
    rows = await ExpenseRepository(session).rollup_by_vehicle()
    maintenance = await MaintenanceRepository(session).cost_by_vehicle()

    costs: dict[int, VehicleCost] = {}
    for vehicle_id, plate, model, fuel, misc, distance, trips in rows:
        costs[vehicle_id] = VehicleCost(
            vehicle_id=vehicle_id,
            license_plate=plate,
            model=model,
            fuel_cost=float(fuel or 0),
            misc_cost=float(misc or 0),
            distance=float(distance or 0),
            trips=int(trips),
        )

    vehicles = VehicleRepository(session)
    for vehicle_id, cost in maintenance.items():
        if vehicle_id not in costs:
            vehicle = await vehicles.get_by_id(vehicle_id)
            if vehicle is None:
                continue
            costs[vehicle_id] = VehicleCost(
                vehicle_id=vehicle_id,
                license_plate=vehicle.license_plate,
                model=vehicle.model,
            )
        costs[vehicle_id].maintenance_cost = cost
    return list(costs.values())


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


async def monthly_summary(
    session: AsyncSession, *, now: datetime, months: int
) -> list[MonthSummary]:
    window = trailing_months(now, months)
    since = _month_start(*window[0])
    return summarize_months(
        window,
        await TripRepository(session).rows_since(since),
        await ExpenseRepository(session).rows_since(since),
        await MaintenanceRepository(session).rows_since(since),
    )


async def dead_stock(
    session: AsyncSession, *, now: datetime, window_days: int
) -> list[VehicleModel]:
    since = now - timedelta(days=window_days)
    return await VehicleRepository(session).get_idle_since(since)


async def dashboard(
    session: AsyncSession,
    *,
    now: datetime,
    per_vehicle_top_n: int,
    costliest_top_n: int,
    dead_stock_window_days: int,
) -> dict:
    costs = await vehicle_costs(session)
    report = {
        "fleet": await fleet_breakdown(session),
        "trips": await trip_breakdown(session),
        "financials": await financial_totals(session),
        "per_vehicle_costs": top_by_fuel_cost(
            [c for c in costs if c.trips], per_vehicle_top_n
        ),
        "costliest_vehicles": costliest(costs, costliest_top_n),
        "dead_stock": await dead_stock(
            session, now=now, window_days=dead_stock_window_days
        ),
    }
    logger.debug(
        "Dashboard computed: %d vehicles, %d trips",
        report["fleet"]["total"],
        report["trips"]["total"],
    )
    return report
