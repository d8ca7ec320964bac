"""
Analytics arithmetic
====================

Pure helpers used by the analytics service.  They take plain numbers or
row tuples already fetched from the store, so every figure on the
dashboard can be checked without a database.

Rounding
--------
Percentages round half-up (``floor(x + 0.5)``) so that 2.5 % shows as 3 %,
which is what the dashboard has always displayed.  Python's built-in
``round`` would give 2.
"""

from __future__ import annotations

import calendar
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .enums import TripStatus


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percent(part: float, whole: float) -> int:
    """Whole-number percentage of *part* in *whole*; 0 for an empty whole."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def fuel_efficiency(distance: float, fuel_cost: float) -> float:
    """Distance covered per unit of fuel spend, 2 decimals."""
    if fuel_cost <= 0:
        return 0
    return round(distance / fuel_cost, 2)


def roi_percent(revenue: float, expenses: float) -> float:
    if expenses <= 0:
        return 0
    return round((revenue - expenses) / expenses * 100, 1)


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


def trailing_months(now: datetime, count: int) -> list[tuple[int, int]]:
    """The *count* calendar months ending with the month of *now*, oldest first."""
    year, month = now.year, now.month
    months = []
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


# ── Per-vehicle rollup ────────────────────────────────────────────────


@dataclass
class VehicleCost:
    vehicle_id: int
    license_plate: str
    model: str
    fuel_cost: float = 0.0
    misc_cost: float = 0.0
    distance: float = 0.0
    trips: int = 0
    maintenance_cost: float = 0.0

    @property
    def total_cost(self) -> float:
        return self.fuel_cost + self.misc_cost

    @property
    def total_with_maintenance(self) -> float:
        return self.total_cost + self.maintenance_cost

    @property
    def fuel_efficiency(self) -> float:
        return fuel_efficiency(self.distance, self.fuel_cost)


def top_by_fuel_cost(costs: Iterable[VehicleCost], limit: int) -> list[VehicleCost]:
    return sorted(costs, key=lambda c: c.fuel_cost, reverse=True)[:limit]


def costliest(costs: Iterable[VehicleCost], limit: int) -> list[VehicleCost]:
    return sorted(costs, key=lambda c: c.total_with_maintenance, reverse=True)[
        :limit
    ]


# ── Monthly summary ───────────────────────────────────────────────────


@dataclass
class MonthSummary:
    year: int
    month: int
    revenue: float = 0.0
    fuel_cost: float = 0.0
    misc_cost: float = 0.0
    maintenance_cost: float = 0.0
    trips: int = 0
    delivered: int = 0

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)

    @property
    def net_profit(self) -> float:
        return self.revenue - self.fuel_cost - self.misc_cost - self.maintenance_cost


def summarize_months(
    months: list[tuple[int, int]],
    trips: Iterable[tuple[datetime, TripStatus, float]],
    expenses: Iterable[tuple[datetime, float, float]],
    maintenance: Iterable[tuple[datetime, float]],
) -> list[MonthSummary]:
    """
    Bucket rows by the (year, month) of their creation time.

    * trips       -- ``(created_at, status, estimated_fuel_cost)``
    * expenses    -- ``(created_at, fuel_cost, misc_expense)``
    * maintenance -- ``(created_at, cost)``

    Only months listed in *months* are reported; rows outside them are
    ignored.  Revenue is the estimated fuel cost of delivered trips.
    """
    buckets: dict[tuple[int, int], MonthSummary] = defaultdict(
        lambda: MonthSummary(0, 0)
    )
    wanted = set(months)

    for created_at, status, estimated in trips:
        key = (created_at.year, created_at.month)
        if key not in wanted:
            continue
        bucket = buckets[key]
        bucket.trips += 1
        if TripStatus(status) == TripStatus.DELIVERED:
            bucket.delivered += 1
            bucket.revenue += estimated or 0

    for created_at, fuel, misc in expenses:
        key = (created_at.year, created_at.month)
        if key in wanted:
            buckets[key].fuel_cost += fuel or 0
            buckets[key].misc_cost += misc or 0

    for created_at, cost in maintenance:
        key = (created_at.year, created_at.month)
        if key in wanted:
            buckets[key].maintenance_cost += cost or 0

    result = []
    for year, month in months:
        bucket = buckets.get((year, month)) or MonthSummary(year, month)
        bucket.year, bucket.month = year, month
        result.append(bucket)
    return result
