"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.

Status writes that other requests may race on go through
``_compare_and_set``: a conditional ``UPDATE ... WHERE status = :expected``
whose affected-row count tells the caller whether it won.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    ExpenseModel,
    MaintenanceLogModel,
    TripModel,
    UserModel,
    VehicleModel,
)
from fleetops.domain.enums import (
    MaintenanceStatus,
    Role,
    TripStatus,
    VehicleStatus,
)

ACTIVE_TRIP_STATUSES = (TripStatus.PENDING, TripStatus.ON_WAY)


async def _compare_and_set(
    session: AsyncSession, row: Any, expected: Any, **values: Any
) -> bool:
    """Apply *values* to *row* only if its stored status is still *expected*."""
    model = type(row)
    result = await session.execute(
        update(model)
        .where(model.id == row.id, model.status == expected)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(row)
    return result.rowcount == 1


async def _counts_by_status(session: AsyncSession, model: Any, statuses) -> dict:
    result = await session.execute(
        select(model.status, func.count()).group_by(model.status)
    )
    counts = {status: 0 for status in statuses}
    for status, count in result.all():
        counts[status] = count
    return counts


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def delete(self, user: UserModel) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        *,
        role: Role | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[UserModel]:
        query = select(UserModel)
        if role:
            query = query.where(UserModel.role == role)
        if is_active is not None:
            query = query.where(UserModel.is_active.is_(is_active))
        if search:
            query = query.where(
                or_(
                    UserModel.full_name.ilike(f"%{search}%"),
                    UserModel.email.ilike(f"%{search}%"),
                )
            )
        result = await self.session.execute(query.order_by(UserModel.id))
        return list(result.scalars().all())

    async def list_drivers(
        self, *, active_only: bool = False, search: str | None = None
    ) -> list[UserModel]:
        query = select(UserModel).where(UserModel.role == Role.DRIVER)
        if active_only:
            query = query.where(UserModel.is_active.is_(True))
        if search:
            query = query.where(UserModel.full_name.ilike(f"%{search}%"))
        result = await self.session.execute(query.order_by(UserModel.full_name))
        return list(result.scalars().all())


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        await self.session.flush()
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)

    async def get_by_plate(self, plate: str) -> Optional[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).where(VehicleModel.license_plate == plate)
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        *,
        vehicle_type: str | None = None,
        status: VehicleStatus | None = None,
        search: str | None = None,
    ) -> list[VehicleModel]:
        query = select(VehicleModel)
        if vehicle_type:
            query = query.where(VehicleModel.type == vehicle_type)
        if status:
            query = query.where(VehicleModel.status == status)
        if search:
            query = query.where(
                or_(
                    VehicleModel.license_plate.ilike(f"%{search}%"),
                    VehicleModel.model.ilike(f"%{search}%"),
                )
            )
        result = await self.session.execute(
            query.order_by(VehicleModel.created_at.desc(), VehicleModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, vehicle: VehicleModel) -> None:
        await self.session.delete(vehicle)
        await self.session.flush()

    async def claim_for_trip(self, vehicle: VehicleModel, driver_id: int) -> bool:
        """Available -> On Trip with *driver_id* assigned, atomically."""
        return await _compare_and_set(
            self.session,
            vehicle,
            VehicleStatus.AVAILABLE,
            status=VehicleStatus.ON_TRIP,
            assigned_driver_id=driver_id,
        )

    async def release(self, vehicle: VehicleModel, *, expected: VehicleStatus) -> bool:
        """Back to Available, driver cleared, only if still in *expected*."""
        return await _compare_and_set(
            self.session,
            vehicle,
            expected,
            status=VehicleStatus.AVAILABLE,
            assigned_driver_id=None,
        )

    async def set_status(
        self, vehicle: VehicleModel, new: VehicleStatus, *, expected: VehicleStatus
    ) -> bool:
        return await _compare_and_set(
            self.session, vehicle, expected, status=new, assigned_driver_id=None
        )

    async def send_to_shop(self, vehicle: VehicleModel) -> None:
        """Unconditional: maintenance always wins over the current status."""
        await self.session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle.id)
            .values(status=VehicleStatus.IN_SHOP, assigned_driver_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(vehicle)

    async def count_by_status(self) -> dict[VehicleStatus, int]:
        return await _counts_by_status(self.session, VehicleModel, VehicleStatus)

    async def get_idle_since(self, since: datetime) -> list[VehicleModel]:
        """Non-retired vehicles with no trip created at or after *since*."""
        recent = (
            select(TripModel.vehicle_id)
            .where(TripModel.created_at >= since)
            .distinct()
        )
        result = await self.session.execute(
            select(VehicleModel)
            .where(
                VehicleModel.status != VehicleStatus.RETIRED,
                VehicleModel.id.not_in(recent),
            )
            .order_by(VehicleModel.license_plate)
        )
        return list(result.scalars().all())


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, trip: TripModel) -> TripModel:
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def find(
        self,
        *,
        status: TripStatus | None = None,
        search: str | None = None,
        driver_id: int | None = None,
    ) -> list[TripModel]:
        query = select(TripModel)
        if status:
            query = query.where(TripModel.status == status)
        if driver_id is not None:
            query = query.where(TripModel.driver_id == driver_id)
        if search:
            query = query.where(
                or_(
                    TripModel.origin.ilike(f"%{search}%"),
                    TripModel.destination.ilike(f"%{search}%"),
                )
            )
        result = await self.session.execute(
            query.order_by(TripModel.created_at.desc(), TripModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, trip: TripModel) -> None:
        await self.session.delete(trip)
        await self.session.flush()

    async def transition(
        self, trip: TripModel, new: TripStatus, *, expected: TripStatus
    ) -> bool:
        return await _compare_and_set(self.session, trip, expected, status=new)

    async def count_by_status(self) -> dict[TripStatus, int]:
        return await _counts_by_status(self.session, TripModel, TripStatus)

    async def count_active(
        self, *, vehicle_id: int | None = None, driver_id: int | None = None
    ) -> int:
        """Pending or On Way trips for the given vehicle and/or driver."""
        query = select(func.count()).where(TripModel.status.in_(ACTIVE_TRIP_STATUSES))
        if vehicle_id is not None:
            query = query.where(TripModel.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(TripModel.driver_id == driver_id)
        return (await self.session.execute(query)).scalar_one()

    async def delivered_revenue(self) -> float:
        result = await self.session.execute(
            select(func.coalesce(func.sum(TripModel.estimated_fuel_cost), 0.0)).where(
                TripModel.status == TripStatus.DELIVERED
            )
        )
        return float(result.scalar() or 0)

    async def rows_since(self, since: datetime) -> list[tuple]:
        result = await self.session.execute(
            select(
                TripModel.created_at, TripModel.status, TripModel.estimated_fuel_cost
            ).where(TripModel.created_at >= since)
        )
        return [tuple(row) for row in result.all()]

    async def stats_by_driver(self, driver_ids: list[int]) -> dict[int, tuple[int, int]]:
        """driver_id -> (total trips, delivered trips)."""
        if not driver_ids:
            return {}
        result = await self.session.execute(
            select(
                TripModel.driver_id,
                func.count(),
                func.sum(
                    case((TripModel.status == TripStatus.DELIVERED, 1), else_=0)
                ),
            )
            .where(TripModel.driver_id.in_(driver_ids))
            .group_by(TripModel.driver_id)
        )
        return {
            driver_id: (total, int(delivered or 0))
            for driver_id, total, delivered in result.all()
        }


class MaintenanceRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, log: MaintenanceLogModel) -> MaintenanceLogModel:
        self.session.add(log)
        await self.session.flush()
        return log

    async def get_by_id(self, log_id: int) -> Optional[MaintenanceLogModel]:
        return await self.session.get(MaintenanceLogModel, log_id)

    async def find(
        self,
        *,
        status: MaintenanceStatus | None = None,
        search: str | None = None,
        vehicle_id: int | None = None,
    ) -> list[MaintenanceLogModel]:
        query = select(MaintenanceLogModel)
        if status:
            query = query.where(MaintenanceLogModel.status == status)
        if vehicle_id is not None:
            query = query.where(MaintenanceLogModel.vehicle_id == vehicle_id)
        if search:
            query = query.where(MaintenanceLogModel.issue.ilike(f"%{search}%"))
        result = await self.session.execute(
            query.order_by(
                MaintenanceLogModel.created_at.desc(), MaintenanceLogModel.id.desc()
            )
        )
        return list(result.scalars().all())

    async def delete(self, log: MaintenanceLogModel) -> None:
        await self.session.delete(log)
        await self.session.flush()

    async def transition(
        self,
        log: MaintenanceLogModel,
        new: MaintenanceStatus,
        *,
        expected: MaintenanceStatus,
    ) -> bool:
        return await _compare_and_set(self.session, log, expected, status=new)

    async def count_open(self, vehicle_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(MaintenanceLogModel)
            .where(
                MaintenanceLogModel.vehicle_id == vehicle_id,
                MaintenanceLogModel.status != MaintenanceStatus.COMPLETED,
            )
        )
        return result.scalar() or 0

    async def total_cost(self) -> float:
        result = await self.session.execute(
            select(func.coalesce(func.sum(MaintenanceLogModel.cost), 0.0))
        )
        return float(result.scalar() or 0)

    async def cost_by_vehicle(self) -> dict[int, float]:
        result = await self.session.execute(
            select(
                MaintenanceLogModel.vehicle_id, func.sum(MaintenanceLogModel.cost)
            ).group_by(MaintenanceLogModel.vehicle_id)
        )
        return {vehicle_id: float(cost or 0) for vehicle_id, cost in result.all()}

    async def rows_since(self, since: datetime) -> list[tuple]:
        result = await self.session.execute(
            select(MaintenanceLogModel.created_at, MaintenanceLogModel.cost).where(
                MaintenanceLogModel.created_at >= since
            )
        )
        return [tuple(row) for row in result.all()]


class ExpenseRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, expense: ExpenseModel) -> ExpenseModel:
        self.session.add(expense)
        await self.session.flush()
        return expense

    async def get_by_id(self, expense_id: int) -> Optional[ExpenseModel]:
        return await self.session.get(ExpenseModel, expense_id)

    async def get_by_trip(self, trip_id: int) -> Optional[ExpenseModel]:
        result = await self.session.execute(
            select(ExpenseModel).where(ExpenseModel.trip_id == trip_id)
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        *,
        status=None,
        search: str | None = None,
        driver_id: int | None = None,
    ) -> list[ExpenseModel]:
        query = select(ExpenseModel)
        if status:
            query = query.where(ExpenseModel.status == status)
        if driver_id is not None:
            query = query.where(ExpenseModel.driver_id == driver_id)
        if search:
            query = (
                query.join(UserModel, UserModel.id == ExpenseModel.driver_id)
                .join(TripModel, TripModel.id == ExpenseModel.trip_id)
                .join(VehicleModel, VehicleModel.id == TripModel.vehicle_id)
                .where(
                    or_(
                        UserModel.full_name.ilike(f"%{search}%"),
                        VehicleModel.license_plate.ilike(f"%{search}%"),
                    )
                )
            )
        result = await self.session.execute(
            query.order_by(ExpenseModel.created_at.desc(), ExpenseModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, expense: ExpenseModel) -> None:
        await self.session.delete(expense)
        await self.session.flush()

    async def transition(self, expense: ExpenseModel, new, *, expected) -> bool:
        return await _compare_and_set(self.session, expense, expected, status=new)

    async def totals(self) -> dict[str, float]:
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(ExpenseModel.fuel_cost), 0.0),
                func.coalesce(func.sum(ExpenseModel.misc_expense), 0.0),
                func.coalesce(func.sum(ExpenseModel.distance), 0.0),
                func.count(ExpenseModel.id),
            )
        )
        fuel, misc, distance, count = result.one()
        return {
            "fuel": float(fuel),
            "misc": float(misc),
            "distance": float(distance),
            "count": int(count),
        }

    async def rollup_by_vehicle(self) -> list[tuple]:
        """(vehicle_id, plate, model, fuel, misc, distance, trips) per vehicle."""
        result = await self.session.execute(
            select(
                VehicleModel.id,
                VehicleModel.license_plate,
                VehicleModel.model,
                func.sum(ExpenseModel.fuel_cost),
                func.sum(ExpenseModel.misc_expense),
                func.sum(ExpenseModel.distance),
                func.count(ExpenseModel.id),
            )
            .select_from(ExpenseModel)
            .join(TripModel, TripModel.id == ExpenseModel.trip_id)
            .join(VehicleModel, VehicleModel.id == TripModel.vehicle_id)
            .group_by(
                VehicleModel.id, VehicleModel.license_plate, VehicleModel.model
            )
        )
        return [tuple(row) for row in result.all()]

    async def rows_since(self, since: datetime) -> list[tuple]:
        result = await self.session.execute(
            select(
                ExpenseModel.created_at,
                ExpenseModel.fuel_cost,
                ExpenseModel.misc_expense,
            ).where(ExpenseModel.created_at >= since)
        )
        return [tuple(row) for row in result.all()]
