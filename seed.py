"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - the bootstrap admin account (``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``)
  - 4 staff accounts, one per operational role
  - 5 drivers with mixed duty status and licence expiry
  - 8 vehicles across every type
  - 6 trips (mix of Pending, On Way, Delivered, Cancelled)
  - 3 maintenance logs and 3 trip expenses
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from fleetops.config import settings
from fleetops.domain.enums import (
    CapacityUnit,
    DutyStatus,
    ExpenseStatus,
    LicenseCategory,
    MaintenanceStatus,
    Role,
    TripStatus,
    VehicleType,
)
from fleetops.infrastructure.database import async_session_factory, engine
from fleetops.infrastructure.models import UserModel
from fleetops.infrastructure.repositories import UserRepository
from fleetops.infrastructure.security import hash_password
from fleetops.services import auth, dispatch, drivers, expenses, maintenance, vehicles

DEMO_PASSWORD = "fleetops123"

STAFF = [
    {"full_name": "Maya Fernandes", "email": "manager@example.com", "role": Role.FLEET_MANAGER},
    {"full_name": "Dev Malhotra", "email": "dispatch@example.com", "role": Role.DISPATCHER},
    {"full_name": "Isha Rao", "email": "safety@example.com", "role": Role.SAFETY_OFFICER},
    {"full_name": "Nikhil Bose", "email": "finance@example.com", "role": Role.FINANCIAL_ANALYST},
]

DRIVERS = [
    {"full_name": "Ravi Kumar", "email": "ravi@example.com", "category": LicenseCategory.TRUCK, "expiry_days": 400, "duty": DutyStatus.ON_DUTY, "score": 92},
    {"full_name": "Sunita Yadav", "email": "sunita@example.com", "category": LicenseCategory.VAN, "expiry_days": 20, "duty": DutyStatus.ON_DUTY, "score": 88},
    {"full_name": "Imran Sheikh", "email": "imran@example.com", "category": LicenseCategory.TRAILER, "expiry_days": 180, "duty": DutyStatus.ON_BREAK, "score": 75},
    {"full_name": "Pooja Desai", "email": "pooja@example.com", "category": LicenseCategory.MINI, "expiry_days": -15, "duty": DutyStatus.OFF_DUTY, "score": 64},
    {"full_name": "Tenzin Dorje", "email": "tenzin@example.com", "category": LicenseCategory.ANY, "expiry_days": 700, "duty": DutyStatus.ON_DUTY, "score": 97},
]

VEHICLES = [
    {"license_plate": "MH-12-AB-1001", "model": "Tata Prima 4028", "type": VehicleType.TRUCK, "max_capacity": 28, "capacity_unit": CapacityUnit.TON, "odometer": 84210},
    {"license_plate": "MH-12-AB-1002", "model": "Ashok Leyland Ecomet", "type": VehicleType.TRUCK, "max_capacity": 12, "capacity_unit": CapacityUnit.TON, "odometer": 45120},
    {"license_plate": "MH-14-CD-2001", "model": "Force Traveller Cargo", "type": VehicleType.VAN, "max_capacity": 2, "capacity_unit": CapacityUnit.TON, "odometer": 30500},
    {"license_plate": "MH-14-CD-2002", "model": "Maruti Eeco Cargo", "type": VehicleType.VAN, "max_capacity": 700, "capacity_unit": CapacityUnit.KG, "odometer": 18750},
    {"license_plate": "MH-01-EF-3001", "model": "Tata Ace Gold", "type": VehicleType.MINI, "max_capacity": 750, "capacity_unit": CapacityUnit.KG, "odometer": 22040},
    {"license_plate": "MH-01-EF-3002", "model": "Mahindra Jeeto", "type": VehicleType.MINI, "max_capacity": 600, "capacity_unit": CapacityUnit.KG, "odometer": 9400},
    {"license_plate": "MH-02-GH-4001", "model": "Hero Splendor Courier", "type": VehicleType.BIKE, "max_capacity": 40, "capacity_unit": CapacityUnit.KG, "odometer": 12800},
    {"license_plate": "MH-04-IJ-5001", "model": "BharatBenz 5528T", "type": VehicleType.TRAILER, "max_capacity": 40, "capacity_unit": CapacityUnit.TON, "odometer": 120300},
]

# (vehicle index, driver index, cargo kg, origin, destination, est. fuel, final status)
TRIPS = [
    (0, 0, 18000, "Pune", "Mumbai JNPT", 14500, TripStatus.DELIVERED),
    (2, 1, 1800, "Thane", "Nashik", 4200, TripStatus.DELIVERED),
    (4, 4, 500, "Andheri", "Vashi", 900, TripStatus.ON_WAY),
    (7, 2, 32000, "Nagpur", "Hyderabad", 38000, TripStatus.PENDING),
    (3, 1, 650, "Dadar", "Kalyan", 600, TripStatus.CANCELLED),
    (1, 0, 9000, "Aurangabad", "Pune", 8800, TripStatus.DELIVERED),
]

# (trip index, distance km, fuel cost, misc, final status)
EXPENSES = [
    (0, 150, 12800, 900, ExpenseStatus.DONE),
    (1, 170, 3900, 250, ExpenseStatus.APPROVED),
    (5, 235, 8100, 400, ExpenseStatus.PENDING),
]

# (vehicle index, issue, cost, final status)
MAINTENANCE = [
    (5, "Clutch plate replacement", 6500, MaintenanceStatus.IN_PROGRESS),
    (6, "Chain and sprocket kit", 2200, MaintenanceStatus.NEW),
    (3, "Brake pad service", 3100, MaintenanceStatus.COMPLETED),
]


async def _advance_trip(session, trip_id: int, target: TripStatus) -> None:
    if target == TripStatus.PENDING:
        return
    if target == TripStatus.DELIVERED:
        await dispatch.advance_trip(session, trip_id, TripStatus.ON_WAY)
    await dispatch.advance_trip(session, trip_id, target)


async def _advance_expense(session, expense_id: int, target: ExpenseStatus) -> None:
    for step in (ExpenseStatus.APPROVED, ExpenseStatus.DONE):
        if target == ExpenseStatus.PENDING:
            return
        await expenses.change_expense_status(session, expense_id, step)
        if step == target:
            return


async def seed():
    now = datetime.now(timezone.utc)
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Accounts ──────────────────────────────────────────────────
        admin = await UserRepository(session).create(
            UserModel(
                full_name="FleetOps Admin",
                email=settings.admin_email.lower(),
                password_hash=hash_password(settings.admin_password),
                role=Role.ADMIN,
                is_active=True,
            )
        )
        for s in STAFF:
            await auth.register_user(session, password=DEMO_PASSWORD, **s)
        print(f"  Created admin ({admin.email}) and {len(STAFF)} staff accounts")

        driver_models = []
        for d in DRIVERS:
            driver = await drivers.create_driver(
                session,
                full_name=d["full_name"],
                email=d["email"],
                password=DEMO_PASSWORD,
                license_number=f"DL-{len(driver_models) + 1:04d}",
                license_category=d["category"],
                license_expiry=now + timedelta(days=d["expiry_days"]),
                duty_status=d["duty"],
                safety_score=d["score"],
                now=now,
            )
            driver_models.append(driver)
        print(f"  Created {len(driver_models)} drivers")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicle_models = []
        for v in VEHICLES:
            vehicle_models.append(
                await vehicles.register_vehicle(session, **v, now=now)
            )
        print(f"  Created {len(vehicle_models)} vehicles")

        # ── Trips ─────────────────────────────────────────────────────
        trip_models = []
        for days_ago, (v, d, cargo, origin, dest, fuel, status) in enumerate(
            TRIPS
        ):
            trip = await dispatch.dispatch_trip(
                session,
                vehicle_id=vehicle_models[v].id,
                driver_id=driver_models[d].id,
                cargo_weight=cargo,
                origin=origin,
                destination=dest,
                estimated_fuel_cost=fuel,
                now=now - timedelta(days=days_ago * 9),
            )
            await _advance_trip(session, trip.id, status)
            trip_models.append(trip)
        print(f"  Created {len(trip_models)} trips")

        # ── Expenses ──────────────────────────────────────────────────
        for t, distance, fuel, misc, status in EXPENSES:
            expense = await expenses.record_expense(
                session,
                trip_id=trip_models[t].id,
                distance=distance,
                fuel_cost=fuel,
                misc_expense=misc,
                actor=admin,
                now=now,
            )
            await _advance_expense(session, expense.id, status)
        print(f"  Created {len(EXPENSES)} expenses")

        # ── Maintenance ───────────────────────────────────────────────
        for v, issue, cost, status in MAINTENANCE:
            log = await maintenance.open_maintenance(
                session,
                vehicle_id=vehicle_models[v].id,
                issue=issue,
                date=now - timedelta(days=3),
                cost=cost,
                now=now,
            )
            if status != MaintenanceStatus.NEW:
                await maintenance.change_maintenance_status(session, log.id, status)
        print(f"  Created {len(MAINTENANCE)} maintenance logs")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
