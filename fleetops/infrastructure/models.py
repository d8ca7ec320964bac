"""
SQLAlchemy ORM models (PostgreSQL).

Tables
------
* ``users``            -- staff accounts; drivers carry licence / duty fields
* ``vehicles``         -- fleet registry with capacity and lifecycle status
* ``trips``            -- dispatched cargo runs (vehicle + driver)
* ``maintenance_logs`` -- service records that pull a vehicle into the shop
* ``expenses``         -- trip-scoped fuel / misc costs with approval status

Indexes
-------
* **Unique** on ``users.email`` and ``vehicles.license_plate``.
* **Unique** on ``expenses.trip_id`` (one expense per trip).
* **Partial unique** on ``trips.driver_id`` over Pending / On Way trips
  (a driver holds at most one active trip).
* **B-Tree** on status and foreign-key columns used by dispatch, the
  maintenance coupler and the analytics queries.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    text,
)

from .database import Base
from fleetops.domain.enums import (
    CapacityUnit,
    DutyStatus,
    ExpenseStatus,
    LicenseCategory,
    MaintenanceStatus,
    Role,
    TripStatus,
    VehicleStatus,
    VehicleType,
)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(Role), nullable=False)
    phone = Column(String(40), nullable=True)
    department = Column(String(120), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Driver attributes (only meaningful for role=driver)
    license_number = Column(String(60), default="", nullable=False)
    license_category = Column(Enum(LicenseCategory), nullable=True)
    license_expiry = Column(DateTime(timezone=True), nullable=True)
    duty_status = Column(
        Enum(DutyStatus), default=DutyStatus.ON_DUTY, nullable=False
    )
    safety_score = Column(Float, default=100.0, nullable=False)
    complaints = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_active", "is_active"),
    )


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(20), unique=True, nullable=False)
    model = Column(String(120), nullable=False)
    type = Column(Enum(VehicleType), nullable=False)
    max_capacity = Column(Float, nullable=False)
    capacity_unit = Column(
        Enum(CapacityUnit), default=CapacityUnit.TON, nullable=False
    )
    odometer = Column(Float, default=0.0, nullable=False)
    status = Column(
        Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False
    )
    assigned_driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_vehicles_status", "status"),
        Index("idx_vehicles_type", "type"),
    )


# Enum columns store member names.
ACTIVE_TRIP_CLAUSE = text("status IN ('PENDING', 'ON_WAY')")


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(
        Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    cargo_weight = Column(Float, nullable=False)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    estimated_fuel_cost = Column(Float, default=0.0, nullable=False)
    status = Column(Enum(TripStatus), default=TripStatus.PENDING, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_vehicle", "vehicle_id"),
        Index("idx_trips_driver", "driver_id"),
        Index("idx_trips_created", "created_at"),
        Index(
            "uq_trips_driver_active",
            "driver_id",
            unique=True,
            postgresql_where=ACTIVE_TRIP_CLAUSE,
            sqlite_where=ACTIVE_TRIP_CLAUSE,
        ),
    )


class MaintenanceLogModel(Base):
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(
        Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    issue = Column(String(500), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    cost = Column(Float, default=0.0, nullable=False)
    status = Column(
        Enum(MaintenanceStatus), default=MaintenanceStatus.NEW, nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_maintenance_vehicle", "vehicle_id"),
        Index("idx_maintenance_status", "status"),
    )


class ExpenseModel(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(
        Integer,
        ForeignKey("trips.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    distance = Column(Float, default=0.0, nullable=False)
    fuel_cost = Column(Float, nullable=False)
    misc_expense = Column(Float, default=0.0, nullable=False)
    status = Column(
        Enum(ExpenseStatus), default=ExpenseStatus.PENDING, nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_expenses_status", "status"),
        Index("idx_expenses_driver", "driver_id"),
    )
