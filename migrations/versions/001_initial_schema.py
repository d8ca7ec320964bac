"""Initial schema: users, vehicles, trips, maintenance logs and expenses.

Revision ID: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

ENUM_TYPES = (
    "role",
    "licensecategory",
    "dutystatus",
    "vehicletype",
    "capacityunit",
    "vehiclestatus",
    "tripstatus",
    "maintenancestatus",
    "expensestatus",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum(
                "FLEET_MANAGER",
                "DISPATCHER",
                "SAFETY_OFFICER",
                "FINANCIAL_ANALYST",
                "DRIVER",
                "ADMIN",
                name="role",
            ),
            nullable=False,
        ),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("department", sa.String(120), nullable=True),
        sa.Column("is_active", sa.Boolean, default=True, nullable=False),
        sa.Column("license_number", sa.String(60), default="", nullable=False),
        sa.Column(
            "license_category",
            sa.Enum(
                "TRUCK", "VAN", "MINI", "BIKE", "TRAILER", "ANY",
                name="licensecategory",
            ),
            nullable=True,
        ),
        sa.Column("license_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "duty_status",
            sa.Enum(
                "ON_DUTY", "OFF_DUTY", "ON_BREAK", "SUSPENDED", name="dutystatus"
            ),
            default="ON_DUTY",
            nullable=False,
        ),
        sa.Column("safety_score", sa.Float, default=100.0, nullable=False),
        sa.Column("complaints", sa.Integer, default=0, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_active", "users", ["is_active"])

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("license_plate", sa.String(20), unique=True, nullable=False),
        sa.Column("model", sa.String(120), nullable=False),
        sa.Column(
            "type",
            sa.Enum("TRUCK", "VAN", "MINI", "BIKE", "TRAILER", name="vehicletype"),
            nullable=False,
        ),
        sa.Column("max_capacity", sa.Float, nullable=False),
        sa.Column(
            "capacity_unit",
            sa.Enum("KG", "TON", name="capacityunit"),
            default="TON",
            nullable=False,
        ),
        sa.Column("odometer", sa.Float, default=0.0, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "AVAILABLE", "ON_TRIP", "IN_SHOP", "RETIRED", name="vehiclestatus"
            ),
            default="AVAILABLE",
            nullable=False,
        ),
        sa.Column(
            "assigned_driver_id",
            sa.Integer,
            sa.ForeignKey("users.id"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])
    op.create_index("idx_vehicles_type", "vehicles", ["type"])

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id",
            sa.Integer,
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("cargo_weight", sa.Float, nullable=False),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("estimated_fuel_cost", sa.Float, default=0.0, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "ON_WAY", "DELIVERED", "CANCELLED", name="tripstatus"
            ),
            default="PENDING",
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_vehicle", "trips", ["vehicle_id"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])
    op.create_index("idx_trips_created", "trips", ["created_at"])
    op.create_index(
        "uq_trips_driver_active",
        "trips",
        ["driver_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING', 'ON_WAY')"),
    )

    # ── maintenance_logs ──────────────────────────────────────────────
    op.create_table(
        "maintenance_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id",
            sa.Integer,
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("issue", sa.String(500), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cost", sa.Float, default=0.0, nullable=False),
        sa.Column(
            "status",
            sa.Enum("NEW", "IN_PROGRESS", "COMPLETED", name="maintenancestatus"),
            default="NEW",
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("idx_maintenance_vehicle", "maintenance_logs", ["vehicle_id"])
    op.create_index("idx_maintenance_status", "maintenance_logs", ["status"])

    # ── expenses ──────────────────────────────────────────────────────
    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer,
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("distance", sa.Float, default=0.0, nullable=False),
        sa.Column("fuel_cost", sa.Float, nullable=False),
        sa.Column("misc_expense", sa.Float, default=0.0, nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "APPROVED", "DONE", name="expensestatus"),
            default="PENDING",
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("idx_expenses_status", "expenses", ["status"])
    op.create_index("idx_expenses_driver", "expenses", ["driver_id"])


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("maintenance_logs")
    op.drop_table("trips")
    op.drop_table("vehicles")
    op.drop_table("users")
    for name in ENUM_TYPES:
        op.execute(f"DROP TYPE IF EXISTS {name}")
