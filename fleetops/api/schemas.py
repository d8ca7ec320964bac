"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

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


# ── Auth ──────────────────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: Role
    phone: Optional[str] = None
    department: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: Role
    phone: Optional[str] = None
    department: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserActiveRequest(BaseModel):
    is_active: bool


# ── Vehicles ──────────────────────────────────────────────────────────


class VehicleCreateRequest(BaseModel):
    license_plate: str = Field(..., min_length=1, max_length=20)
    model: str = Field(..., min_length=1, max_length=120)
    type: VehicleType
    max_capacity: float = Field(..., ge=0)
    capacity_unit: CapacityUnit = CapacityUnit.TON
    odometer: float = Field(0, ge=0)


class VehicleUpdateRequest(BaseModel):
    """Registry attributes only; status changes go through /status."""

    model: Optional[str] = Field(None, min_length=1, max_length=120)
    type: Optional[VehicleType] = None
    max_capacity: Optional[float] = Field(None, ge=0)
    capacity_unit: Optional[CapacityUnit] = None
    odometer: Optional[float] = Field(None, ge=0)


class VehicleStatusRequest(BaseModel):
    status: VehicleStatus


class VehicleResponse(BaseModel):
    id: int
    license_plate: str
    model: str
    type: VehicleType
    max_capacity: float
    capacity_unit: CapacityUnit
    odometer: float
    status: VehicleStatus
    assigned_driver_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleStatsResponse(BaseModel):
    active_fleet: int
    maintenance_alerts: int
    available: int
    total: int
    utilization: int
    pending_cargo: int


# ── Trips ─────────────────────────────────────────────────────────────


class TripCreateRequest(BaseModel):
    vehicle_id: int
    driver_id: int
    cargo_weight: float = Field(..., ge=0, description="Cargo weight in kg.")
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    estimated_fuel_cost: float = Field(0, ge=0)


class TripStatusRequest(BaseModel):
    status: TripStatus


class TripResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: int
    cargo_weight: float
    origin: str
    destination: str
    estimated_fuel_cost: float
    status: TripStatus
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Maintenance ───────────────────────────────────────────────────────


class MaintenanceCreateRequest(BaseModel):
    vehicle_id: int
    issue: str = Field(..., min_length=1, max_length=500)
    date: datetime
    cost: float = Field(0, ge=0)


class MaintenanceUpdateRequest(BaseModel):
    issue: Optional[str] = Field(None, min_length=1, max_length=500)
    date: Optional[datetime] = None
    cost: Optional[float] = Field(None, ge=0)


class MaintenanceStatusRequest(BaseModel):
    status: MaintenanceStatus


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    issue: str
    date: datetime
    cost: float
    status: MaintenanceStatus
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Expenses ──────────────────────────────────────────────────────────


class ExpenseCreateRequest(BaseModel):
    trip_id: int
    distance: float = Field(0, ge=0)
    fuel_cost: float = Field(..., ge=0)
    misc_expense: float = Field(0, ge=0)


class ExpenseUpdateRequest(BaseModel):
    distance: Optional[float] = Field(None, ge=0)
    fuel_cost: Optional[float] = Field(None, ge=0)
    misc_expense: Optional[float] = Field(None, ge=0)


class ExpenseStatusRequest(BaseModel):
    status: ExpenseStatus


class ExpenseResponse(BaseModel):
    id: int
    trip_id: int
    driver_id: int
    distance: float
    fuel_cost: float
    misc_expense: float
    status: ExpenseStatus
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Drivers ───────────────────────────────────────────────────────────


class DriverCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    phone: Optional[str] = None
    department: Optional[str] = None
    license_number: str = ""
    license_category: Optional[LicenseCategory] = None
    license_expiry: Optional[datetime] = None
    duty_status: DutyStatus = DutyStatus.ON_DUTY
    safety_score: float = 100
    complaints: int = Field(0, ge=0)


class DriverUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=120)
    phone: Optional[str] = None
    department: Optional[str] = None
    license_number: Optional[str] = None
    license_category: Optional[LicenseCategory] = None
    license_expiry: Optional[datetime] = None
    duty_status: Optional[DutyStatus] = None
    safety_score: Optional[float] = Field(
        None, description="Out-of-range values are clamped to 0-100."
    )
    complaints: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DriverResponse(BaseModel):
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    license_number: str
    license_category: Optional[LicenseCategory] = None
    license_expiry: Optional[datetime] = None
    duty_status: DutyStatus
    safety_score: float
    complaints: int
    is_active: bool

    model_config = {"from_attributes": True}


class DriverPerformanceResponse(DriverResponse):
    total_trips: int
    completed_trips: int
    completion_rate: int
    license_expired: bool


class PerformanceSummaryResponse(BaseModel):
    total_drivers: int
    on_duty: int
    off_duty: int
    on_break: int
    suspended: int
    expired_licenses: int
    expiring_soon: int
    avg_safety_score: int


# ── Analytics ─────────────────────────────────────────────────────────


class FleetBreakdown(BaseModel):
    total: int
    available: int
    on_trip: int
    in_shop: int
    retired: int
    utilization: int


class TripBreakdown(BaseModel):
    total: int
    pending: int
    on_way: int
    delivered: int
    cancelled: int
    completion_rate: int


class FinancialTotals(BaseModel):
    total_fuel: float
    total_misc: float
    total_maintenance: float
    total_operational_cost: float
    total_distance: float
    avg_fuel_per_trip: int
    revenue: float
    roi_percent: float


class VehicleCostResponse(BaseModel):
    vehicle_id: int
    license_plate: str
    model: str
    fuel_cost: float
    misc_cost: float
    distance: float
    trips: int
    maintenance_cost: float
    total_cost: float
    total_with_maintenance: float
    fuel_efficiency: float

    model_config = {"from_attributes": True}


class MonthSummaryResponse(BaseModel):
    label: str
    year: int
    month: int
    trips: int
    delivered: int
    revenue: float
    fuel_cost: float
    misc_cost: float
    maintenance_cost: float
    net_profit: float

    model_config = {"from_attributes": True}


class DeadStockResponse(BaseModel):
    id: int
    license_plate: str
    model: str
    type: VehicleType
    status: VehicleStatus
    odometer: float

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    fleet: FleetBreakdown
    trips: TripBreakdown
    financials: FinancialTotals
    per_vehicle_costs: list[VehicleCostResponse]
    costliest_vehicles: list[VehicleCostResponse]
    dead_stock: list[DeadStockResponse]


# ── Misc ──────────────────────────────────────────────────────────────


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
