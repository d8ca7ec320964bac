"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    FLEET_MANAGER = "fleet_manager"
    DISPATCHER = "dispatcher"
    SAFETY_OFFICER = "safety_officer"
    FINANCIAL_ANALYST = "financial_analyst"
    DRIVER = "driver"
    ADMIN = "admin"


class VehicleType(str, enum.Enum):
    TRUCK = "Truck"
    VAN = "Van"
    MINI = "Mini"
    BIKE = "Bike"
    TRAILER = "Trailer"


class CapacityUnit(str, enum.Enum):
    KG = "kg"
    TON = "ton"


class LicenseCategory(str, enum.Enum):
    TRUCK = "Truck"
    VAN = "Van"
    MINI = "Mini"
    BIKE = "Bike"
    TRAILER = "Trailer"
    ANY = "Any"


class DutyStatus(str, enum.Enum):
    ON_DUTY = "On Duty"
    OFF_DUTY = "Off Duty"
    ON_BREAK = "On Break"
    SUSPENDED = "Suspended"


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "Available"
    ON_TRIP = "On Trip"
    IN_SHOP = "In Shop"
    RETIRED = "Retired"


class TripStatus(str, enum.Enum):
    PENDING = "Pending"
    ON_WAY = "On Way"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class MaintenanceStatus(str, enum.Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ExpenseStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DONE = "Done"


# State machines: map current status -> set of valid next statuses

VEHICLE_TRANSITIONS: dict[VehicleStatus, set[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: {
        VehicleStatus.ON_TRIP,
        VehicleStatus.IN_SHOP,
        VehicleStatus.RETIRED,
    },
    VehicleStatus.ON_TRIP: {VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP},
    VehicleStatus.IN_SHOP: {VehicleStatus.AVAILABLE, VehicleStatus.RETIRED},
    VehicleStatus.RETIRED: {VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP},
}

# Moves a fleet manager may make by hand; On Trip and In Shop are owned by
# dispatch and the maintenance workflow.
MANUAL_VEHICLE_TRANSITIONS: dict[VehicleStatus, set[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: {VehicleStatus.RETIRED},
    VehicleStatus.ON_TRIP: set(),
    VehicleStatus.IN_SHOP: {VehicleStatus.RETIRED},
    VehicleStatus.RETIRED: {VehicleStatus.AVAILABLE},
}

TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.PENDING: {TripStatus.ON_WAY, TripStatus.CANCELLED},
    TripStatus.ON_WAY: {TripStatus.DELIVERED, TripStatus.CANCELLED},
    TripStatus.DELIVERED: set(),
    TripStatus.CANCELLED: set(),
}

MAINTENANCE_TRANSITIONS: dict[MaintenanceStatus, set[MaintenanceStatus]] = {
    MaintenanceStatus.NEW: {
        MaintenanceStatus.IN_PROGRESS,
        MaintenanceStatus.COMPLETED,
    },
    MaintenanceStatus.IN_PROGRESS: {MaintenanceStatus.COMPLETED},
    MaintenanceStatus.COMPLETED: set(),
}

EXPENSE_TRANSITIONS: dict[ExpenseStatus, set[ExpenseStatus]] = {
    ExpenseStatus.PENDING: {ExpenseStatus.APPROVED},
    ExpenseStatus.APPROVED: {ExpenseStatus.DONE},
    ExpenseStatus.DONE: set(),
}
