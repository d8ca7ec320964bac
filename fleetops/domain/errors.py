"""
Domain error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer should answer with, so services can raise without knowing about
FastAPI.
"""

from __future__ import annotations


class FleetError(Exception):
    status_code: int = 400
    code: str = "FLEET_ERROR"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__


# ── 404 ───────────────────────────────────────────────────────────────


class NotFound(FleetError):
    status_code = 404
    code = "NOT_FOUND"
    resource = "Resource"

    @classmethod
    def default_message(cls) -> str:
        return f"{cls.resource} not found"


class VehicleNotFound(NotFound):
    resource = "Vehicle"


class DriverNotFound(NotFound):
    resource = "Driver"


class TripNotFound(NotFound):
    resource = "Trip"


class MaintenanceLogNotFound(NotFound):
    resource = "Maintenance log"


class ExpenseNotFound(NotFound):
    resource = "Expense"


class UserNotFound(NotFound):
    resource = "User"


# ── 400: state ────────────────────────────────────────────────────────


class InvalidState(FleetError):
    code = "INVALID_STATE"


class VehicleUnavailable(InvalidState):
    code = "VEHICLE_UNAVAILABLE"


class DriverInactive(InvalidState):
    code = "DRIVER_INACTIVE"

    @classmethod
    def default_message(cls) -> str:
        return "Selected driver is not active"


class DriverUnavailable(InvalidState):
    code = "DRIVER_UNAVAILABLE"

    @classmethod
    def default_message(cls) -> str:
        return "Driver already has an active trip"


class InvalidTransition(InvalidState):
    """Raised when a status change violates an entity's state machine."""

    code = "INVALID_TRANSITION"


# ── 400: input ────────────────────────────────────────────────────────


class ValidationError(FleetError):
    code = "VALIDATION_ERROR"


class CapacityExceeded(ValidationError):
    code = "CAPACITY_EXCEEDED"


class DuplicateEntry(ValidationError):
    code = "DUPLICATE_ENTRY"


# ── 401 / 403 ─────────────────────────────────────────────────────────


class Unauthorized(FleetError):
    status_code = 401
    code = "UNAUTHORIZED"

    @classmethod
    def default_message(cls) -> str:
        return "Not authorized"


class Forbidden(FleetError):
    status_code = 403
    code = "FORBIDDEN"

    @classmethod
    def default_message(cls) -> str:
        return "You do not have permission to perform this action"


# ── 503 ───────────────────────────────────────────────────────────────


class AnalyticsFailed(FleetError):
    """An aggregation query failed; the read is idempotent and can be retried."""

    status_code = 503
    code = "ANALYTICS_FAILED"

    @classmethod
    def default_message(cls) -> str:
        return "Analytics could not be computed, please retry"
