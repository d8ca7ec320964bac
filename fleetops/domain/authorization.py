"""
Role-based authorization policy.

A single table maps each role to the actions it may perform.  Route
dependencies ask :func:`is_allowed`; handlers never carry their own role
lists.  ``admin`` is allowed everything.
"""

from __future__ import annotations

import enum

from .enums import Role
from .errors import Forbidden


class Action(str, enum.Enum):
    VEHICLE_READ = "vehicle:read"
    VEHICLE_WRITE = "vehicle:write"
    TRIP_READ = "trip:read"
    TRIP_DISPATCH = "trip:dispatch"
    TRIP_UPDATE = "trip:update"
    MAINTENANCE_READ = "maintenance:read"
    MAINTENANCE_WRITE = "maintenance:write"
    EXPENSE_READ = "expense:read"
    EXPENSE_WRITE = "expense:write"
    EXPENSE_APPROVE = "expense:approve"
    DRIVER_READ = "driver:read"
    DRIVER_WRITE = "driver:write"
    ANALYTICS_READ = "analytics:read"
    PERFORMANCE_READ = "performance:read"
    USER_MANAGE = "user:manage"


_READ_FLEET = {Action.VEHICLE_READ, Action.TRIP_READ, Action.MAINTENANCE_READ}

POLICY: dict[Role, frozenset[Action]] = {
    Role.FLEET_MANAGER: frozenset(set(Action) - {Action.USER_MANAGE}),
    Role.DISPATCHER: frozenset(
        _READ_FLEET
        | {
            Action.TRIP_DISPATCH,
            Action.TRIP_UPDATE,
            Action.DRIVER_READ,
            Action.EXPENSE_READ,
            Action.ANALYTICS_READ,
        }
    ),
    Role.SAFETY_OFFICER: frozenset(
        _READ_FLEET
        | {Action.DRIVER_READ, Action.DRIVER_WRITE, Action.PERFORMANCE_READ}
    ),
    Role.FINANCIAL_ANALYST: frozenset(
        _READ_FLEET
        | {
            Action.MAINTENANCE_WRITE,
            Action.EXPENSE_READ,
            Action.EXPENSE_WRITE,
            Action.EXPENSE_APPROVE,
            Action.ANALYTICS_READ,
        }
    ),
    Role.DRIVER: frozenset(
        {Action.TRIP_READ, Action.EXPENSE_READ, Action.EXPENSE_WRITE}
    ),
}


def is_allowed(role: Role | str, action: Action) -> bool:
    role = Role(role)
    if role == Role.ADMIN:
        return True
    return action in POLICY.get(role, frozenset())


def ensure_allowed(role: Role | str, action: Action) -> None:
    if not is_allowed(role, action):
        raise Forbidden(
            f"Role '{Role(role).value}' is not authorized to perform {action.value}"
        )
