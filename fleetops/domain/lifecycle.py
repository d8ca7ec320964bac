"""
Status state machines.

Patterns used
-------------
- **State Pattern**: each entity lifecycle is a ``StateMachine`` built from
  a transition table in :mod:`fleetops.domain.enums`. Services call
  ``ensure`` before writing a new status and never write a status the
  table does not allow.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .enums import (
    EXPENSE_TRANSITIONS,
    MAINTENANCE_TRANSITIONS,
    MANUAL_VEHICLE_TRANSITIONS,
    TRIP_TRANSITIONS,
    VEHICLE_TRANSITIONS,
)
from .errors import InvalidTransition


@dataclass(frozen=True)
class StateMachine:
    name: str
    transitions: dict

    def allowed(self, current: enum.Enum) -> set:
        return self.transitions.get(current, set())

    def can_transition(self, current: enum.Enum, new: enum.Enum) -> bool:
        return new in self.allowed(current)

    def is_terminal(self, status: enum.Enum) -> bool:
        return not self.allowed(status)

    def ensure(self, current: enum.Enum, new: enum.Enum) -> None:
        """Raise ``InvalidTransition`` unless *current* -> *new* is legal."""
        if self.can_transition(current, new):
            return
        if self.is_terminal(current):
            raise InvalidTransition(
                f"{self.name} is {current.value} and its status cannot change"
            )
        raise InvalidTransition(
            f"Cannot move {self.name.lower()} from {current.value} to {new.value}"
        )


VEHICLE_LIFECYCLE = StateMachine("Vehicle", VEHICLE_TRANSITIONS)
VEHICLE_MANUAL_LIFECYCLE = StateMachine("Vehicle", MANUAL_VEHICLE_TRANSITIONS)
TRIP_LIFECYCLE = StateMachine("Trip", TRIP_TRANSITIONS)
MAINTENANCE_LIFECYCLE = StateMachine("Maintenance log", MAINTENANCE_TRANSITIONS)
EXPENSE_LIFECYCLE = StateMachine("Expense", EXPENSE_TRANSITIONS)
