"""
Load capacity value object.

Vehicles declare their maximum load in either kilograms or metric tons;
cargo is always quoted in kilograms.  ``Capacity`` normalises the declared
figure to kilograms so the two can be compared directly.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import CapacityUnit
from .errors import CapacityExceeded

KG_PER_TON = 1000


@dataclass(frozen=True)
class Capacity:
    amount: float
    unit: CapacityUnit = CapacityUnit.TON

    @property
    def in_kg(self) -> float:
        if CapacityUnit(self.unit) == CapacityUnit.TON:
            return self.amount * KG_PER_TON
        return self.amount

    def admits(self, cargo_kg: float) -> bool:
        """True when *cargo_kg* fits; the boundary itself is accepted."""
        return cargo_kg <= self.in_kg

    def ensure_admits(self, cargo_kg: float) -> None:
        if not self.admits(cargo_kg):
            raise CapacityExceeded(
                f"Too heavy! Cargo {cargo_kg:g} kg exceeds vehicle capacity "
                f"of {self.in_kg:g} kg"
            )
