# sim/armies.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sim.hexgrid import Hex

REGIMENT_SIZE = 1000


class UnitType(Enum):
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    ARTILLERY = "artillery"

    @property
    def cost(self) -> float:
        return UNIT_COSTS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, token: str) -> Optional["UnitType"]:
        t = token.strip().lower()
        for ut in cls:
            if ut.value == t or ut.value[:3] == t:
                return ut
        return None


UNIT_COSTS = {
    UnitType.INFANTRY: 10.0,
    UnitType.CAVALRY: 25.0,
    UnitType.ARTILLERY: 30.0,
}


@dataclass
class ArmyComposition:
    infantry: int = 0
    cavalry: int = 0
    artillery: int = 0

    @property
    def total_size(self) -> int:
        return self.infantry + self.cavalry + self.artillery

    @property
    def is_empty(self) -> bool:
        return self.total_size <= 0

    def add(self, other: "ArmyComposition") -> None:
        self.infantry += other.infantry
        self.cavalry += other.cavalry
        self.artillery += other.artillery

    def add_unit(self, unit_type: UnitType) -> None:
        """One recruitment: a full regiment of the given type."""
        if unit_type == UnitType.INFANTRY:
            self.infantry += REGIMENT_SIZE
        elif unit_type == UnitType.CAVALRY:
            self.cavalry += REGIMENT_SIZE
        else:
            self.artillery += REGIMENT_SIZE

    def remove_casualties(self, casualties: int) -> int:
        """
        Kill up to `casualties` men, infantry first, then cavalry, then artillery.
        Returns how many were actually removed.
        """
        remaining = max(0, min(int(casualties), self.total_size))
        removed = remaining

        lost = min(self.infantry, remaining)
        self.infantry -= lost
        remaining -= lost

        lost = min(self.cavalry, remaining)
        self.cavalry -= lost
        remaining -= lost

        lost = min(self.artillery, remaining)
        self.artillery -= lost

        return removed

    def copy(self) -> "ArmyComposition":
        return ArmyComposition(self.infantry, self.cavalry, self.artillery)

    def __str__(self) -> str:
        return f"{self.infantry} inf / {self.cavalry} cav / {self.artillery} art"


@dataclass
class Army:
    army_id: str
    owner: str
    location: Hex
    composition: ArmyComposition = field(default_factory=ArmyComposition)
    path: List[Hex] = field(default_factory=list)
    battle_id: Optional[str] = None

    @property
    def in_battle(self) -> bool:
        return self.battle_id is not None

    @property
    def is_moving(self) -> bool:
        return bool(self.path)

    @property
    def size(self) -> int:
        return self.composition.total_size

    def __repr__(self):
        return f"{self.army_id}({self.owner}) at {self.location}"
