from __future__ import annotations
from typing import Iterable

from sim.armies import ArmyComposition
from sim.terrain import Terrain

INFANTRY_POWER = 0.5
CAVALRY_POWER = 1.0
ARTILLERY_POWER = 2.0

ROLL_MIN = 0.8
ROLL_MAX = 1.2

DAMAGE_PER_CASUALTY = 20
# Floor for small armies: a hit that rounds to no casualties still kills a few men.
MIN_DAMAGE = 5


def composition_damage(comp: ArmyComposition, terrain: Terrain) -> float:
    return (
        comp.infantry * INFANTRY_POWER
        + comp.cavalry * CAVALRY_POWER * terrain.cavalry_modifier
        + comp.artillery * ARTILLERY_POWER * terrain.artillery_modifier
    )


def raw_damage(comps: Iterable[ArmyComposition], terrain: Terrain) -> float:
    return sum(composition_damage(c, terrain) for c in comps)


def attacker_damage(raw: float, roll: float, terrain: Terrain) -> int:
    return int(raw * roll / terrain.defender_bonus)


def defender_damage(raw: float, roll: float, terrain: Terrain) -> int:
    return int(raw * roll * terrain.defender_bonus)


def split_damage(damage: int, army_count: int) -> int:
    """
    Even share of a side's damage for each opposing army; the remainder is lost.
    Every army takes at least 1, so a round always costs both sides something.
    """
    if army_count <= 0:
        return 0
    return max(1, max(0, damage) // army_count)


def casualties_for(damage: int, army_size: int) -> int:
    if damage <= 0 or army_size <= 0:
        return 0
    casualties = damage // DAMAGE_PER_CASUALTY
    if casualties == 0:
        casualties = min(damage, MIN_DAMAGE)
    return min(casualties, army_size)
