from __future__ import annotations

from enum import Enum, auto


class Terrain(Enum):
    PLAINS = auto()
    HILLS = auto()
    MOUNTAINS = auto()
    FOREST = auto()
    DESERT = auto()
    WASTELAND = auto()
    SEA = auto()

    @property
    def is_passable(self) -> bool:
        return self not in (Terrain.SEA, Terrain.WASTELAND)

    @property
    def is_ownable(self) -> bool:
        return self not in (Terrain.SEA, Terrain.WASTELAND)

    @property
    def base_income(self) -> float:
        return TERRAIN_STATS[self][0]

    @property
    def defender_bonus(self) -> float:
        """Multiplier >= 1 favours the defender."""
        return TERRAIN_STATS[self][1]

    @property
    def cavalry_modifier(self) -> float:
        return TERRAIN_STATS[self][2]

    @property
    def artillery_modifier(self) -> float:
        return TERRAIN_STATS[self][3]

    @property
    def symbol(self) -> str:
        return TERRAIN_SYMBOLS[self]

    def __str__(self) -> str:
        return self.name.capitalize()


# terrain -> (base income, defender bonus, cavalry modifier, artillery modifier)
TERRAIN_STATS = {
    Terrain.PLAINS: (0.2, 1.0, 1.2, 1.0),
    Terrain.HILLS: (0.16, 1.25, 0.8, 1.2),
    Terrain.MOUNTAINS: (0.1, 1.5, 0.5, 0.7),
    Terrain.FOREST: (0.14, 1.2, 0.6, 0.6),
    Terrain.DESERT: (0.5, 0.9, 1.1, 1.1),
    Terrain.WASTELAND: (0.0, 1.0, 0.9, 0.9),
    Terrain.SEA: (0.0, 1.0, 0.0, 0.0),
}

TERRAIN_SYMBOLS = {
    Terrain.PLAINS: "..",
    Terrain.HILLS: "hh",
    Terrain.MOUNTAINS: "^^",
    Terrain.FOREST: "ff",
    Terrain.DESERT: "dd",
    Terrain.WASTELAND: "xx",
    Terrain.SEA: "~~",
}
