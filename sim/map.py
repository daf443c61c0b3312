from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sim.hexgrid import Hex, hex_distance
from sim.terrain import Terrain

logger = logging.getLogger(__name__)

MAP_RADIUS = 8


@dataclass
class SiegeProgress:
    besieger: str
    progress: int = 1


@dataclass
class Province:
    province_id: str
    name: str
    hex: Hex
    terrain: Terrain
    owner: Optional[str] = None
    occupier: Optional[str] = None
    siege: Optional[SiegeProgress] = None

    @property
    def is_passable(self) -> bool:
        return self.terrain.is_passable

    @property
    def is_ownable(self) -> bool:
        return self.terrain.is_ownable

    @property
    def is_occupied(self) -> bool:
        return self.occupier is not None

    @property
    def is_besieged(self) -> bool:
        return self.siege is not None

    def __repr__(self):
        return f"{self.name}{self.hex}"


@dataclass
class GameMap:
    """Primary store of provinces, keyed by province id."""

    provinces: Dict[str, Province] = field(default_factory=dict)
    _by_hex: Dict[Hex, str] = field(default_factory=dict, repr=False)

    def add_province(self, province: Province) -> None:
        self.provinces[province.province_id] = province
        self._by_hex[province.hex] = province.province_id

    def get_province(self, province_id: str) -> Optional[Province]:
        return self.provinces.get(province_id)

    def province_id_at(self, h: Hex) -> Optional[str]:
        return self._by_hex.get(h)

    def province_at(self, h: Hex) -> Optional[Province]:
        pid = self._by_hex.get(h)
        return None if pid is None else self.provinces.get(pid)

    def hexes(self) -> List[Hex]:
        return [p.hex for p in self.provinces.values()]

    def in_bounds(self, h: Hex) -> bool:
        return h in self._by_hex

    def is_passable(self, h: Hex) -> bool:
        p = self.province_at(h)
        return p is not None and p.is_passable

    def neighbors_passable(self, h: Hex) -> Iterable[Hex]:
        for n in h.neighbors():
            if self.is_passable(n):
                yield n

    def provinces_owned_by(self, country: str) -> List[Province]:
        return [p for p in self.provinces.values() if p.owner == country]

    def provinces_occupied_by(self, country: str) -> List[Province]:
        return [p for p in self.provinces.values() if p.occupier == country]

    def besieged_provinces(self) -> List[Province]:
        return [p for p in self.provinces.values() if p.siege is not None]


def province_name(h: Hex) -> str:
    return f"Province_{h.q}_{h.r}"


def terrain_for(h: Hex, radius: int = MAP_RADIUS) -> Terrain:
    """Terrain of the generated world: sea rim, broken wasteland coast, varied interior."""
    dist = hex_distance(h, Hex(0, 0))
    if dist >= radius - 1:
        return Terrain.SEA
    if dist >= radius - 2:
        return Terrain.WASTELAND if (h.q + h.r) % 3 == 0 else Terrain.SEA
    return [
        Terrain.PLAINS,
        Terrain.HILLS,
        Terrain.FOREST,
        Terrain.MOUNTAINS,
        Terrain.DESERT,
    ][(abs(h.q) + abs(h.r)) % 5]


def generate_world(radius: int = MAP_RADIUS) -> GameMap:
    game_map = GameMap()
    for q in range(-radius, radius + 1):
        for r in range(-radius, radius + 1):
            h = Hex(q, r)
            if hex_distance(h, Hex(0, 0)) > radius:
                continue
            name = province_name(h)
            game_map.add_province(Province(province_id=name, name=name, hex=h, terrain=terrain_for(h, radius)))

    logger.info("Generated world with %d provinces (radius %d)", len(game_map.provinces), radius)
    return game_map
