from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from sim.hexgrid import Hex
from sim.map import GameMap

if TYPE_CHECKING:
    from sim.armies import Army

logger = logging.getLogger(__name__)


class SpatialIndex:
    """
    Hex lookups for provinces and resting armies.

    The province half is fixed once the map is generated and lives on the GameMap.
    The army half is a cache over the army store: entries can go stale when an army
    is despawned, so readers go through resting_army(), which purges them.
    Armies taking part in a battle are never registered here.
    """

    def __init__(self, game_map: GameMap):
        self.game_map = game_map
        self.army_by_hex: Dict[Hex, str] = {}

    # -----------------------------
    # Provinces
    # -----------------------------
    def province_at(self, h: Hex) -> Optional[str]:
        return self.game_map.province_id_at(h)

    # -----------------------------
    # Armies
    # -----------------------------
    def insert_army(self, h: Hex, army_id: str) -> None:
        self.army_by_hex[h] = army_id

    def remove_army(self, h: Hex, army_id: Optional[str] = None) -> None:
        """Drop the entry at h; with army_id given, only if it still points at that army."""
        current = self.army_by_hex.get(h)
        if current is None:
            return
        if army_id is not None and current != army_id:
            return
        del self.army_by_hex[h]

    def army_at(self, h: Hex) -> Optional[str]:
        return self.army_by_hex.get(h)

    def resting_army(self, h: Hex, armies: Dict[str, "Army"]) -> Optional["Army"]:
        army_id = self.army_by_hex.get(h)
        if army_id is None:
            return None

        army = armies.get(army_id)
        if army is None or army.location != h or not _can_rest(army):
            logger.debug("Purging stale army index entry %s at %s", army_id, h)
            del self.army_by_hex[h]
            return None
        return army

    def promote(self, h: Hex, armies: Dict[str, "Army"]) -> Optional[str]:
        """
        Re-seat the entry at h on the first army (in army order) standing there
        outside any battle. rebuild() applies the same rule to every hex.
        """
        self.army_by_hex.pop(h, None)
        for army in armies.values():
            if army.location == h and _can_rest(army):
                self.army_by_hex[h] = army.army_id
                return army.army_id
        return None

    def vacate(self, h: Hex, army_id: str, armies: Dict[str, "Army"]) -> None:
        """`army_id` no longer rests on h; another army still standing there takes its place."""
        if self.army_by_hex.get(h) in (None, army_id):
            self.promote(h, armies)

    def rebuild(self, armies: Iterable["Army"]) -> None:
        self.army_by_hex.clear()
        for army in armies:
            if not _can_rest(army):
                continue
            if army.location in self.army_by_hex:
                continue
            self.army_by_hex[army.location] = army.army_id

    def __len__(self) -> int:
        return len(self.army_by_hex)


def _can_rest(army: "Army") -> bool:
    return not army.in_battle and army.composition.total_size > 0
