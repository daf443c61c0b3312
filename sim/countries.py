from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

Color = Tuple[float, float, float]

PLAYER_COUNTRY_DEFAULT = "Francia"


@dataclass
class Country:
    name: str
    color: Color = (0.5, 0.5, 0.5)
    coffer: float = 0.0

    def add_ducats(self, ducats: float) -> None:
        self.coffer += ducats

    def remove_ducats(self, ducats: float) -> None:
        self.coffer -= ducats

    def can_afford(self, ducats: float) -> bool:
        return self.coffer >= ducats

    def __repr__(self):
        return self.name


def pick_player_country(names: Iterable[str]) -> Optional[str]:
    names = list(names)
    if PLAYER_COUNTRY_DEFAULT in names:
        return PLAYER_COUNTRY_DEFAULT
    return names[0] if names else None
