from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from sim.armies import UnitType
from sim.hexgrid import Hex


@dataclass(frozen=True)
class MoveOrder:
    army_id: str
    dest: Hex

    def __str__(self) -> str:
        return f"move {self.army_id} {self.dest.q} {self.dest.r}"


@dataclass(frozen=True)
class RecruitOrder:
    location: Hex
    unit_type: UnitType

    def __str__(self) -> str:
        return f"recruit {self.location.q} {self.location.r} {self.unit_type.value}"


@dataclass(frozen=True)
class DeclareWarOrder:
    target: str

    def __str__(self) -> str:
        return f"war {self.target}"


@dataclass(frozen=True)
class PeaceOfferOrder:
    target: str
    provinces: Tuple[Hex, ...] = ()

    def __str__(self) -> str:
        demands = " ".join(f"{h.q},{h.r}" for h in self.provinces)
        return f"peace {self.target} {demands}".rstrip()


@dataclass(frozen=True)
class AcceptPeaceOrder:
    offer_id: str

    def __str__(self) -> str:
        return f"accept {self.offer_id}"


@dataclass(frozen=True)
class DeclinePeaceOrder:
    offer_id: str

    def __str__(self) -> str:
        return f"decline {self.offer_id}"


Order = Union[MoveOrder, RecruitOrder, DeclareWarOrder, PeaceOfferOrder, AcceptPeaceOrder, DeclinePeaceOrder]
