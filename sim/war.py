# sim/war.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from sim.hexgrid import Hex
from sim.map import SiegeProgress

if TYPE_CHECKING:
    from sim.turn_engine import GameState

logger = logging.getLogger(__name__)

SIEGE_TURNS_REQUIRED = 3

# AI peace evaluation thresholds
AI_ALWAYS_CEDE = 2
AI_MAX_CEDE_FRACTION = 0.3


@dataclass
class War:
    war_id: str
    attacker: str
    defender: str

    def involves(self, country: str) -> bool:
        return country in (self.attacker, self.defender)


@dataclass
class PeaceOffer:
    offer_id: str
    proposer: str
    target: str
    war_id: str
    provinces: List[Hex] = field(default_factory=list)

    def __str__(self) -> str:
        demands = ", ".join(str(h) for h in self.provinces) or "white peace"
        return f"{self.offer_id}: {self.proposer} -> {self.target} ({demands})"


class Diplomacy:
    """
    Wars are the primary rows; `relations` is the symmetric at-war index derived
    from them. Both are only ever changed together.
    """

    def __init__(self):
        self.wars: Dict[str, War] = {}
        self.relations: Dict[str, Set[str]] = {}
        self.peace_offers: Dict[str, PeaceOffer] = {}
        self.next_war_index: int = 1
        self.next_offer_index: int = 1

    def at_war(self, a: str, b: str) -> bool:
        return b in self.relations.get(a, set())

    def enemies_of(self, country: str) -> Set[str]:
        return set(self.relations.get(country, set()))

    def war_between(self, a: str, b: str) -> Optional[War]:
        for war in self.wars.values():
            if (war.attacker, war.defender) in ((a, b), (b, a)):
                return war
        return None

    def add_war(self, attacker: str, defender: str, war_id: Optional[str] = None) -> War:
        if war_id is None:
            war_id = f"W{self.next_war_index}"
            self.next_war_index += 1
        war = War(war_id=war_id, attacker=attacker, defender=defender)
        self.wars[war_id] = war
        self.relations.setdefault(attacker, set()).add(defender)
        self.relations.setdefault(defender, set()).add(attacker)
        return war

    def end_war(self, war_id: str) -> Optional[War]:
        war = self.wars.pop(war_id, None)
        if war is None:
            return None
        self.relations.get(war.attacker, set()).discard(war.defender)
        self.relations.get(war.defender, set()).discard(war.attacker)
        return war

    def add_offer(self, proposer: str, target: str, war_id: str, provinces: List[Hex]) -> PeaceOffer:
        offer_id = f"P{self.next_offer_index}"
        self.next_offer_index += 1
        offer = PeaceOffer(offer_id=offer_id, proposer=proposer, target=target, war_id=war_id, provinces=list(provinces))
        self.peace_offers[offer_id] = offer
        return offer

    def offers_for(self, country: str) -> List[PeaceOffer]:
        return [o for o in self.peace_offers.values() if o.target == country]

    def rebuild_relations(self) -> None:
        self.relations = {}
        for war in self.wars.values():
            self.relations.setdefault(war.attacker, set()).add(war.defender)
            self.relations.setdefault(war.defender, set()).add(war.attacker)


# -----------------------------
# War declaration
# -----------------------------
def declare_war(game: "GameState", attacker: str, defender: str) -> Tuple[bool, str]:
    if attacker not in game.countries or defender not in game.countries:
        logger.warning("Rejected war declaration %s -> %s: unknown country", attacker, defender)
        return False, "Unknown country."

    if attacker == defender:
        logger.warning("Rejected war declaration: %s cannot declare war on itself", attacker)
        return False, "A country cannot declare war on itself."

    if game.diplomacy.at_war(attacker, defender):
        logger.warning("Rejected war declaration: %s and %s are already at war", attacker, defender)
        return False, f"{attacker} is already at war with {defender}."

    war = game.diplomacy.add_war(attacker, defender)
    logger.info("War %s declared: %s vs %s", war.war_id, attacker, defender)
    return True, f"{attacker} declares war on {defender}."


# -----------------------------
# Territory
# -----------------------------
def conquer_province(game: "GameState", h: Hex, country: str) -> List[str]:
    """Battlefield conquest: the province changes hands outright, no siege involved."""
    province = game.game_map.province_at(h)
    if province is None or not province.is_ownable:
        return []

    previous = province.owner
    province.owner = country
    province.occupier = None
    province.siege = None
    logger.info("%s conquered by %s (was %s)", province.name, country, previous)
    return [f"{province.name} conquered by {country}."]


def process_sieges(game: "GameState") -> List[str]:
    """
    Siege maintenance, run once per turn boundary:
    advance or lift running sieges, free provinces retaken by their owner,
    then open sieges where an enemy army rests on a hostile province.
    """
    events: List[str] = []
    provinces = list(game.game_map.provinces.values())
    handled: Set[str] = set()

    for province in provinces:
        siege = province.siege
        if siege is None:
            continue
        handled.add(province.province_id)

        if province.occupier is not None:
            province.siege = None
            continue

        army = game.index.resting_army(province.hex, game.armies)
        if army is None or army.owner != siege.besieger:
            province.siege = None
            events.append(f"Siege of {province.name} by {siege.besieger} lifted.")
            continue

        siege.progress += 1
        if siege.progress >= SIEGE_TURNS_REQUIRED:
            province.siege = None
            province.occupier = siege.besieger
            events.append(f"{province.name} occupied by {siege.besieger}.")
            logger.info("%s occupied by %s", province.name, siege.besieger)
        else:
            events.append(
                f"Siege of {province.name} by {siege.besieger}: {siege.progress}/{SIEGE_TURNS_REQUIRED}"
            )

    for province in provinces:
        if province.occupier is None or province.province_id in handled:
            continue
        army = game.index.resting_army(province.hex, game.armies)
        if army is not None and army.owner == province.owner:
            events.append(f"{province.name} liberated from {province.occupier}.")
            province.occupier = None
            handled.add(province.province_id)

    for province in provinces:
        if province.province_id in handled:
            continue
        if province.siege is not None or province.occupier is not None:
            continue
        if province.owner is None or not province.is_ownable:
            continue

        army = game.index.resting_army(province.hex, game.armies)
        if army is None or not game.diplomacy.at_war(army.owner, province.owner):
            continue

        province.siege = SiegeProgress(besieger=army.owner, progress=1)
        events.append(f"{army.owner} begins a siege of {province.name}.")

    return events


# -----------------------------
# Peace
# -----------------------------
def offer_peace(game: "GameState", proposer: str, target: str, provinces: List[Hex]) -> Tuple[bool, str]:
    war = game.diplomacy.war_between(proposer, target)
    if war is None:
        return False, f"{proposer} is not at war with {target}."

    for h in provinces:
        province = game.game_map.province_at(h)
        if province is None:
            return False, f"No province at {h}."
        if province.owner != target:
            return False, f"{province.name} does not belong to {target}."

    offer = game.diplomacy.add_offer(proposer, target, war.war_id, provinces)
    logger.info("Peace offer %s", offer)
    return True, f"Peace offered: {offer}"


def ai_accepts(game: "GameState", offer: PeaceOffer) -> bool:
    if not offer.provinces:
        return True

    owned_demanded = 0
    for h in offer.provinces:
        province = game.game_map.province_at(h)
        if province is not None and province.owner == offer.target:
            owned_demanded += 1

    if owned_demanded <= AI_ALWAYS_CEDE:
        return True

    total = len(game.game_map.provinces_owned_by(offer.target))
    return total > 0 and owned_demanded / total < AI_MAX_CEDE_FRACTION


def accept_peace(game: "GameState", offer_id: str) -> Tuple[bool, str]:
    dip = game.diplomacy
    offer = dip.peace_offers.get(offer_id)
    if offer is None:
        logger.warning("Peace acceptance for unknown offer %s", offer_id)
        return False, "No such peace offer."

    war = dip.wars.get(offer.war_id)
    if war is None:
        del dip.peace_offers[offer_id]
        logger.warning("Peace offer %s refers to a finished war; discarded", offer_id)
        return False, "That war is already over."

    for h in offer.provinces:
        province = game.game_map.province_at(h)
        if province is None:
            continue
        province.occupier = None
        province.siege = None
        province.owner = offer.proposer

    belligerents = {war.attacker, war.defender}
    for province in game.game_map.provinces.values():
        if province.owner not in belligerents:
            continue
        if province.occupier in belligerents and province.occupier != province.owner:
            province.occupier = None
        if province.siege is not None and province.siege.besieger in belligerents:
            province.siege = None

    dip.end_war(war.war_id)
    del dip.peace_offers[offer_id]
    logger.info("Peace between %s and %s (%s)", war.attacker, war.defender, offer_id)
    return True, f"Peace signed between {offer.proposer} and {offer.target}."


def decline_peace(game: "GameState", offer_id: str) -> Tuple[bool, str]:
    offer = game.diplomacy.peace_offers.pop(offer_id, None)
    if offer is None:
        return False, "No such peace offer."
    return True, f"{offer.target} declines peace with {offer.proposer}."


def ai_handle_peace_offers(game: "GameState") -> List[str]:
    """Every offer addressed to a non-player country is settled in this pass."""
    events: List[str] = []
    for offer in list(game.diplomacy.peace_offers.values()):
        if offer.target == game.player_country:
            continue
        if ai_accepts(game, offer):
            _ok, msg = accept_peace(game, offer.offer_id)
        else:
            _ok, msg = decline_peace(game, offer.offer_id)
        events.append(msg)
    return events
