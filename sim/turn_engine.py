# sim/turn_engine.py

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Optional, List, Tuple

from sim.armies import Army, ArmyComposition, UnitType
from sim.combat.resolver import Battle, resolve_battles
from sim.countries import PLAYER_COUNTRY_DEFAULT, Country, pick_player_country
from sim.hexgrid import Hex
from sim.map import GameMap
from sim.movement import issue_move, step_armies
from sim.orders import (
    AcceptPeaceOrder,
    DeclareWarOrder,
    DeclinePeaceOrder,
    MoveOrder,
    Order,
    PeaceOfferOrder,
    RecruitOrder,
)
from sim.spatial import SpatialIndex
from sim.war import (
    Diplomacy,
    accept_peace,
    ai_handle_peace_offers,
    decline_peace,
    declare_war,
    offer_peace,
    process_sieges,
)

logger = logging.getLogger(__name__)

# Movement/battle steps simulated between two turn boundaries.
TICKS_PER_TURN = 3


class GameState:
    def __init__(self, game_map: Optional[GameMap] = None, seed: int = 0):
        self.countries: Dict[str, Country] = {}
        self.player_country: Optional[str] = None
        self.game_map = game_map if game_map is not None else GameMap()
        self.index = SpatialIndex(self.game_map)
        self.armies: Dict[str, Army] = {}  # army_id -> Army
        self.battles: Dict[str, Battle] = {}  # battle_id -> Battle
        self.diplomacy = Diplomacy()
        self.selected_army: Dict[str, str] = {}  # country -> army_id
        self.turn_number: int = 1
        self.tick_number: int = 0
        self.seed = seed
        self.log: List[str] = []
        # --- Orders (per-country pending plan) ---
        self.pending_orders: Dict[str, List[Order]] = {}
        self.next_army_index: int = 1
        self.next_battle_index: int = 1

    def set_map(self, game_map: GameMap) -> None:
        self.game_map = game_map
        self.index = SpatialIndex(game_map)
        self.index.rebuild(self.armies.values())

    # -----------------------------
    # Countries
    # -----------------------------
    def add_country(self, country: Country) -> None:
        self.countries[country.name] = country
        if self.player_country is None or country.name == PLAYER_COUNTRY_DEFAULT:
            self.player_country = pick_player_country(self.countries)

    def get_country(self, name: str) -> Optional[Country]:
        return self.countries.get(name)

    def resolve_country(self, token: str) -> Optional[str]:
        """Case-insensitive country lookup for text commands."""
        t = token.strip().lower()
        for name in self.countries:
            if name.lower() == t:
                return name
        return None

    # -----------------------------
    # Armies
    # -----------------------------
    def allocate_army_id(self, owner: str) -> str:
        n = self.next_army_index
        self.next_army_index += 1
        return f"{owner[:3].upper()}{n}"

    def allocate_battle_id(self) -> str:
        n = self.next_battle_index
        self.next_battle_index += 1
        return f"B{n}"

    def add_army(self, army: Army) -> None:
        self.armies[army.army_id] = army
        if not army.in_battle:
            self.index.insert_army(army.location, army.army_id)

    def spawn_army(self, owner: str, location: Hex, composition: ArmyComposition) -> Army:
        army = Army(self.allocate_army_id(owner), owner, location, composition)
        self.add_army(army)
        logger.info("Spawned %s with %s", army, composition)
        return army

    def despawn_army(self, army_id: str) -> None:
        army = self.armies.pop(army_id, None)
        if army is None:
            return
        self.index.vacate(army.location, army_id, self.armies)
        if self.selected_army.get(army.owner) == army_id:
            del self.selected_army[army.owner]

    def get_army(self, army_id: str) -> Optional[Army]:
        return self.armies.get(army_id)

    def resolve_army_id(self, token: str) -> Optional[str]:
        t = token.strip().upper()
        return t if t in self.armies else None

    def armies_of(self, country: str) -> List[Army]:
        return [a for a in self.armies.values() if a.owner == country]

    def armies_at(self, h: Hex) -> List[Army]:
        return [a for a in self.armies.values() if a.location == h]

    def select_army(self, country: str, army_id: str) -> Tuple[bool, str]:
        army = self.get_army(army_id)
        if army is None:
            return False, "No such army."
        if army.owner != country:
            return False, "You don't control that army."
        self.selected_army[country] = army_id
        return True, f"Selected {army_id}."

    def battle_at(self, h: Hex) -> Optional[Battle]:
        for battle in self.battles.values():
            if battle.location == h:
                return battle
        return None

    # -----------------------------
    # Economy
    # -----------------------------
    def recruit(self, country: str, location: Hex, unit_type: UnitType) -> Tuple[bool, str]:
        """Buy one regiment in an owned province, reinforcing the army resting there if any."""
        owner = self.get_country(country)
        if owner is None:
            return False, "Unknown country."

        province = self.game_map.province_at(location)
        if province is None or province.owner != country:
            return False, f"{country} does not own {location}."

        if self.battle_at(location) is not None:
            return False, f"Cannot recruit in {province.name} during a battle."

        cost = unit_type.cost
        if not owner.can_afford(cost):
            return False, f"Not enough ducats ({owner.coffer:.1f} < {cost:.0f})."

        occupant = self.index.resting_army(location, self.armies)
        if occupant is not None and occupant.owner != country:
            logger.warning("Cannot recruit at %s: tile held by %s", location, occupant.army_id)
            return False, f"{province.name} is held by another army."

        owner.remove_ducats(cost)
        if occupant is not None:
            occupant.composition.add_unit(unit_type)
            return True, f"{unit_type.label} regiment joins {occupant.army_id} in {province.name}."

        comp = ArmyComposition()
        comp.add_unit(unit_type)
        army = self.spawn_army(country, location, comp)
        return True, f"{unit_type.label} regiment raised as {army.army_id} in {province.name}."

    def collect_income(self) -> List[str]:
        incomes: Dict[str, float] = defaultdict(float)
        for province in self.game_map.provinces.values():
            if province.owner is not None:
                incomes[province.owner] += province.terrain.base_income

        events: List[str] = []
        for name in sorted(incomes):
            country = self.countries.get(name)
            if country is None:
                continue
            country.add_ducats(incomes[name])
            events.append(f"{name} collects {incomes[name]:.2f} ducats ({country.coffer:.2f}).")
        return events

    # -----------------------------
    # Orders
    # -----------------------------
    def _ensure_order_queue(self, country: str):
        if country not in self.pending_orders:
            self.pending_orders[country] = []

    def _queue(self, country: str, order: Order) -> Tuple[bool, str]:
        self._ensure_order_queue(country)
        self.pending_orders[country].append(order)
        return True, f"Queued: {order}"

    def queue_move(self, country: str, army_id: str, dest: Hex) -> Tuple[bool, str]:
        """
        Queue a move order. Does NOT change game state.
        Validation here is intentionally light; the authoritative validation
        happens on submit.
        """
        army_id = army_id.upper()
        army = self.get_army(army_id)
        if not army:
            return False, "No such army."
        if army.owner != country:
            return False, "You don't control that army."
        return self._queue(country, MoveOrder(army_id=army_id, dest=dest))

    def queue_recruit(self, country: str, location: Hex, unit_type: UnitType) -> Tuple[bool, str]:
        if self.game_map.province_at(location) is None:
            return False, f"No province at {location}."
        return self._queue(country, RecruitOrder(location=location, unit_type=unit_type))

    def queue_declare_war(self, country: str, target: str) -> Tuple[bool, str]:
        if target not in self.countries:
            return False, "Unknown country."
        return self._queue(country, DeclareWarOrder(target=target))

    def queue_peace_offer(self, country: str, target: str, provinces: List[Hex]) -> Tuple[bool, str]:
        if target not in self.countries:
            return False, "Unknown country."
        return self._queue(country, PeaceOfferOrder(target=target, provinces=tuple(provinces)))

    def queue_accept_peace(self, country: str, offer_id: str) -> Tuple[bool, str]:
        offer = self.diplomacy.peace_offers.get(offer_id.upper())
        if offer is None or offer.target != country:
            return False, "No such peace offer."
        return self._queue(country, AcceptPeaceOrder(offer_id=offer.offer_id))

    def queue_decline_peace(self, country: str, offer_id: str) -> Tuple[bool, str]:
        offer = self.diplomacy.peace_offers.get(offer_id.upper())
        if offer is None or offer.target != country:
            return False, "No such peace offer."
        return self._queue(country, DeclinePeaceOrder(offer_id=offer.offer_id))

    def list_orders(self, country: str) -> List[Order]:
        self._ensure_order_queue(country)
        return list(self.pending_orders[country])

    def undo_last_order(self, country: str) -> Tuple[bool, str]:
        self._ensure_order_queue(country)
        if not self.pending_orders[country]:
            return False, "No orders to undo."
        last = self.pending_orders[country].pop()
        return True, f"Undid: {last}"

    def clear_orders(self, country: str) -> Tuple[bool, str]:
        self._ensure_order_queue(country)
        n = len(self.pending_orders[country])
        self.pending_orders[country].clear()
        return True, f"Cleared {n} order(s)."

    def apply_order(self, country: str, order: Order) -> Tuple[bool, str]:
        if isinstance(order, MoveOrder):
            army = self.get_army(order.army_id)
            if army is None or army.owner != country:
                return False, "You don't control that army."
            return issue_move(self, order.army_id, order.dest)
        if isinstance(order, RecruitOrder):
            return self.recruit(country, order.location, order.unit_type)
        if isinstance(order, DeclareWarOrder):
            return declare_war(self, country, order.target)
        if isinstance(order, PeaceOfferOrder):
            return offer_peace(self, country, order.target, list(order.provinces))
        if isinstance(order, AcceptPeaceOrder):
            return accept_peace(self, order.offer_id)
        if isinstance(order, DeclinePeaceOrder):
            return decline_peace(self, order.offer_id)
        return False, f"Unsupported order: {order}"

    def submit_orders(self, country: str) -> List[str]:
        self._ensure_order_queue(country)
        orders = self.pending_orders[country]
        if not orders:
            return ["No orders to submit."]

        events: List[str] = [f"SUBMIT: {country} ({len(orders)} order(s))"]
        for idx, order in enumerate(list(orders), start=1):
            ok, msg = self.apply_order(country, order)
            events.append(f"  {idx}. {order} -> {msg}" if ok else f"  {idx}. {order} -> ERROR: {msg}")
        orders.clear()

        self.log.extend(events)
        return events

    # -----------------------------
    # Simulation
    # -----------------------------
    def tick(self) -> List[str]:
        """One simulation step: movement, then battles, then AI replies to peace offers."""
        self.tick_number += 1
        events: List[str] = [f"TICK {self.tick_number}"]

        moves = step_armies(self)
        events.extend(f"  {e}" for e in moves)

        fights = resolve_battles(self)
        events.extend(f"  {e}" for e in fights)

        replies = ai_handle_peace_offers(self)
        events.extend(f"  {e}" for e in replies)

        self.log.extend(events)
        return events

    def end_turn(self, ticks: int = TICKS_PER_TURN) -> List[str]:
        events: List[str] = []
        for _ in range(ticks):
            events.extend(self.tick())

        boundary: List[str] = [f"END OF TURN {self.turn_number}"]
        boundary.extend(f"  {e}" for e in process_sieges(self))
        boundary.extend(f"  {e}" for e in self.collect_income())

        self.turn_number += 1
        boundary.append(f"Turn {self.turn_number} begins.")
        logger.info("Turn %d begins", self.turn_number)

        self.log.extend(boundary)
        return events + boundary
