from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sim.armies import Army
from sim.combat.damage import (
    ROLL_MAX,
    ROLL_MIN,
    attacker_damage,
    casualties_for,
    defender_damage,
    raw_damage,
    split_damage,
)
from sim.hexgrid import Hex
from sim.terrain import Terrain
from sim.war import conquer_province

if TYPE_CHECKING:
    from sim.turn_engine import GameState

logger = logging.getLogger(__name__)


class BattleSide(Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"


@dataclass
class Battle:
    battle_id: str
    attacker_country: str
    defender_country: str
    location: Hex
    attackers: List[str] = field(default_factory=list)
    defenders: List[str] = field(default_factory=list)
    round: int = 0
    # casualties each side's own armies suffered in the last round
    last_damage_attacker: int = 0
    last_damage_defender: int = 0

    def add_army(self, side: BattleSide, army_id: str) -> None:
        if side == BattleSide.ATTACKER:
            self.attackers.append(army_id)
        else:
            self.defenders.append(army_id)

    def side_of(self, army_id: str) -> Optional[BattleSide]:
        if army_id in self.attackers:
            return BattleSide.ATTACKER
        if army_id in self.defenders:
            return BattleSide.DEFENDER
        return None

    def __str__(self) -> str:
        return f"{self.battle_id} at {self.location}: {self.attacker_country} vs {self.defender_country}"


def join_side(game: "GameState", country: str, battle: Battle) -> Optional[BattleSide]:
    """Side a newly arriving army of `country` fights on, or None when neutral to both belligerents."""
    if country == battle.attacker_country:
        return BattleSide.ATTACKER
    if country == battle.defender_country:
        return BattleSide.DEFENDER
    if game.diplomacy.at_war(country, battle.defender_country):
        return BattleSide.ATTACKER
    if game.diplomacy.at_war(country, battle.attacker_country):
        return BattleSide.DEFENDER
    return None


def start_battle(game: "GameState", attacker: Army, defender: Army) -> Battle:
    location = defender.location
    battle = Battle(
        battle_id=game.allocate_battle_id(),
        attacker_country=attacker.owner,
        defender_country=defender.owner,
        location=location,
        attackers=[attacker.army_id],
        defenders=[defender.army_id],
    )
    game.battles[battle.battle_id] = battle

    origin = attacker.location
    for army in (attacker, defender):
        army.battle_id = battle.battle_id
        army.path.clear()
    attacker.location = location
    game.index.remove_army(location, defender.army_id)
    game.index.vacate(origin, attacker.army_id, game.armies)

    logger.info("Battle %s started", battle)
    return battle


def join_battle(game: "GameState", army: Army, battle: Battle, side: BattleSide) -> None:
    origin = army.location
    army.location = battle.location
    army.path.clear()
    army.battle_id = battle.battle_id
    game.index.vacate(origin, army.army_id, game.armies)
    battle.add_army(side, army.army_id)
    logger.info("%s joins %s on the %s side", army.army_id, battle.battle_id, side.value)


def _battle_rng(game: "GameState", battle: Battle) -> random.Random:
    # Deterministic RNG per battle round (debuggable, survives save/load)
    seed_material = f"{game.seed}|{game.tick_number}|{battle.battle_id}|{battle.round}"
    return random.Random(seed_material)


def _alive(game: "GameState", army_ids: List[str]) -> List[str]:
    out = []
    for aid in army_ids:
        army = game.armies.get(aid)
        if army is not None and army.composition.total_size > 0:
            out.append(aid)
    return out


def _drop_fallen(game: "GameState", battle: Battle) -> None:
    battle.attackers = _alive(game, battle.attackers)
    battle.defenders = _alive(game, battle.defenders)


def _inflict(game: "GameState", army_ids: List[str], damage: int) -> int:
    share = split_damage(damage, len(army_ids))
    lost = 0
    for aid in army_ids:
        comp = game.armies[aid].composition
        lost += comp.remove_casualties(casualties_for(share, comp.total_size))
    return lost


def _conclude(game: "GameState", battle: Battle, events: List[str]) -> bool:
    """Resolve the battle if a side is gone. Returns True when the battle has ended."""
    if battle.attackers and battle.defenders:
        return False

    del game.battles[battle.battle_id]

    if not battle.attackers and not battle.defenders:
        events.append(f"Battle at {battle.location} ends in mutual destruction.")
        logger.info("Battle %s: mutual destruction", battle.battle_id)
        return True

    attacker_won = bool(battle.attackers)
    winners = battle.attackers if attacker_won else battle.defenders
    winner_country = battle.attacker_country if attacker_won else battle.defender_country

    for aid in winners:
        army = game.armies[aid]
        army.battle_id = None
        army.location = battle.location
        army.path.clear()
    # Winners may stack; one of them rests in the index, the others take over as it leaves
    game.index.promote(battle.location, game.armies)

    events.append(f"Battle at {battle.location} won by {winner_country} after {battle.round} round(s).")
    logger.info("Battle %s won by %s", battle.battle_id, winner_country)

    if attacker_won:
        province = game.game_map.province_at(battle.location)
        if province is not None and province.is_ownable and province.owner != battle.attacker_country:
            events.extend(conquer_province(game, battle.location, battle.attacker_country))

    return True


def resolve_battle_round(game: "GameState", battle: Battle, rng: Optional[random.Random] = None) -> List[str]:
    """
    One processing step for one battle: cleanup, termination check, and (if both
    sides still stand) a single simultaneous round of damage.
    """
    events: List[str] = []

    _drop_fallen(game, battle)
    if _conclude(game, battle, events):
        return events

    province = game.game_map.province_at(battle.location)
    terrain = province.terrain if province is not None else Terrain.PLAINS

    if rng is None:
        rng = _battle_rng(game, battle)

    attacking = [game.armies[aid].composition for aid in battle.attackers]
    defending = [game.armies[aid].composition for aid in battle.defenders]

    # Both sides fire from the pre-round state
    att_roll = rng.uniform(ROLL_MIN, ROLL_MAX)
    def_roll = rng.uniform(ROLL_MIN, ROLL_MAX)
    att_dmg = attacker_damage(raw_damage(attacking, terrain), att_roll, terrain)
    def_dmg = defender_damage(raw_damage(defending, terrain), def_roll, terrain)

    battle.last_damage_defender = _inflict(game, battle.defenders, att_dmg)
    battle.last_damage_attacker = _inflict(game, battle.attackers, def_dmg)
    battle.round += 1

    events.append(
        f"Round {battle.round} at {battle.location}: "
        f"{battle.attacker_country} lost {battle.last_damage_attacker}, "
        f"{battle.defender_country} lost {battle.last_damage_defender}"
    )

    for aid in battle.attackers + battle.defenders:
        army = game.armies.get(aid)
        if army is not None and army.composition.total_size <= 0:
            events.append(f"{aid} ({army.owner}) destroyed.")
            game.despawn_army(aid)

    _drop_fallen(game, battle)
    _conclude(game, battle, events)
    return events


def resolve_battles(game: "GameState", rng: Optional[random.Random] = None) -> List[str]:
    events: List[str] = []
    for battle_id in list(game.battles.keys()):
        battle = game.battles.get(battle_id)
        if battle is None:
            continue
        events.extend(resolve_battle_round(game, battle, rng))
    return events
