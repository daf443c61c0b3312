# sim/movement.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Set, Tuple

from sim.combat.resolver import join_battle, join_side, start_battle
from sim.hexgrid import Hex
from sim.pathfinding import bfs_path

if TYPE_CHECKING:
    from sim.turn_engine import GameState

logger = logging.getLogger(__name__)


def issue_move(game: "GameState", army_id: str, dest: Hex) -> Tuple[bool, str]:
    """
    Plan a path for an army. The path replaces any previous one and is walked
    one hex per tick by step_armies().
    """
    army = game.get_army(army_id)
    if army is None:
        return False, "No such army."

    if army.in_battle:
        return False, f"{army_id} is fighting at {army.location} and cannot move."

    start = army.location
    if start == dest:
        army.path.clear()
        return True, f"{army_id} is already at {dest}."

    path = bfs_path(game.game_map, start, dest)
    if path is None:
        logger.warning("No path for %s from %s to %s", army_id, start, dest)
        return False, f"No path to {dest} (impassable or off the map)."

    army.path = path
    logger.debug("%s path %s", army_id, path)
    return True, f"{army_id} marching {start} -> {dest} ({len(path)} step(s))."


def step_armies(game: "GameState") -> List[str]:
    """
    Advance every army with a path by exactly one hex, in army order.
    An army merged away or pulled into a battle earlier in the step is skipped.
    """
    events: List[str] = []
    consumed: Set[str] = set()

    for army_id in list(game.armies.keys()):
        if army_id in consumed:
            continue
        army = game.armies.get(army_id)
        if army is None or army.in_battle or not army.path:
            continue

        next_hex = army.path[0]

        # 1) ongoing battle at the target hex
        battle = game.battle_at(next_hex)
        if battle is not None:
            side = join_side(game, army.owner, battle)
            if side is None:
                army.path.clear()
                events.append(f"{army_id} halts at {army.location}: not at war with either side at {next_hex}.")
                continue
            join_battle(game, army, battle, side)
            consumed.add(army_id)
            events.append(f"{army_id} joins the battle at {next_hex} as {side.value}.")
            continue

        occupant = game.index.resting_army(next_hex, game.armies)

        # 2) friendly army: merge into it
        if occupant is not None and occupant.owner == army.owner:
            occupant.composition.add(army.composition)
            was_selected = game.selected_army.get(army.owner) == army_id
            game.despawn_army(army_id)
            if was_selected:
                game.selected_army[army.owner] = occupant.army_id
            consumed.add(army_id)
            events.append(f"{army_id} merges into {occupant.army_id} at {next_hex} ({occupant.size} men).")
            continue

        # 3) foreign army: fight only with a declared war
        if occupant is not None:
            if not game.diplomacy.at_war(army.owner, occupant.owner):
                army.path.clear()
                events.append(
                    f"{army_id} halts at {army.location}: {army.owner} is not at war with {occupant.owner}."
                )
                continue
            start_battle(game, army, occupant)
            consumed.add(army_id)
            consumed.add(occupant.army_id)
            events.append(f"Battle at {next_hex}: {army_id} ({army.owner}) attacks {occupant.army_id} ({occupant.owner}).")
            continue

        # 4) empty hex
        origin = army.location
        army.location = army.path.pop(0)
        game.index.vacate(origin, army_id, game.armies)
        game.index.insert_army(army.location, army_id)
        if not army.path:
            events.append(f"{army_id} arrived at {army.location}.")

    return events
