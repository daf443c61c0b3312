from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional

from sim.hexgrid import Hex
from sim.map import GameMap


def _walk_back(parents: Dict[Hex, Optional[Hex]], goal: Hex) -> List[Hex]:
    steps: List[Hex] = []
    at: Optional[Hex] = goal
    while parents[at] is not None:
        steps.append(at)
        at = parents[at]
    steps.reverse()
    return steps


def bfs_path(game_map: GameMap, start: Hex, goal: Hex) -> Optional[List[Hex]]:
    """
    Shortest march from start to goal, one hex per step.

    The result excludes start and includes goal; [] when already there, None when
    the goal is off the map, impassable or cut off. Only passable provinces are
    entered, the start hex is never checked. Neighbours are expanded in
    NEIGHBOR_DIRS order, so ties between equally short routes always break the same way.
    """
    if start == goal:
        return []
    if not game_map.is_passable(goal):
        return None

    parents: Dict[Hex, Optional[Hex]] = {start: None}
    frontier = deque([start])

    while frontier:
        here = frontier.popleft()
        for nxt in game_map.neighbors_passable(here):
            if nxt in parents:
                continue
            parents[nxt] = here
            if nxt == goal:
                return _walk_back(parents, goal)
            frontier.append(nxt)

    return None
