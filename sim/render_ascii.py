from __future__ import annotations
from typing import Dict, List

from sim.hexgrid import Hex


def country_symbol(name: str) -> str:
    return name[:1].upper()


def render_cell(game, h: Hex, resting: Dict[Hex, str]) -> str:
    province = game.game_map.province_at(h)
    if province is None:
        return "  "

    if game.battle_at(h) is not None:
        return "**"

    army_id = resting.get(h)
    if army_id is not None:
        army = game.armies[army_id]
        return country_symbol(army.owner) + "@"

    if province.owner is None:
        return province.terrain.symbol

    mark = "."
    if province.occupier is not None:
        mark = country_symbol(province.occupier).lower()
    elif province.siege is not None:
        mark = str(min(province.siege.progress, 9))
    return country_symbol(province.owner) + mark


def render_map_ascii(game, viewer=None) -> str:
    hexes = game.game_map.hexes()
    if not hexes:
        return "(empty map)"

    min_q, max_q = min(h.q for h in hexes), max(h.q for h in hexes)
    min_r, max_r = min(h.r for h in hexes), max(h.r for h in hexes)

    resting = {a.location: a.army_id for a in game.armies.values() if not a.in_battle}

    title = f"Political map (Turn {game.turn_number})"
    if viewer:
        title += f" for {viewer}"
    lines: List[str] = [
        title,
        "Legend: X. owned by X | Xy occupied by Y | X1-2 under siege | X@ army | ** battle | ~~ sea | xx wasteland",
        "",
    ]

    header = "      " + " ".join(f"{q:>2}" for q in range(min_q, max_q + 1))
    lines.append(header)

    # Axial rows shift half a cell per row
    for r in range(min_r, max_r + 1):
        indent = " " * (3 * (r - min_r) // 2)
        row = [f"r={r:>2}  {indent}"]
        for q in range(min_q, max_q + 1):
            row.append(render_cell(game, Hex(q, r), resting))
        lines.append(" ".join(row).rstrip())

    return "\n".join(lines)
