from __future__ import annotations

from typing import List, Optional

from sim.armies import UnitType
from sim.hexgrid import Hex
from sim.render_ascii import render_map_ascii
from sim.turn_engine import GameState

HELP_LINES = [
    "Commands:",
    "  map                              - political map",
    "  armies                           - list your armies",
    "  wars                             - list wars and pending peace offers",
    "  select <army>                    - select one of your armies",
    "  move <army> <q> <r>              - queue a march",
    "  recruit <q> <r> <inf|cav|art>    - queue a regiment in an owned province",
    "  war <country>                    - queue a declaration of war",
    "  peace <country> [q,r ...]        - queue a peace offer demanding provinces",
    "  accept <offer> / decline <offer> - answer a peace offer",
    "  orders / undo / clear            - inspect or edit your order queue",
    "  submit                           - carry out your queued orders",
    "  tick                             - run one movement/battle step",
    "  end                              - submit, then play out the rest of the turn",
]


def _parse_hex(q_s: str, r_s: str) -> Optional[Hex]:
    try:
        return Hex(int(q_s), int(r_s))
    except ValueError:
        return None


def _parse_hex_pair(token: str) -> Optional[Hex]:
    if "," not in token:
        return None
    q_s, r_s = token.split(",", 1)
    return _parse_hex(q_s, r_s)


def _result(ok: bool, msg: str) -> List[str]:
    return [msg] if ok else [f"ERROR: {msg}"]


def describe_armies(game: GameState, country: str) -> List[str]:
    armies = game.armies_of(country)
    if not armies:
        return ["(no armies)"]
    out = []
    selected = game.selected_army.get(country)
    for a in armies:
        flag = "*" if a.army_id == selected else " "
        status = f"in battle {a.battle_id}" if a.in_battle else (f"marching, {len(a.path)} left" if a.path else "idle")
        out.append(f"{flag} {a.army_id} at {a.location}: {a.composition} ({status})")
    return out


def describe_diplomacy(game: GameState) -> List[str]:
    out = [f"War {w.war_id}: {w.attacker} vs {w.defender}" for w in game.diplomacy.wars.values()]
    out.extend(f"Offer {o}" for o in game.diplomacy.peace_offers.values())
    return out or ["(peace everywhere)"]


def apply_command(game: GameState, country: str, command: str) -> List[str]:
    """Text command surface shared by the REPL and the web UI. `country` is who is speaking."""
    cmd = command.strip()
    if not cmd:
        return ["(no command)"]

    parts = cmd.split()
    head = parts[0].lower()

    if head == "help":
        return list(HELP_LINES)

    if head == "map":
        return [render_map_ascii(game, country)]

    if head == "armies":
        return describe_armies(game, country)

    if head == "wars":
        return describe_diplomacy(game)

    if head == "select":
        if len(parts) != 2:
            return ["Usage: select <army>"]
        return _result(*game.select_army(country, parts[1].upper()))

    if head == "move":
        if len(parts) != 4:
            return ["Usage: move <army> <q> <r>"]
        dest = _parse_hex(parts[2], parts[3])
        if dest is None:
            return ["q and r must be integers"]
        return _result(*game.queue_move(country, parts[1], dest))

    if head == "recruit":
        if len(parts) != 4:
            return ["Usage: recruit <q> <r> <inf|cav|art>"]
        where = _parse_hex(parts[1], parts[2])
        if where is None:
            return ["q and r must be integers"]
        unit_type = UnitType.parse(parts[3])
        if unit_type is None:
            return [f"Unknown unit type: {parts[3]}"]
        return _result(*game.queue_recruit(country, where, unit_type))

    if head == "war":
        if len(parts) != 2:
            return ["Usage: war <country>"]
        target = game.resolve_country(parts[1])
        if target is None:
            return [f"ERROR: unknown country '{parts[1]}'"]
        return _result(*game.queue_declare_war(country, target))

    if head == "peace":
        if len(parts) < 2:
            return ["Usage: peace <country> [q,r ...]"]
        target = game.resolve_country(parts[1])
        if target is None:
            return [f"ERROR: unknown country '{parts[1]}'"]
        demands = []
        for token in parts[2:]:
            h = _parse_hex_pair(token)
            if h is None:
                return [f"Bad province coordinate: {token} (expected q,r)"]
            demands.append(h)
        return _result(*game.queue_peace_offer(country, target, demands))

    if head in ("accept", "decline"):
        if len(parts) != 2:
            return [f"Usage: {head} <offer>"]
        if head == "accept":
            return _result(*game.queue_accept_peace(country, parts[1]))
        return _result(*game.queue_decline_peace(country, parts[1]))

    if head == "orders":
        orders = game.list_orders(country)
        if not orders:
            return ["(no pending orders)"]
        return [f"  {i}. {o}" for i, o in enumerate(orders, start=1)]

    if head == "undo":
        return _result(*game.undo_last_order(country))

    if head == "clear":
        return _result(*game.clear_orders(country))

    if head == "submit":
        return game.submit_orders(country)

    if head == "tick":
        return game.tick()

    if head in ("end", "pass"):
        events = []
        if game.list_orders(country):
            events.extend(game.submit_orders(country))
        events.extend(game.end_turn())
        return events

    return [f"Unknown command: {cmd}"]
