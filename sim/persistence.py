# sim/persistence.py
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sim.armies import Army, ArmyComposition, UnitType
from sim.combat.resolver import Battle
from sim.countries import Country
from sim.hexgrid import Hex
from sim.map import GameMap, Province, SiegeProgress
from sim.orders import (
    AcceptPeaceOrder,
    DeclareWarOrder,
    DeclinePeaceOrder,
    MoveOrder,
    Order,
    PeaceOfferOrder,
    RecruitOrder,
)
from sim.terrain import Terrain
from sim.turn_engine import GameState
from sim.war import PeaceOffer

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _hex_key(h: Hex) -> str:
    return f"{h.q},{h.r}"


def _hex_from_key(s: str) -> Hex:
    q_s, r_s = s.split(",", 1)
    return Hex(int(q_s), int(r_s))


def _country_to_dict(c: Country) -> dict[str, Any]:
    return {"name": c.name, "color": list(c.color), "coffer": float(c.coffer)}


def _country_from_dict(d: dict[str, Any]) -> Country:
    color = d.get("color", [0.5, 0.5, 0.5])
    return Country(name=d["name"], color=(float(color[0]), float(color[1]), float(color[2])), coffer=float(d.get("coffer", 0.0)))


def _province_to_dict(p: Province) -> dict[str, Any]:
    return {
        "id": p.province_id,
        "name": p.name,
        "hex": _hex_key(p.hex),
        "terrain": p.terrain.name,
        "owner": p.owner,
        "occupier": p.occupier,
        "siege": None if p.siege is None else {"besieger": p.siege.besieger, "progress": int(p.siege.progress)},
    }


def _province_from_dict(d: dict[str, Any]) -> Province:
    siege: Optional[SiegeProgress] = None
    if d.get("siege"):
        siege = SiegeProgress(besieger=d["siege"]["besieger"], progress=int(d["siege"].get("progress", 1)))
    return Province(
        province_id=d["id"],
        name=d.get("name", d["id"]),
        hex=_hex_from_key(d["hex"]),
        terrain=Terrain[d["terrain"]],
        owner=d.get("owner"),
        occupier=d.get("occupier"),
        siege=siege,
    )


def _army_to_dict(a: Army) -> dict[str, Any]:
    return {
        "army_id": a.army_id,
        "owner": a.owner,
        "location": _hex_key(a.location),
        "infantry": a.composition.infantry,
        "cavalry": a.composition.cavalry,
        "artillery": a.composition.artillery,
        "path": [_hex_key(h) for h in a.path],
        "battle_id": a.battle_id,
    }


def _army_from_dict(d: dict[str, Any]) -> Army:
    comp = ArmyComposition(
        infantry=int(d.get("infantry", 0)),
        cavalry=int(d.get("cavalry", 0)),
        artillery=int(d.get("artillery", 0)),
    )
    return Army(
        army_id=d["army_id"],
        owner=d["owner"],
        location=_hex_from_key(d["location"]),
        composition=comp,
        path=[_hex_from_key(s) for s in d.get("path", [])],
        battle_id=d.get("battle_id"),
    )


def _battle_to_dict(b: Battle) -> dict[str, Any]:
    return {
        "battle_id": b.battle_id,
        "attacker_country": b.attacker_country,
        "defender_country": b.defender_country,
        "location": _hex_key(b.location),
        "attackers": list(b.attackers),
        "defenders": list(b.defenders),
        "round": int(b.round),
        "last_damage_attacker": int(b.last_damage_attacker),
        "last_damage_defender": int(b.last_damage_defender),
    }


def _battle_from_dict(d: dict[str, Any]) -> Battle:
    return Battle(
        battle_id=d["battle_id"],
        attacker_country=d["attacker_country"],
        defender_country=d["defender_country"],
        location=_hex_from_key(d["location"]),
        attackers=list(d.get("attackers", [])),
        defenders=list(d.get("defenders", [])),
        round=int(d.get("round", 0)),
        last_damage_attacker=int(d.get("last_damage_attacker", 0)),
        last_damage_defender=int(d.get("last_damage_defender", 0)),
    )


def _offer_to_dict(o: PeaceOffer) -> dict[str, Any]:
    return {
        "offer_id": o.offer_id,
        "proposer": o.proposer,
        "target": o.target,
        "war_id": o.war_id,
        "provinces": [_hex_key(h) for h in o.provinces],
    }


def _offer_from_dict(d: dict[str, Any]) -> PeaceOffer:
    return PeaceOffer(
        offer_id=d["offer_id"],
        proposer=d["proposer"],
        target=d["target"],
        war_id=d["war_id"],
        provinces=[_hex_from_key(s) for s in d.get("provinces", [])],
    )


def _orders_to_list(orders: list[Order]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for o in orders:
        if isinstance(o, MoveOrder):
            out.append({"type": "move", "army_id": o.army_id, "dest": _hex_key(o.dest)})
        elif isinstance(o, RecruitOrder):
            out.append({"type": "recruit", "location": _hex_key(o.location), "unit_type": o.unit_type.value})
        elif isinstance(o, DeclareWarOrder):
            out.append({"type": "war", "target": o.target})
        elif isinstance(o, PeaceOfferOrder):
            out.append({"type": "peace", "target": o.target, "provinces": [_hex_key(h) for h in o.provinces]})
        elif isinstance(o, AcceptPeaceOrder):
            out.append({"type": "accept", "offer_id": o.offer_id})
        elif isinstance(o, DeclinePeaceOrder):
            out.append({"type": "decline", "offer_id": o.offer_id})
    return out


def _orders_from_list(items: list[dict[str, Any]]) -> list[Order]:
    created: list[Order] = []
    for it in items:
        t = it.get("type")
        if t == "move":
            created.append(MoveOrder(it["army_id"], _hex_from_key(it["dest"])))
        elif t == "recruit":
            created.append(RecruitOrder(_hex_from_key(it["location"]), UnitType(it["unit_type"])))
        elif t == "war":
            created.append(DeclareWarOrder(it["target"]))
        elif t == "peace":
            created.append(PeaceOfferOrder(it["target"], tuple(_hex_from_key(s) for s in it.get("provinces", []))))
        elif t == "accept":
            created.append(AcceptPeaceOrder(it["offer_id"]))
        elif t == "decline":
            created.append(DeclinePeaceOrder(it["offer_id"]))
        else:
            logger.warning("Dropping unknown order type %r", t)
    return created


def game_to_dict(game: GameState) -> dict[str, Any]:
    provinces = [
        _province_to_dict(p)
        for p in sorted(game.game_map.provinces.values(), key=lambda p: (p.hex.q, p.hex.r))
    ]
    wars = [
        {"war_id": w.war_id, "attacker": w.attacker, "defender": w.defender}
        for w in game.diplomacy.wars.values()
    ]

    return {
        "schema_version": SCHEMA_VERSION,
        "turn_number": int(game.turn_number),
        "tick_number": int(game.tick_number),
        "seed": game.seed,
        "player_country": game.player_country,
        "countries": [_country_to_dict(c) for c in game.countries.values()],
        "provinces": provinces,
        # army order is processing order, keep it
        "armies": [_army_to_dict(a) for a in game.armies.values()],
        "battles": [_battle_to_dict(b) for b in game.battles.values()],
        "wars": wars,
        "peace_offers": [_offer_to_dict(o) for o in game.diplomacy.peace_offers.values()],
        "pending_orders": {c: _orders_to_list(list(olist)) for c, olist in game.pending_orders.items()},
        "selected_army": dict(game.selected_army),
        "next_army_index": int(game.next_army_index),
        "next_battle_index": int(game.next_battle_index),
        "next_war_index": int(game.diplomacy.next_war_index),
        "next_offer_index": int(game.diplomacy.next_offer_index),
        "log": list(game.log),
    }


def game_from_dict(data: dict[str, Any]) -> GameState:
    if int(data.get("schema_version", 0)) != SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema_version: {data.get('schema_version')}")

    game_map = GameMap()
    for p_d in data.get("provinces", []):
        game_map.add_province(_province_from_dict(p_d))

    game = GameState(game_map=game_map, seed=data.get("seed", 0))
    game.turn_number = int(data.get("turn_number", 1))
    game.tick_number = int(data.get("tick_number", 0))

    for c_d in data.get("countries", []):
        c = _country_from_dict(c_d)
        game.countries[c.name] = c
    game.player_country = data.get("player_country")

    for a_d in data.get("armies", []):
        a = _army_from_dict(a_d)
        game.armies[a.army_id] = a

    for b_d in data.get("battles", []):
        b = _battle_from_dict(b_d)
        game.battles[b.battle_id] = b

    for w_d in data.get("wars", []):
        game.diplomacy.add_war(w_d["attacker"], w_d["defender"], war_id=w_d["war_id"])

    for o_d in data.get("peace_offers", []):
        o = _offer_from_dict(o_d)
        game.diplomacy.peace_offers[o.offer_id] = o

    # Derived indices come from the primary rows
    game.index.rebuild(game.armies.values())
    game.diplomacy.rebuild_relations()

    game.pending_orders = {c: _orders_from_list(list(items)) for c, items in data.get("pending_orders", {}).items()}
    game.selected_army = dict(data.get("selected_army", {}))
    game.next_army_index = int(data.get("next_army_index", len(game.armies) + 1))
    game.next_battle_index = int(data.get("next_battle_index", len(game.battles) + 1))
    game.diplomacy.next_war_index = int(data.get("next_war_index", len(game.diplomacy.wars) + 1))
    game.diplomacy.next_offer_index = int(data.get("next_offer_index", len(game.diplomacy.peace_offers) + 1))
    game.log = list(data.get("log", []))

    return game


def game_to_json(game: GameState) -> str:
    return json.dumps(game_to_dict(game), sort_keys=True)


def game_from_json(s: str) -> GameState:
    return game_from_dict(json.loads(s))
