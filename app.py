from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

import db
from sim.commands import apply_command, describe_armies, describe_diplomacy
from sim.persistence import game_from_json, game_to_json
from sim.render_ascii import render_map_ascii
from sim.turn_engine import GameState

from scenarios.simple_scenario import build_game

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Serve with `uvicorn app:app --reload` (installed by the "server" extra).
app = FastAPI(title="Hexwar Sim")
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def _load_game(game_id: str) -> GameState:
    s = db.get_game_json(game_id)
    if s is None:
        raise HTTPException(status_code=404, detail="No such game")
    return game_from_json(s)


def _save_game(game_id: str, game: GameState) -> None:
    db.save_game_json(game_id, game_to_json(game), game.turn_number)


def _new_game() -> str:
    game_id = str(uuid.uuid4())
    game = build_game()
    db.create_game(game_id, game_to_json(game), game.turn_number)
    return game_id


def _tail(lines: list[str], n: int = 50) -> list[str]:
    if n <= 0:
        return []
    return lines[-n:]


def _viewer_country(game: GameState, viewer: Optional[str]) -> str:
    if viewer:
        name = game.resolve_country(viewer)
        if name is not None:
            return name
    if game.player_country is None:
        raise HTTPException(status_code=400, detail="viewer is required")
    return game.player_country


def _snapshot_save(game_id: str, game: GameState, name: str) -> list[str]:
    db.save_snapshot(game_id, name, game_to_json(game), game.turn_number)
    return [f"Saved snapshot '{name}' (turn {game.turn_number})"]


def _snapshot_load(game_id: str, game: GameState, name: str) -> list[str]:
    s = db.load_snapshot(game_id, name)
    if s is None:
        return [f"ERROR: no such snapshot '{name}'"]
    restored = game_from_json(s)
    # Callers hold a reference to `game` and save it afterwards
    vars(game).clear()
    vars(game).update(vars(restored))
    return [f"Loaded snapshot '{name}' (turn {game.turn_number})"]


def _snapshot_delete(game_id: str, game: GameState, name: str) -> list[str]:
    if not db.delete_snapshot(game_id, name):
        return [f"ERROR: no such snapshot '{name}'"]
    return [f"Deleted snapshot '{name}'"]


# Web-only commands taking one snapshot name; everything else goes to sim.commands
SNAPSHOT_COMMANDS = {
    "save": _snapshot_save,
    "load": _snapshot_load,
    "delete-save": _snapshot_delete,
}


def _apply_command(game_id: str, game: GameState, viewer: str, command: str) -> list[str]:
    parts = command.strip().split()
    head = parts[0].lower() if parts else ""

    handler = SNAPSHOT_COMMANDS.get(head)
    if handler is not None:
        if len(parts) != 2:
            return [f"Usage: {head} <name>"]
        return handler(game_id, game, parts[1])

    if head == "list-saves":
        names = db.list_snapshots(game_id)
        return ["Snapshots: " + ", ".join(names)] if names else ["(no snapshots)"]

    return apply_command(game, _viewer_country(game, viewer), command)


def _ui_state(game_id: str, viewer: str) -> dict[str, Any]:
    game = _load_game(game_id)
    country = _viewer_country(game, viewer)
    coffer = game.countries[country].coffer if country in game.countries else 0.0

    return {
        "game_id": game_id,
        "viewer": country,
        "player_country": game.player_country,
        "countries": sorted(game.countries),
        "turn_number": int(game.turn_number),
        "tick_number": int(game.tick_number),
        "coffer": round(coffer, 2),
        "map_text": render_map_ascii(game, country),
        "log_tail": "\n".join(_tail(list(game.log), 60)),
        "orders": [str(o) for o in game.list_orders(country)],
        "armies": describe_armies(game, country),
        "diplomacy": describe_diplomacy(game),
    }


@app.get("/", response_class=HTMLResponse)
def index(request: Request, game_id: Optional[str] = None, viewer: str = ""):
    # If no game exists yet, create one and redirect to it.
    if game_id is None:
        new_id = _new_game()
        return RedirectResponse(url=f"/?game_id={new_id}&viewer={viewer}", status_code=302)

    state = _ui_state(game_id, viewer)
    return templates.TemplateResponse(
        request,
        "index.html",
        {**state, "games": db.list_game_ids()},
    )


@app.get("/games")
def list_games():
    return {"games": db.list_games()}


@app.post("/games")
def create_game():
    return {"game_id": _new_game()}


@app.get("/games/{game_id}/state")
def get_state(game_id: str, viewer: str = ""):
    return _ui_state(game_id, viewer)


@app.post("/games/{game_id}/command")
def post_command(game_id: str, payload: Dict[str, Any]):
    viewer = str(payload.get("viewer", ""))
    command = str(payload.get("command", ""))
    game = _load_game(game_id)

    out = _apply_command(game_id, game, viewer, command)
    _save_game(game_id, game)

    return {"events": out, "state": _ui_state(game_id, viewer)}


@app.post("/ui/command", response_class=HTMLResponse)
def ui_command(
    request: Request,
    game_id: str = Form(...),
    viewer: str = Form(""),
    command: str = Form(""),
):
    game = _load_game(game_id)
    events = _apply_command(game_id, game, viewer, command)
    _save_game(game_id, game)

    state = _ui_state(game_id, viewer)
    return templates.TemplateResponse(
        request,
        "index.html",
        {**state, "games": db.list_game_ids(), "last_events": "\n".join(events)},
    )
