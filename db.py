from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str((Path(__file__).parent / "hexwar.db").resolve())
DB_PATH_ENV = "HEXWAR_DB_PATH"

# One row per live game plus named snapshots of it; state is the JSON from sim.persistence.
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS games (
        id TEXT PRIMARY KEY,
        turn_number INTEGER NOT NULL DEFAULT 1,
        state_json TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS snapshots (
        game_id TEXT NOT NULL,
        name TEXT NOT NULL,
        turn_number INTEGER NOT NULL DEFAULT 1,
        state_json TEXT NOT NULL,
        created_at TEXT NOT NULL,
        PRIMARY KEY (game_id, name)
    )
    """,
)

_ready_paths: set[str] = set()


def db_path() -> str:
    # Read on every call so tests can point the app at a temporary file.
    return os.environ.get(DB_PATH_ENV, DEFAULT_DB_PATH)


@contextmanager
def _session() -> Iterator[sqlite3.Connection]:
    """Short-lived connection: schema ensured, committed on success, always closed."""
    path = db_path()
    con = sqlite3.connect(path)
    try:
        if path not in _ready_paths:
            for ddl in SCHEMA:
                con.execute(ddl)
            _ready_paths.add(path)
            logger.info("Using DB path: %s", path)
        yield con
        con.commit()
    finally:
        con.close()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first_column(row: Optional[tuple]) -> Optional[Any]:
    return None if row is None else row[0]


# -----------------------------
# Games
# -----------------------------
def list_game_ids() -> list[str]:
    return [g["game_id"] for g in list_games()]


def list_games() -> list[dict[str, Any]]:
    with _session() as con:
        rows = con.execute("SELECT id, turn_number, updated_at FROM games ORDER BY updated_at DESC").fetchall()
    return [{"game_id": gid, "turn_number": turn, "updated_at": stamp} for gid, turn, stamp in rows]


def create_game(game_id: str, state_json: str, turn_number: int = 1) -> None:
    with _session() as con:
        con.execute(
            "INSERT INTO games(id, turn_number, state_json, updated_at) VALUES(?,?,?,?)",
            (game_id, turn_number, state_json, _now_iso()),
        )
    logger.info("Created game %s", game_id)


def get_game_json(game_id: str) -> Optional[str]:
    with _session() as con:
        return _first_column(con.execute("SELECT state_json FROM games WHERE id = ?", (game_id,)).fetchone())


def save_game_json(game_id: str, state_json: str, turn_number: int = 1) -> None:
    """Upsert: a game saved under an unknown id is created."""
    with _session() as con:
        con.execute(
            """
            INSERT INTO games(id, turn_number, state_json, updated_at) VALUES(?,?,?,?)
            ON CONFLICT(id) DO UPDATE SET
                turn_number = excluded.turn_number,
                state_json = excluded.state_json,
                updated_at = excluded.updated_at
            """,
            (game_id, turn_number, state_json, _now_iso()),
        )


# -----------------------------
# Snapshots
# -----------------------------
def save_snapshot(game_id: str, name: str, state_json: str, turn_number: int = 1) -> None:
    with _session() as con:
        con.execute(
            "INSERT OR REPLACE INTO snapshots(game_id, name, turn_number, state_json, created_at) VALUES(?,?,?,?,?)",
            (game_id, name, turn_number, state_json, _now_iso()),
        )
    logger.info("Saved snapshot %s/%s (turn %d)", game_id, name, turn_number)


def load_snapshot(game_id: str, name: str) -> Optional[str]:
    with _session() as con:
        row = con.execute(
            "SELECT state_json FROM snapshots WHERE game_id = ? AND name = ?",
            (game_id, name),
        ).fetchone()
    return _first_column(row)


def list_snapshots(game_id: str) -> list[str]:
    with _session() as con:
        rows = con.execute(
            "SELECT name FROM snapshots WHERE game_id = ? ORDER BY created_at DESC",
            (game_id,),
        ).fetchall()
    return [name for (name,) in rows]


def delete_snapshot(game_id: str, name: str) -> bool:
    with _session() as con:
        cur = con.execute("DELETE FROM snapshots WHERE game_id = ? AND name = ?", (game_id, name))
        return cur.rowcount > 0
