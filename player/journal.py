"""Append-only journal of what happened during plays (SQLite).

The journal is for inspection only; nothing reads it back to resume a play.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS play_events (
    id TEXT PRIMARY KEY,
    seq INTEGER,
    play_id INTEGER,
    event_type TEXT,          -- "start" | "node" | "choice" | "rejected_choice" | "fetch" | "end" | "error"
    node_kind TEXT,
    detail TEXT,              -- JSON blob
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_play_events_play ON play_events (play_id, seq);
"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlayJournal:
    """Records play events in an SQLite database."""

    def __init__(self, db_path: str | Path):
        self._path = Path(db_path)
        self._db: aiosqlite.Connection | None = None
        self._seq = 0

    async def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        cursor = await self._db.execute("SELECT COALESCE(MAX(seq), 0) FROM play_events")
        row = await cursor.fetchone()
        self._seq = int(row[0]) if row else 0
        logger.debug("Play journal ready at %s", self._path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> PlayJournal:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def log_event(
        self,
        play_id: int,
        event_type: str,
        node_kind: str = "",
        detail: dict | None = None,
    ) -> str:
        row_id = str(uuid.uuid4())
        self._seq += 1
        await self._db.execute(
            "INSERT INTO play_events (id, seq, play_id, event_type, node_kind, detail, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (row_id, self._seq, play_id, event_type, node_kind, json.dumps(detail or {}), _now_iso()),
        )
        await self._db.commit()
        return row_id

    async def get_play_events(self, play_id: int) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM play_events WHERE play_id = ? ORDER BY seq ASC", (play_id,)
        )
        return await self._rows(cursor)

    async def get_recent_events(self, limit: int = 50, event_type: str | None = None) -> list[dict]:
        if event_type:
            cursor = await self._db.execute(
                "SELECT * FROM play_events WHERE event_type = ? ORDER BY seq DESC LIMIT ?",
                (event_type, limit),
            )
        else:
            cursor = await self._db.execute(
                "SELECT * FROM play_events ORDER BY seq DESC LIMIT ?", (limit,)
            )
        return await self._rows(cursor)

    @staticmethod
    async def _rows(cursor: aiosqlite.Cursor) -> list[dict]:
        rows = await cursor.fetchall()
        cols = [d[0] for d in cursor.description]
        out = []
        for row in rows:
            item = dict(zip(cols, row))
            item["detail"] = json.loads(item.get("detail") or "{}")
            out.append(item)
        return out
