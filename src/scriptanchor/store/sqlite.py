"""SQLite-backed store used by the command line.

Scripts are stored as their flattened block records, one row per block in
order. Scene headers are unique per ``(project_id, scene_number)``.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from scriptanchor.config import get_logger
from scriptanchor.exceptions import PersistenceError, ShotCreationError
from scriptanchor.models import (
    SceneHeader,
    ShotChangeEvent,
    ShotChangeKind,
    ShotRecord,
)
from scriptanchor.store.base import ShotChangeListener, Unsubscribe

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS script_blocks (
    project_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    block_id TEXT NOT NULL,
    block_type TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (project_id, position)
);

CREATE TABLE IF NOT EXISTS scene_headers (
    project_id TEXT NOT NULL,
    scene_number INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    UNIQUE (project_id, scene_number)
);

CREATE TABLE IF NOT EXISTS shots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id TEXT NOT NULL,
    scene_number INTEGER NOT NULL,
    selection_text TEXT,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_shots_project ON shots(project_id, scene_number);
"""

# Columns stored outside the JSON payload
_SHOT_COLUMNS = {"id", "project_id", "scene_number", "selection_text"}


class SQLiteScriptStore:
    """Store implementation over a single SQLite file."""

    def __init__(self, db_path: str | Path, timeout: float = 30.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._listeners: dict[str, list[ShotChangeListener]] = {}
        self._initialized = False

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection and run the block in one transaction.

        Raises:
            PersistenceError: If SQLite reports an error
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise PersistenceError(
                "Could not open store", original_error=e
            ) from e
        conn.row_factory = sqlite3.Row
        try:
            if not self._initialized:
                conn.executescript(SCHEMA)
                self._initialized = True
            conn.execute("BEGIN")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.error("Transaction failed, rolling back", error=str(e))
            conn.rollback()
            raise PersistenceError(
                "Store transaction failed", original_error=e
            ) from e
        finally:
            conn.close()

    # Scripts

    def _load_script(self, project_id: str) -> list[dict[str, Any]]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT block_id, block_type, content FROM script_blocks "
                "WHERE project_id = ? ORDER BY position",
                (project_id,),
            ).fetchall()
        return [
            {
                "id": row["block_id"],
                "type": row["block_type"],
                "content": row["content"],
            }
            for row in rows
        ]

    def _save_script(self, project_id: str, records: Sequence[dict[str, Any]]) -> bool:
        with self.transaction() as conn:
            conn.execute(
                "DELETE FROM script_blocks WHERE project_id = ?", (project_id,)
            )
            conn.executemany(
                "INSERT INTO script_blocks "
                "(project_id, position, block_id, block_type, content) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        project_id,
                        position,
                        str(record["id"]),
                        str(record["type"]),
                        str(record.get("content") or ""),
                    )
                    for position, record in enumerate(records)
                ],
            )
        logger.debug("Script rows written", project_id=project_id, rows=len(records))
        return True

    def _upsert_scene_headers(
        self, project_id: str, headers: Sequence[SceneHeader]
    ) -> bool:
        with self.transaction() as conn:
            conn.executemany(
                "INSERT INTO scene_headers "
                "(project_id, scene_number, title, description) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(project_id, scene_number) DO UPDATE SET "
                "title = excluded.title, description = excluded.description",
                [
                    (project_id, h.scene_number, h.title, h.description)
                    for h in headers
                ],
            )
        return True

    def load_scene_headers(self, project_id: str) -> list[SceneHeader]:
        """Return stored scene headers ordered by scene number."""
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT scene_number, title, description FROM scene_headers "
                "WHERE project_id = ? ORDER BY scene_number",
                (project_id,),
            ).fetchall()
        return [SceneHeader(**dict(row)) for row in rows]

    # Shots

    @staticmethod
    def _row_to_shot(row: sqlite3.Row) -> ShotRecord:
        data = json.loads(row["data"])
        data.update(
            id=row["id"],
            project_id=row["project_id"],
            scene_number=row["scene_number"],
            selection_text=row["selection_text"],
        )
        return ShotRecord(**data)

    def _load_shots(self, project_id: str) -> list[ShotRecord]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM shots WHERE project_id = ? ORDER BY id",
                (project_id,),
            ).fetchall()
        return [self._row_to_shot(row) for row in rows]

    def _create_shot(self, record: ShotRecord) -> ShotRecord:
        if not record.project_id:
            raise ShotCreationError(
                "Shot has no project", operation="create_shot"
            )
        payload = {
            k: v for k, v in record.to_record().items() if k not in _SHOT_COLUMNS
        }
        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO shots "
                    "(project_id, scene_number, selection_text, data) "
                    "VALUES (?, ?, ?, ?)",
                    (
                        record.project_id,
                        record.scene_number,
                        record.selection_text,
                        json.dumps(payload),
                    ),
                )
                row = conn.execute(
                    "SELECT * FROM shots WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()
        except PersistenceError as e:
            raise ShotCreationError(
                "Could not create shot",
                operation="create_shot",
                project_id=record.project_id,
                original_error=e.original_error,
            ) from e
        return self._row_to_shot(row)

    # Async interface

    async def load_script(self, project_id: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._load_script, project_id)

    async def save_script(
        self, project_id: str, records: Sequence[dict[str, Any]]
    ) -> bool:
        return await asyncio.to_thread(self._save_script, project_id, list(records))

    async def upsert_scene_headers(
        self, project_id: str, headers: Sequence[SceneHeader]
    ) -> bool:
        return await asyncio.to_thread(
            self._upsert_scene_headers, project_id, list(headers)
        )

    async def load_shots_for_project(self, project_id: str) -> list[ShotRecord]:
        return await asyncio.to_thread(self._load_shots, project_id)

    async def create_shot(self, record: ShotRecord) -> ShotRecord:
        created = await asyncio.to_thread(self._create_shot, record)
        self._publish(
            ShotChangeEvent(
                project_id=created.project_id or "",
                kind=ShotChangeKind.INSERT,
                shot_id=created.id,
            )
        )
        return created

    def subscribe(
        self, project_id: str, listener: ShotChangeListener
    ) -> Unsubscribe:
        """Register a listener for shot changes made through this store."""
        self._listeners.setdefault(project_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(project_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _publish(self, event: ShotChangeEvent) -> None:
        for listener in list(self._listeners.get(event.project_id, [])):
            listener(event)
