"""In-process store, used by tests and embedding applications."""

from __future__ import annotations

import copy
from collections.abc import Sequence
from itertools import count
from typing import Any

from scriptanchor.config import get_logger
from scriptanchor.models import (
    SceneHeader,
    ShotChangeEvent,
    ShotChangeKind,
    ShotRecord,
)
from scriptanchor.store.base import ShotChangeListener, Unsubscribe

logger = get_logger(__name__)


class InMemoryScriptStore:
    """Keeps scripts, scene headers and shots in dictionaries.

    Every shot insert, update or delete is published to the listeners
    registered through :meth:`subscribe`.
    """

    def __init__(self) -> None:
        self.scripts: dict[str, list[dict[str, Any]]] = {}
        self.scene_headers: dict[tuple[str, int], SceneHeader] = {}
        self.shots: dict[str, list[ShotRecord]] = {}
        self._listeners: dict[str, list[ShotChangeListener]] = {}
        self._ids = count(1)

    async def load_script(self, project_id: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self.scripts.get(project_id, []))

    async def save_script(
        self, project_id: str, records: Sequence[dict[str, Any]]
    ) -> bool:
        self.scripts[project_id] = copy.deepcopy(list(records))
        return True

    async def upsert_scene_headers(
        self, project_id: str, headers: Sequence[SceneHeader]
    ) -> bool:
        for header in headers:
            self.scene_headers[(project_id, header.scene_number)] = header
        return True

    async def load_shots_for_project(self, project_id: str) -> list[ShotRecord]:
        return [shot.model_copy() for shot in self.shots.get(project_id, [])]

    async def create_shot(self, record: ShotRecord) -> ShotRecord:
        created = record.model_copy(update={"id": next(self._ids)})
        self.shots.setdefault(created.project_id or "", []).append(created)
        self._publish(created.project_id or "", ShotChangeKind.INSERT, created.id)
        return created.model_copy()

    async def update_shot(
        self, shot_id: str | int, **changes: Any
    ) -> ShotRecord | None:
        for project_id, shots in self.shots.items():
            for index, shot in enumerate(shots):
                if shot.id == shot_id:
                    shots[index] = shot.model_copy(update=changes)
                    self._publish(project_id, ShotChangeKind.UPDATE, shot_id)
                    return shots[index].model_copy()
        return None

    async def delete_shot(self, shot_id: str | int) -> bool:
        for project_id, shots in self.shots.items():
            remaining = [shot for shot in shots if shot.id != shot_id]
            if len(remaining) != len(shots):
                self.shots[project_id] = remaining
                self._publish(project_id, ShotChangeKind.DELETE, shot_id)
                return True
        return False

    def subscribe(
        self, project_id: str, listener: ShotChangeListener
    ) -> Unsubscribe:
        self._listeners.setdefault(project_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(project_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _publish(
        self, project_id: str, kind: ShotChangeKind, shot_id: str | int | None
    ) -> None:
        event = ShotChangeEvent(project_id=project_id, kind=kind, shot_id=shot_id)
        for listener in list(self._listeners.get(project_id, [])):
            listener(event)
