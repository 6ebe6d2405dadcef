"""Interface of the persistence collaborator consumed by the editor core."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from scriptanchor.models import SceneHeader, ShotChangeEvent, ShotRecord

ShotChangeListener = Callable[[ShotChangeEvent], Any]
Unsubscribe = Callable[[], None]


@runtime_checkable
class ScriptStore(Protocol):
    """Remote store for scripts, scene headers and shots.

    Operations either succeed or raise
    :class:`~scriptanchor.exceptions.PersistenceError`. ``save_script`` and
    ``upsert_scene_headers`` may also report failure by returning False.
    """

    async def load_script(self, project_id: str) -> list[dict[str, Any]]:
        """Return the flattened ``{id, type, content}`` records of a project."""
        ...

    async def save_script(
        self, project_id: str, records: Sequence[dict[str, Any]]
    ) -> bool:
        """Replace the flattened script of a project."""
        ...

    async def upsert_scene_headers(
        self, project_id: str, headers: Sequence[SceneHeader]
    ) -> bool:
        """Insert or update scene headers keyed by (project, scene_number)."""
        ...

    async def load_shots_for_project(self, project_id: str) -> list[ShotRecord]:
        """Return every shot of a project."""
        ...

    async def create_shot(self, record: ShotRecord) -> ShotRecord:
        """Persist a new shot and return it with its assigned id."""
        ...

    def subscribe(
        self, project_id: str, listener: ShotChangeListener
    ) -> Unsubscribe:
        """Call ``listener`` on every insert, update or delete of a shot."""
        ...
