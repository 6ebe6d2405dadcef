"""Debounced autosave of the block model.

State machine::

    idle --mutation--> pending --timer/save_now--> flushing --> idle
                          ^ mutation restarts the timer      |
                          +------- mutation during flush ----+

Only edits arm the timer; loading a script does not. While a flush runs,
further flushes are suppressed; edits made during the flush re-arm the timer
once it completes. A failed flush is logged and the coordinator returns to
idle with the edits still held locally for the next flush.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from scriptanchor.config import get_logger
from scriptanchor.editor.blocks import Scene, flatten_script, scene_headers
from scriptanchor.exceptions import PersistenceError
from scriptanchor.store.base import ScriptStore

logger = get_logger(__name__)


class SaveState(str, Enum):
    """Autosave states reported to the surrounding UI."""

    IDLE = "idle"
    PENDING = "pending"
    FLUSHING = "flushing"


class AutosaveCoordinator:
    """Flushes the current script to the store after a quiet period."""

    def __init__(
        self,
        project_id: str,
        store: ScriptStore,
        snapshot: Callable[[], Sequence[Scene]],
        delay: float = 2.0,
        description_length: int = 200,
        on_state_changed: Callable[[SaveState], Any] | None = None,
        on_error: Callable[[PersistenceError], Any] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            project_id: Project whose script is saved
            store: Persistence collaborator
            snapshot: Returns the script to save at flush time
            delay: Debounce window in seconds
            description_length: Max length of scene header descriptions
            on_state_changed: Called with every state transition
            on_error: Called when a flush fails
        """
        self.project_id = project_id
        self.store = store
        self.delay = delay
        self.description_length = description_length
        self._snapshot = snapshot
        self._on_state_changed = on_state_changed
        self._on_error = on_error
        self._state = SaveState.IDLE
        self._timer: asyncio.Task[None] | None = None
        self._flushing = False
        self._dirty = False
        self.flush_count = 0

    @property
    def state(self) -> SaveState:
        return self._state

    def _set_state(self, state: SaveState) -> None:
        if state is self._state:
            return
        logger.debug(
            "Autosave state changed",
            project_id=self.project_id,
            previous=self._state.value,
            state=state.value,
        )
        self._state = state
        if self._on_state_changed is not None:
            self._on_state_changed(state)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._debounce())

    async def _debounce(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        await self.flush()

    def notify_mutation(self) -> None:
        """Record that the block model changed; (re)starts the debounce timer.

        Must be called from within the running event loop.
        """
        self._dirty = True
        if self._flushing:
            # Re-armed when the running flush completes
            return
        self._arm_timer()
        self._set_state(SaveState.PENDING)

    async def save_now(self) -> bool:
        """Flush immediately, cancelling any pending timer."""
        self._cancel_timer()
        return await self.flush()

    async def flush(self) -> bool:
        """Write the current script and scene headers to the store.

        Returns:
            True if the store accepted both writes, False otherwise (including
            when the flush was suppressed because another one is running)
        """
        if self._flushing:
            logger.debug(
                "Flush already running, suppressed", project_id=self.project_id
            )
            return False

        self._flushing = True
        self._dirty = False
        self._set_state(SaveState.FLUSHING)
        scenes = tuple(self._snapshot())
        try:
            await self._write(scenes)
        except PersistenceError as e:
            logger.error(
                "Autosave failed, keeping local edits",
                project_id=self.project_id,
                operation=e.operation,
                error=e.message,
            )
            if self._on_error is not None:
                self._on_error(e)
            return False
        else:
            self.flush_count += 1
            logger.info(
                "Script saved",
                project_id=self.project_id,
                scene_count=len(scenes),
            )
            return True
        finally:
            self._flushing = False
            if self._dirty:
                self._arm_timer()
                self._set_state(SaveState.PENDING)
            else:
                self._set_state(SaveState.IDLE)

    async def _write(self, scenes: Sequence[Scene]) -> None:
        records = flatten_script(scenes)
        headers = scene_headers(scenes, self.description_length)
        operation = "save_script"
        try:
            saved = await self.store.save_script(self.project_id, records)
            if not saved:
                raise PersistenceError(
                    "Store rejected script save",
                    operation="save_script",
                    project_id=self.project_id,
                )
            operation = "upsert_scene_headers"
            upserted = await self.store.upsert_scene_headers(self.project_id, headers)
            if not upserted:
                raise PersistenceError(
                    "Store rejected scene header upsert",
                    operation="upsert_scene_headers",
                    project_id=self.project_id,
                )
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                "Store call failed",
                operation=operation,
                project_id=self.project_id,
                original_error=e,
            ) from e

    async def aclose(self) -> None:
        """Cancel any pending timer without flushing."""
        timer = self._timer
        self._cancel_timer()
        if timer is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await timer
