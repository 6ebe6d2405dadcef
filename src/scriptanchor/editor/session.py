"""Editing session: the adapter between an editing surface and the core.

The surface forwards keystroke commands and selection releases; the session
applies them to the block model, arms autosave, and recomputes shot
indicators once layout has settled. Consumers render from three callbacks:
``on_anchor_ready``, ``on_indicators_ready`` and ``on_save_state_changed``;
persistence failures are reported through ``on_notice``.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
from collections.abc import Callable, Coroutine
from typing import Any

from scriptanchor.config import ScriptAnchorSettings, get_logger, get_settings
from scriptanchor.editor import blocks as model
from scriptanchor.editor import classification
from scriptanchor.editor.autosave import AutosaveCoordinator, SaveState
from scriptanchor.editor.blocks import BlockType, Scene, Script
from scriptanchor.editor.classification import Caret
from scriptanchor.editor.defaults import propose_shot
from scriptanchor.editor.indicators import (
    ShotIndicator,
    locate_indicators,
    shots_matching,
)
from scriptanchor.editor.layout import LayoutProvider, ScreenplayLayout
from scriptanchor.editor.selection import (
    ScreenPosition,
    SelectionAnchor,
    TextSelection,
    resolve_selection,
)
from scriptanchor.exceptions import (
    PersistenceError,
    ScriptAnchorError,
    ShotCreationError,
    ValidationError,
)
from scriptanchor.models import ShotChangeEvent, ShotRecord
from scriptanchor.store.base import ScriptStore, Unsubscribe

logger = get_logger(__name__)


class EditorSession:
    """One editor instance over one project's script."""

    def __init__(
        self,
        project_id: str,
        store: ScriptStore,
        *,
        settings: ScriptAnchorSettings | None = None,
        layout: LayoutProvider | None = None,
        on_anchor_ready: Callable[[SelectionAnchor], Any] | None = None,
        on_indicators_ready: Callable[[list[ShotIndicator]], Any] | None = None,
        on_save_state_changed: Callable[[SaveState], Any] | None = None,
        on_notice: Callable[[ScriptAnchorError], Any] | None = None,
    ) -> None:
        self.project_id = project_id
        self.store = store
        self.settings = settings or get_settings()
        self.layout = layout or ScreenplayLayout()
        self._on_anchor_ready = on_anchor_ready
        self._on_indicators_ready = on_indicators_ready
        self._on_notice = on_notice

        self._scenes: Script = ()
        self._shots: list[ShotRecord] = []
        self._anchor: SelectionAnchor | None = None
        self._indicators: list[ShotIndicator] = []
        self._indicator_task: asyncio.Task[None] | None = None
        self._refetch_task: asyncio.Task[None] | None = None
        self._unsubscribe: Unsubscribe | None = None

        self.autosave = AutosaveCoordinator(
            project_id,
            store,
            snapshot=lambda: self._scenes,
            delay=self.settings.autosave_delay,
            description_length=self.settings.scene_description_length,
            on_state_changed=on_save_state_changed,
            on_error=self._notify,
        )

    @property
    def scenes(self) -> Script:
        return self._scenes

    @property
    def shots(self) -> list[ShotRecord]:
        return list(self._shots)

    @property
    def anchor(self) -> SelectionAnchor | None:
        return self._anchor

    @property
    def indicators(self) -> list[ShotIndicator]:
        return list(self._indicators)

    @property
    def save_state(self) -> SaveState:
        return self.autosave.state

    def _notify(self, error: ScriptAnchorError) -> None:
        if self._on_notice is not None:
            self._on_notice(error)

    # Loading

    async def load(self) -> Script:
        """Load the script and shots; loading never arms autosave."""
        records = await self.store.load_script(self.project_id)
        scenes = model.parse_script(records, self.settings.default_scene_heading)
        if not scenes:
            scenes, _ = model.add_scene((), self.settings.default_scene_heading)
        self._scenes = scenes
        self._shots = await self._fetch_shots()
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(
                self.project_id, self.handle_shot_change
            )
        logger.info(
            "Script loaded",
            project_id=self.project_id,
            scene_count=len(scenes),
            shot_count=len(self._shots),
        )
        self.schedule_indicator_refresh()
        return scenes

    async def _fetch_shots(self) -> list[ShotRecord]:
        try:
            return list(await self.store.load_shots_for_project(self.project_id))
        except PersistenceError as e:
            logger.error(
                "Could not load shots, keeping previous list",
                project_id=self.project_id,
                error=e.message,
            )
            self._notify(e)
            return list(self._shots)

    # Block edits

    def _commit(self, scenes: Script, persist: bool = True) -> None:
        self._scenes = scenes
        if persist:
            self.autosave.notify_mutation()
        self.schedule_indicator_refresh()

    def _edit_block(
        self,
        caret: Caret,
        edit: Callable[[Scene, Caret], tuple[Scene, Caret]],
    ) -> Caret:
        owner = model.scene_for_block(self._scenes, caret.block_id)
        if owner is None:
            raise ValidationError(
                message=f"Block {caret.block_id} is not part of the script",
                details={"block_id": caret.block_id},
            )
        scene, new_caret = edit(owner[1], caret)
        self._commit(model.replace_scene(self._scenes, scene))
        return new_caret

    def insert_text(self, caret: Caret, text: str) -> Caret:
        """Type text at the caret."""
        return self._edit_block(
            caret, lambda scene, c: classification.insert_text(scene, c, text)
        )

    def delete_backward(self, caret: Caret) -> Caret:
        """Backspace at the caret, merging blocks at a block start."""
        return self._edit_block(caret, classification.delete_backward)

    def soft_break(self, caret: Caret) -> Caret:
        """Insert a line break inside the current block."""
        return self._edit_block(caret, classification.soft_break)

    def paragraph_break(self, caret: Caret) -> Caret:
        """Split the current block and continue in a new one."""
        return self._edit_block(caret, classification.paragraph_break)

    def cycle_type(self, caret: Caret) -> Caret:
        """Cycle the type of the block holding the caret."""
        return self._edit_block(caret, classification.cycle_block_type)

    def set_block_type(self, block_id: str, block_type: BlockType) -> None:
        """Explicitly set the type of a block."""
        self._edit_block(
            Caret(block_id),
            lambda scene, c: (
                classification.set_block_type(scene, c.block_id, block_type),
                c,
            ),
        )

    # Scene edits

    def add_scene(self, heading: str, index: int | None = None) -> Scene:
        """Insert a new scene with one empty action block."""
        scenes, scene = model.add_scene(self._scenes, heading, index)
        self._commit(scenes)
        return scene

    def delete_scene(self, scene_id: str) -> None:
        """Delete a scene; following scenes are renumbered by position."""
        self._commit(model.delete_scene(self._scenes, scene_id))
        self._anchor = self._current_anchor(self._anchor)

    def move_scene(self, scene_id: str, index: int) -> None:
        """Move a scene to a new 0-based position."""
        self._commit(model.move_scene(self._scenes, scene_id, index))
        self._anchor = self._current_anchor(self._anchor)

    def rename_scene(self, scene_id: str, heading: str) -> None:
        """Change a scene heading."""
        self._commit(model.rename_scene(self._scenes, scene_id, heading))

    def toggle_collapsed(self, scene_id: str) -> None:
        """Collapse or expand a scene. Only the layout changes."""
        self._commit(model.toggle_collapsed(self._scenes, scene_id), persist=False)

    # Selection and shots

    def release_selection(
        self,
        selection: TextSelection,
        screen_position: ScreenPosition | None = None,
    ) -> SelectionAnchor | None:
        """Resolve a released selection and offer it to the UI."""
        anchor = resolve_selection(
            self._scenes,
            selection,
            min_length=self.settings.min_selection_length,
            screen_position=screen_position,
        )
        self._anchor = anchor
        if anchor is not None and self._on_anchor_ready is not None:
            self._on_anchor_ready(anchor)
        return anchor

    def clear_selection(self) -> None:
        self._anchor = None

    def _current_anchor(
        self, anchor: SelectionAnchor | None
    ) -> SelectionAnchor | None:
        """Rebind an anchor to its scene's number in the script as it is now.

        Returns None when the anchor's scene no longer exists.
        """
        anchor = anchor or self._anchor
        if anchor is None:
            return None
        number = model.scene_number(self._scenes, anchor.scene_id)
        if number is None:
            return None
        if number != anchor.scene_number:
            anchor = dataclasses.replace(anchor, scene_number=number)
        return anchor

    def shots_for_anchor(
        self, anchor: SelectionAnchor | None = None
    ) -> list[ShotRecord]:
        """Existing shots in the anchor's scene created from the same text."""
        anchor = self._current_anchor(anchor)
        if anchor is None:
            return []
        return shots_matching(self._shots, anchor.scene_number, anchor.text)

    def propose_shot(
        self, anchor: SelectionAnchor | None = None
    ) -> ShotRecord | None:
        """Unsaved shot record with defaults inferred from the anchor."""
        anchor = self._current_anchor(anchor)
        if anchor is None:
            return None
        return propose_shot(anchor, self.project_id, self._shots)

    async def create_shot(
        self, anchor: SelectionAnchor | None = None, **overrides: Any
    ) -> ShotRecord | None:
        """Create a shot for the anchor through the store.

        On failure nothing is added locally and a notice is raised, so no
        indicator appears for a shot that does not exist.
        """
        record = self.propose_shot(anchor)
        if record is None:
            return None
        if overrides:
            record = record.model_copy(update=overrides)

        try:
            created = await self.store.create_shot(record)
        except PersistenceError as e:
            logger.error(
                "Shot creation failed", project_id=self.project_id, error=e.message
            )
            self._notify(e)
            return None
        except Exception as e:
            error = ShotCreationError(
                "Store call failed",
                operation="create_shot",
                project_id=self.project_id,
                original_error=e,
            )
            logger.error(
                "Shot creation failed", project_id=self.project_id, error=str(e)
            )
            self._notify(error)
            return None

        logger.info(
            "Shot created",
            project_id=self.project_id,
            scene_number=created.scene_number,
            shot_id=created.id,
        )
        self._shots.append(created)
        self._anchor = None
        self.schedule_indicator_refresh()
        return created

    # Indicators

    def _schedule(
        self,
        current: asyncio.Task[None] | None,
        job: Callable[[], Coroutine[Any, Any, None]],
    ) -> asyncio.Task[None] | None:
        if current is not None and not current.done():
            current.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        return loop.create_task(job())

    async def _settle_then(self, action: Callable[[], Any]) -> None:
        await asyncio.sleep(self.settings.indicator_settle_delay)
        result = action()
        if asyncio.iscoroutine(result):
            await result

    def schedule_indicator_refresh(self) -> None:
        """Recompute indicators once the surface has repainted.

        Without a running event loop the recompute happens immediately.
        """
        task = self._schedule(
            self._indicator_task, lambda: self._settle_then(self.recompute_indicators)
        )
        if task is None:
            self.recompute_indicators()
        self._indicator_task = task

    def viewport_resized(self) -> None:
        self.schedule_indicator_refresh()

    def handle_shot_change(self, event: ShotChangeEvent) -> None:
        """Change-feed listener: re-fetch shots after the settle delay."""
        logger.debug(
            "Shot list changed remotely",
            project_id=self.project_id,
            kind=event.kind,
        )
        self._refetch_task = self._schedule(
            self._refetch_task, lambda: self._settle_then(self.refresh_shots)
        )

    async def refresh_shots(self) -> list[ShotIndicator]:
        """Re-fetch shots from the store and recompute indicators."""
        self._shots = await self._fetch_shots()
        return self.recompute_indicators()

    def recompute_indicators(self) -> list[ShotIndicator]:
        """Locate every shot group against the current layout."""
        boxes = self.layout.block_boxes(self._scenes)
        self._indicators = locate_indicators(self._scenes, self._shots, boxes)
        logger.debug(
            "Indicators recomputed",
            project_id=self.project_id,
            indicator_count=len(self._indicators),
        )
        if self._on_indicators_ready is not None:
            self._on_indicators_ready(list(self._indicators))
        return list(self._indicators)

    async def settle(self) -> None:
        """Wait for pending re-fetch and indicator work to finish."""
        for task in (self._refetch_task, self._indicator_task):
            if task is not None and not task.done():
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    # Saving

    async def save_now(self) -> bool:
        """Flush immediately, bypassing the debounce."""
        return await self.autosave.save_now()

    async def close(self) -> None:
        """Stop listening and cancel pending work without flushing."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in (self._refetch_task, self._indicator_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        await self.autosave.aclose()
