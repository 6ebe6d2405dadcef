"""Turn a live text selection into a scene-scoped selection anchor."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from scriptanchor.config import get_logger
from scriptanchor.editor.blocks import BlockType, Scene, scene_for_block

logger = get_logger(__name__)

MIN_SELECTION_LENGTH = 3


@dataclass(frozen=True)
class TextPosition:
    """A character offset inside a rendered block."""

    block_id: str
    offset: int


@dataclass(frozen=True)
class TextSelection:
    """A live selection as reported by the editing surface.

    ``anchor`` is where the drag started and ``focus`` where it ended, so the
    two may be in reverse document order.
    """

    anchor: TextPosition
    focus: TextPosition

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus


@dataclass(frozen=True)
class ScreenPosition:
    """Where the surface wants to float the shot actions for an anchor."""

    top: float
    left: float = 0.0


@dataclass(frozen=True)
class SelectionAnchor:
    """Description of a released selection, scoped to one scene."""

    text: str
    block_type: BlockType
    scene_id: str
    scene_number: int
    screen_position: ScreenPosition | None = None


def _ordered(
    scene: Scene, selection: TextSelection
) -> tuple[TextPosition, TextPosition]:
    """Return the selection endpoints in document order."""
    anchor, focus = selection.anchor, selection.focus
    anchor_key = (scene.index_of(anchor.block_id), anchor.offset)
    focus_key = (scene.index_of(focus.block_id), focus.offset)
    return (anchor, focus) if anchor_key <= focus_key else (focus, anchor)


def selected_text(scene: Scene, start: TextPosition, end: TextPosition) -> str:
    """Extract the raw text between two ordered positions of one scene.

    Text from different blocks is joined with a newline, as rendered
    paragraphs are.
    """
    first = scene.index_of(start.block_id)
    last = scene.index_of(end.block_id)
    if first == last:
        return scene.blocks[first].content[start.offset : end.offset]

    parts = [scene.blocks[first].content[start.offset :]]
    parts.extend(block.content for block in scene.blocks[first + 1 : last])
    parts.append(scene.blocks[last].content[: end.offset])
    return "\n".join(parts)


def resolve_selection(
    scenes: Sequence[Scene],
    selection: TextSelection,
    min_length: int = MIN_SELECTION_LENGTH,
    screen_position: ScreenPosition | None = None,
) -> SelectionAnchor | None:
    """Map a released selection to a selection anchor.

    The selection must lie entirely inside one scene; anything else (unknown
    blocks, or endpoints in different scenes) yields None rather than an
    error. Selections whose trimmed text is shorter than ``min_length`` are
    ignored as incidental clicks.

    Args:
        scenes: The current script
        selection: The released selection
        min_length: Minimum number of selected characters
        screen_position: Optional placement hint passed through to the anchor

    Returns:
        The anchor, or None when no anchor should be offered
    """
    start_owner = scene_for_block(scenes, selection.anchor.block_id)
    end_owner = scene_for_block(scenes, selection.focus.block_id)
    if start_owner is None or end_owner is None or start_owner[1].id != end_owner[1].id:
        logger.debug("Selection outside a single scene, ignoring")
        return None

    number, scene = start_owner
    start, end = _ordered(scene, selection)
    text = selected_text(scene, start, end).strip()
    if len(text) < min_length:
        return None

    origin = scene.get_block(start.block_id)
    return SelectionAnchor(
        text=text,
        block_type=origin.type,
        scene_id=scene.id,
        scene_number=number,
        screen_position=screen_position,
    )
