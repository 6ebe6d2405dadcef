"""Initial field values for shots proposed from a selection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from scriptanchor.editor.blocks import BlockType
from scriptanchor.editor.selection import SelectionAnchor
from scriptanchor.models import ShotAngle, ShotRecord, ShotType


class ShotDefaults(NamedTuple):
    """Framing defaults for a new shot."""

    shot_type: ShotType
    shot_angle: ShotAngle


_DEFAULTS_BY_BLOCK_TYPE: dict[BlockType, ShotDefaults] = {
    BlockType.DIALOGUE: ShotDefaults(ShotType.MEDIUM, ShotAngle.EYE_LEVEL),
    BlockType.ACTION: ShotDefaults(ShotType.WIDE, ShotAngle.EYE_LEVEL),
    BlockType.CHARACTER: ShotDefaults(ShotType.CLOSE_UP, ShotAngle.EYE_LEVEL),
    BlockType.TRANSITION: ShotDefaults(ShotType.WIDE, ShotAngle.EYE_LEVEL),
    BlockType.PARENTHETICAL: ShotDefaults(ShotType.CLOSE_UP, ShotAngle.EYE_LEVEL),
    BlockType.SCENE_HEADING: ShotDefaults(ShotType.MASTER, ShotAngle.HIGH_ANGLE),
}
_FALLBACK = ShotDefaults(ShotType.MEDIUM, ShotAngle.EYE_LEVEL)


def infer_shot_defaults(block_type: BlockType | str | None) -> ShotDefaults:
    """Framing defaults for a selection that started in a ``block_type`` block."""
    try:
        key = BlockType(block_type)
    except ValueError:
        return _FALLBACK
    return _DEFAULTS_BY_BLOCK_TYPE.get(key, _FALLBACK)


def propose_shot(
    anchor: SelectionAnchor,
    project_id: str,
    existing: Sequence[ShotRecord] = (),
) -> ShotRecord:
    """Build an unsaved shot record for a selection anchor.

    Args:
        anchor: The released selection
        project_id: Project the shot belongs to
        existing: Shots already stored for the project

    Returns:
        A shot record with editable initial values
    """
    defaults = infer_shot_defaults(anchor.block_type)
    in_scene = sum(1 for shot in existing if shot.scene_number == anchor.scene_number)
    return ShotRecord(
        project_id=project_id,
        scene_number=anchor.scene_number,
        selection_text=anchor.text,
        title=f"Shot {in_scene + 1}",
        shot_type=defaults.shot_type.value,
        shot_angle=defaults.shot_angle.value,
        camera_movement="Static",
        priority="Medium",
        status="pending",
        order_index=len(existing) + 1,
    )
