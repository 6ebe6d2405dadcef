"""Locate stored shot associations in the current block layout.

A shot remembers only the literal text it was created from. To show it again
the text is searched for in the scene as it reads *now*: block texts are
normalized and concatenated, the normalized selection text is found as a
substring, and the blocks that substring touches give the on-screen span.
Matching is best-effort: once the text is edited away the shot simply has no
indicator, and the shot record itself is left untouched in the store.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from scriptanchor.config import get_logger
from scriptanchor.editor.blocks import Block, Scene
from scriptanchor.editor.text import normalize_text, texts_match
from scriptanchor.models import ShotRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockBox:
    """Vertical extent of a rendered block, in pixels from the surface top."""

    top: float
    bottom: float

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class BlockSpan:
    """Offset range ``[start, end)`` of a block within the concatenated text."""

    block_id: str
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        """True when this span starts inside, ends inside or contains the range."""
        starts_inside = start <= self.start < end
        ends_inside = start < self.end <= end
        contains = self.start <= start and self.end >= end
        return starts_inside or ends_inside or contains


@dataclass(frozen=True)
class ShotGroup:
    """Shots that share one normalized selection text."""

    key: str
    selection_text: str
    shots: tuple[ShotRecord, ...]


@dataclass(frozen=True)
class ShotIndicator:
    """Where a group of shots currently renders."""

    scene_id: str
    scene_number: int
    selection_text: str
    top_offset: float
    height: float
    block_ids: tuple[str, ...]
    shots: tuple[ShotRecord, ...]

    @property
    def count(self) -> int:
        return len(self.shots)


def group_shots(shots: Iterable[ShotRecord]) -> list[ShotGroup]:
    """Group shots by normalized selection text, in first-seen order.

    Shots without selection text are not anchored to the script and are
    left out.
    """
    groups: dict[str, list[ShotRecord]] = {}
    for shot in shots:
        key = normalize_text(shot.selection_text)
        if not key:
            continue
        groups.setdefault(key, []).append(shot)
    return [
        ShotGroup(
            key=key,
            selection_text=members[0].selection_text or "",
            shots=tuple(members),
        )
        for key, members in groups.items()
    ]


def concatenate_blocks(blocks: Sequence[Block]) -> tuple[str, list[BlockSpan]]:
    """Join normalized block texts, each followed by one separator space.

    Blocks that normalize to nothing are skipped so an empty paragraph never
    breaks a match that crosses it.
    """
    parts: list[str] = []
    spans: list[BlockSpan] = []
    position = 0
    for block in blocks:
        text = normalize_text(block.content)
        if not text:
            continue
        spans.append(BlockSpan(block.id, position, position + len(text)))
        parts.append(text + " ")
        position += len(text) + 1
    return "".join(parts), spans


def find_matching_blocks(blocks: Sequence[Block], selection_text: str) -> list[str]:
    """Return ids of the blocks the selection text currently touches.

    An empty list means the text is no longer present.
    """
    needle = normalize_text(selection_text)
    if not needle:
        return []
    haystack, spans = concatenate_blocks(blocks)
    start = haystack.find(needle)
    if start < 0:
        return []
    end = start + len(needle)
    return [span.block_id for span in spans if span.overlaps(start, end)]


def locate_group(
    scene: Scene,
    number: int,
    group: ShotGroup,
    layout: Mapping[str, BlockBox],
) -> ShotIndicator | None:
    """Compute the indicator for one shot group, or None if it cannot be placed."""
    block_ids = find_matching_blocks(scene.blocks, group.selection_text)
    if not block_ids:
        logger.debug(
            "Shot text no longer present in scene",
            scene_number=number,
            shot_count=len(group.shots),
        )
        return None

    first, last = layout.get(block_ids[0]), layout.get(block_ids[-1])
    if first is None or last is None:
        return None

    return ShotIndicator(
        scene_id=scene.id,
        scene_number=number,
        selection_text=group.selection_text,
        top_offset=first.top,
        height=last.bottom - first.top,
        block_ids=tuple(block_ids),
        shots=group.shots,
    )


def locate_indicators(
    scenes: Sequence[Scene],
    shots: Iterable[ShotRecord],
    layout: Mapping[str, BlockBox],
) -> list[ShotIndicator]:
    """Recompute every shot indicator for the script.

    Shots are tied to scenes only through their scene number, which is
    positional: after scenes are deleted or reordered the same shot resolves
    against whichever scene now holds that number. Collapsed scenes render no
    blocks, so their shots get no indicator.

    Args:
        scenes: The current script
        shots: All shot records of the project
        layout: Rendered box of every visible block

    Returns:
        Indicators ordered by scene, then by first-seen shot group
    """
    by_scene: dict[int, list[ShotRecord]] = {}
    for shot in shots:
        by_scene.setdefault(shot.scene_number, []).append(shot)

    indicators: list[ShotIndicator] = []
    for index, scene in enumerate(scenes):
        number = index + 1
        if scene.collapsed or number not in by_scene:
            continue
        for group in group_shots(by_scene[number]):
            indicator = locate_group(scene, number, group, layout)
            if indicator is not None:
                indicators.append(indicator)
    return indicators


def shots_matching(
    shots: Iterable[ShotRecord], scene_number: int, text: str
) -> list[ShotRecord]:
    """Shots of one scene whose selection text normalizes equal to ``text``."""
    if not normalize_text(text):
        return []
    return [
        shot
        for shot in shots
        if shot.scene_number == scene_number
        and texts_match(shot.selection_text, text)
    ]
