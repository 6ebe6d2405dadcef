"""Deterministic screenplay layout.

Stands in for a real renderer when none is attached (the command line, tests):
each block is word-wrapped to the column width of its type and stacked
vertically, giving every visible block a :class:`BlockBox`.
"""

from __future__ import annotations

import textwrap
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from scriptanchor.editor.blocks import BlockType, Scene
from scriptanchor.editor.indicators import BlockBox

# Characters per line, after the usual screenplay indents
DEFAULT_COLUMN_WIDTHS: dict[BlockType, int] = {
    BlockType.SCENE_HEADING: 60,
    BlockType.ACTION: 60,
    BlockType.CHARACTER: 38,
    BlockType.PARENTHETICAL: 25,
    BlockType.DIALOGUE: 35,
    BlockType.TRANSITION: 20,
}


class LayoutProvider(Protocol):
    """Source of rendered block boxes for the current script."""

    def block_boxes(self, scenes: Sequence[Scene]) -> Mapping[str, BlockBox]:
        """Return the box of every rendered block, keyed by block id."""
        ...


def wrapped_line_count(text: str, width: int) -> int:
    """Number of rendered lines for ``text``; an empty block still takes one."""
    lines = 0
    for paragraph in text.split("\n"):
        lines += max(1, len(textwrap.wrap(paragraph, width=width)))
    return lines


@dataclass
class ScreenplayLayout:
    """Stacks scenes and blocks top to bottom in fixed-height lines."""

    line_height: float = 20.0
    block_spacing: float = 10.0
    scene_header_height: float = 40.0
    scene_spacing: float = 24.0
    column_widths: dict[BlockType, int] = field(
        default_factory=lambda: dict(DEFAULT_COLUMN_WIDTHS)
    )

    def block_boxes(self, scenes: Sequence[Scene]) -> dict[str, BlockBox]:
        boxes: dict[str, BlockBox] = {}
        top = 0.0
        for scene in scenes:
            top += self.scene_header_height
            if not scene.collapsed:
                for block in scene.blocks:
                    width = self.column_widths.get(block.type, 60)
                    height = wrapped_line_count(block.content, width) * self.line_height
                    boxes[block.id] = BlockBox(top=top, bottom=top + height)
                    top += height + self.block_spacing
            top += self.scene_spacing
        return boxes
