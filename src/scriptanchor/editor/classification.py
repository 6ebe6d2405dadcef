"""Block type classification for the editing surface.

Two things live here: the explicit state machine the author drives while
typing (type cycling and paragraph breaks), and the line classifier used to
turn free-typed plain text into typed blocks on import.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from scriptanchor.editor.blocks import (
    Block,
    BlockType,
    Scene,
    insert_block_after,
    looks_like_scene_heading,
    remove_block,
    replace_block,
)
from scriptanchor.exceptions import ParseError, ValidationError

CYCLE_ORDER: tuple[BlockType, ...] = (
    BlockType.ACTION,
    BlockType.CHARACTER,
    BlockType.PARENTHETICAL,
    BlockType.DIALOGUE,
    BlockType.TRANSITION,
)

TRANSITION_PATTERN = re.compile(
    r"^(?:[A-Z0-9 '.\-]+ TO:|FADE (?:IN|OUT)[.:]?|FADE TO BLACK\.?|CUT TO BLACK\.?)$"
)
CHARACTER_CUE_PATTERN = re.compile(r"^[A-Z0-9 .'\-#&]+(?:\s*\([^)]*\))?\s*\^?$")
MAX_CHARACTER_CUE_LENGTH = 50


@dataclass(frozen=True)
class Caret:
    """Caret position: a block and a character offset inside its content."""

    block_id: str
    offset: int = 0


def cycle_type(block_type: BlockType) -> BlockType:
    """Advance to the next type in the cycle order, wrapping around."""
    try:
        index = CYCLE_ORDER.index(block_type)
    except ValueError:
        return CYCLE_ORDER[0]
    return CYCLE_ORDER[(index + 1) % len(CYCLE_ORDER)]


def next_block_type(block_type: BlockType) -> BlockType:
    """Type of the block created by a paragraph break after ``block_type``.

    A character cue or parenthetical is followed by dialogue; everything else,
    dialogue included, is followed by action.
    """
    if block_type in (BlockType.CHARACTER, BlockType.PARENTHETICAL):
        return BlockType.DIALOGUE
    return BlockType.ACTION


def _clamp(offset: int, content: str) -> int:
    return max(0, min(offset, len(content)))


def set_block_type(scene: Scene, block_id: str, block_type: BlockType) -> Scene:
    """Explicitly set the type of one block."""
    if block_type is BlockType.SCENE_HEADING:
        raise ValidationError(
            message="Scene headings are edited through the scene, not a block",
            hint="Use rename_scene or add_scene",
            details={"scene_id": scene.id, "block_id": block_id},
        )
    block = scene.get_block(block_id)
    return replace_block(scene, replace(block, type=block_type))


def cycle_block_type(scene: Scene, caret: Caret) -> tuple[Scene, Caret]:
    """Cycle the type of the block holding the caret; the caret stays put."""
    block = scene.get_block(caret.block_id)
    updated = replace_block(scene, replace(block, type=cycle_type(block.type)))
    return updated, caret


def insert_text(scene: Scene, caret: Caret, text: str) -> tuple[Scene, Caret]:
    """Type ``text`` at the caret."""
    block = scene.get_block(caret.block_id)
    offset = _clamp(caret.offset, block.content)
    content = block.content[:offset] + text + block.content[offset:]
    updated = replace_block(scene, replace(block, content=content))
    return updated, Caret(block.id, offset + len(text))


def soft_break(scene: Scene, caret: Caret) -> tuple[Scene, Caret]:
    """Insert a line break inside the current block."""
    return insert_text(scene, caret, "\n")


def paragraph_break(scene: Scene, caret: Caret) -> tuple[Scene, Caret]:
    """Split the current block at the caret into a new block.

    Text after the caret moves into the new block, whose type follows
    :func:`next_block_type`. The caret lands at the start of the new block,
    which may be empty.
    """
    block = scene.get_block(caret.block_id)
    offset = _clamp(caret.offset, block.content)
    head, tail = block.content[:offset], block.content[offset:]
    created = Block(type=next_block_type(block.type), content=tail)
    updated = replace_block(scene, replace(block, content=head))
    updated = insert_block_after(updated, block.id, created)
    return updated, Caret(created.id, 0)


def delete_backward(scene: Scene, caret: Caret) -> tuple[Scene, Caret]:
    """Delete the character before the caret.

    At the start of a block the block is merged into the previous one, which
    keeps its type. At the start of the first block nothing happens.
    """
    index = scene.index_of(caret.block_id)
    block = scene.blocks[index]
    offset = _clamp(caret.offset, block.content)

    if offset > 0:
        content = block.content[: offset - 1] + block.content[offset:]
        return replace_block(scene, replace(block, content=content)), Caret(
            block.id, offset - 1
        )

    if index == 0:
        return scene, Caret(block.id, 0)

    previous = scene.blocks[index - 1]
    merged = replace(previous, content=previous.content + block.content)
    updated = replace_block(remove_block(scene, block.id), merged)
    return updated, Caret(previous.id, len(previous.content))


# Plain-text classification


def is_character_cue(text: str) -> bool:
    """Return True for an upper-case speaker cue such as ``SARAH (V.O.)``."""
    text = text.strip()
    if not text or len(text) > MAX_CHARACTER_CUE_LENGTH or text.endswith(":"):
        return False
    name = text.split("(", 1)[0]
    if not any(ch.isalpha() for ch in name):
        return False
    return bool(CHARACTER_CUE_PATTERN.match(text))


def classify_line(line: str, previous: BlockType | None = None) -> BlockType:
    """Classify one line of free-typed screenplay text.

    Args:
        line: The line to classify
        previous: Type of the line directly above it within the same
            paragraph, or None at the start of a paragraph

    Returns:
        The block type for the line
    """
    text = line.strip()
    if looks_like_scene_heading(text):
        return BlockType.SCENE_HEADING
    if TRANSITION_PATTERN.match(text):
        return BlockType.TRANSITION
    if previous in (BlockType.CHARACTER, BlockType.DIALOGUE, BlockType.PARENTHETICAL):
        if text.startswith("(") and text.endswith(")"):
            return BlockType.PARENTHETICAL
        return BlockType.DIALOGUE
    if previous is None and is_character_cue(text):
        return BlockType.CHARACTER
    return BlockType.ACTION


def parse_plain_text(text: str) -> list[dict[str, str]]:
    """Turn free-typed screenplay text into flat block records.

    Paragraphs are separated by blank lines. Consecutive action or dialogue
    lines within a paragraph are joined into one block with soft breaks.

    Raises:
        ParseError: If the text holds no screenplay content at all
    """
    if not text or not text.strip():
        raise ParseError(
            message="No screenplay content found",
            hint="The file is empty or contains only whitespace",
        )

    records: list[dict[str, str]] = []
    previous: BlockType | None = None

    for raw_line in text.splitlines():
        line = raw_line.rstrip()
        if not line.strip():
            previous = None
            continue

        block_type = classify_line(line, previous)
        if (
            previous is not None
            and block_type is previous
            and block_type in (BlockType.ACTION, BlockType.DIALOGUE)
        ):
            records[-1]["content"] += "\n" + line.strip()
        else:
            records.append(Block(type=block_type, content=line.strip()).to_record())
        previous = block_type

    return records
