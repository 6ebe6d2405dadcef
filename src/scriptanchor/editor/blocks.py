"""Block model for a script.

A script is an ordered tuple of :class:`Scene` values; each scene owns an
ordered tuple of typed :class:`Block` values. Both are immutable, and every
edit is a pure function returning a new script. Scene numbers are never
stored: a scene's number is its 1-based position.

The persisted form is flat: one ``SCENE_HEADING`` record ahead of each
scene's body records. ``SCENE_HEADING`` never appears inside a scene body.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, TypeAlias
from uuid import uuid4

from scriptanchor.config import get_logger
from scriptanchor.exceptions import ValidationError
from scriptanchor.models import SceneHeader

logger = get_logger(__name__)

DEFAULT_SCENE_HEADING = "Scene 1"

# INT. / EXT. / INT./EXT. / I/E. / EST. prefixes
SCENE_HEADING_PATTERN = re.compile(
    r"^\s*(INT\.?/EXT\.?|EXT\.?/INT\.?|I/E\.?|INT\.|EXT\.|INT |EXT |EST\.)",
    re.IGNORECASE,
)


class BlockType(str, Enum):
    """Screenplay block types."""

    SCENE_HEADING = "scene_heading"
    ACTION = "action"
    CHARACTER = "character"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"
    TRANSITION = "transition"


def new_id() -> str:
    """Create an opaque identifier for a block or scene."""
    return str(uuid4())


@dataclass(frozen=True)
class Block:
    """One typed paragraph of screenplay text."""

    type: BlockType = BlockType.ACTION
    content: str = ""
    id: str = field(default_factory=new_id)

    def to_record(self) -> dict[str, str]:
        """Serialize to the flat persisted form."""
        return {"id": self.id, "type": self.type.value, "content": self.content}


@dataclass(frozen=True)
class Scene:
    """A heading plus an ordered body of blocks."""

    heading: str
    blocks: tuple[Block, ...] = ()
    id: str = field(default_factory=new_id)
    collapsed: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.blocks, tuple):
            object.__setattr__(self, "blocks", tuple(self.blocks))
        for block in self.blocks:
            if block.type is BlockType.SCENE_HEADING:
                raise ValidationError(
                    message="Scene body cannot contain a scene heading block",
                    hint="Start a new scene instead",
                    details={"scene_id": self.id, "block_id": block.id},
                )

    def find_block(self, block_id: str) -> Block | None:
        """Return the block with ``block_id`` or None."""
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def index_of(self, block_id: str) -> int:
        """Return the position of ``block_id`` within the body.

        Raises:
            ValidationError: If the block is not part of this scene
        """
        for index, block in enumerate(self.blocks):
            if block.id == block_id:
                return index
        raise ValidationError(
            message=f"Block {block_id} is not part of scene {self.id}",
            details={"scene_id": self.id, "block_id": block_id},
        )

    def get_block(self, block_id: str) -> Block:
        """Return the block with ``block_id``, raising if it is absent."""
        return self.blocks[self.index_of(block_id)]


Script: TypeAlias = tuple[Scene, ...]


# Block operations


def replace_block(scene: Scene, block: Block) -> Scene:
    """Swap in ``block`` for the block with the same id."""
    index = scene.index_of(block.id)
    blocks = scene.blocks[:index] + (block,) + scene.blocks[index + 1 :]
    return replace(scene, blocks=blocks)


def insert_block_after(scene: Scene, block_id: str | None, block: Block) -> Scene:
    """Insert ``block`` after ``block_id``, or at the start when it is None."""
    index = 0 if block_id is None else scene.index_of(block_id) + 1
    blocks = scene.blocks[:index] + (block,) + scene.blocks[index:]
    return replace(scene, blocks=blocks)


def remove_block(scene: Scene, block_id: str) -> Scene:
    """Drop the block with ``block_id`` from the scene body."""
    index = scene.index_of(block_id)
    return replace(scene, blocks=scene.blocks[:index] + scene.blocks[index + 1 :])


# Scene operations


def scene_number(scenes: Sequence[Scene], scene_id: str) -> int | None:
    """Return the positional 1-based number of a scene, or None."""
    for index, scene in enumerate(scenes):
        if scene.id == scene_id:
            return index + 1
    return None


def find_scene(scenes: Sequence[Scene], scene_id: str) -> Scene:
    """Return the scene with ``scene_id``.

    Raises:
        ValidationError: If no such scene exists
    """
    for scene in scenes:
        if scene.id == scene_id:
            return scene
    raise ValidationError(
        message=f"Scene {scene_id} does not exist",
        details={"scene_id": scene_id, "scene_count": len(scenes)},
    )


def scene_for_block(
    scenes: Sequence[Scene], block_id: str
) -> tuple[int, Scene] | None:
    """Return ``(scene_number, scene)`` for the scene owning ``block_id``."""
    for index, scene in enumerate(scenes):
        if scene.find_block(block_id) is not None:
            return index + 1, scene
    return None


def replace_scene(scenes: Sequence[Scene], scene: Scene) -> Script:
    """Swap in ``scene`` for the scene with the same id."""
    find_scene(scenes, scene.id)
    return tuple(scene if s.id == scene.id else s for s in scenes)


def add_scene(
    scenes: Sequence[Scene],
    heading: str,
    index: int | None = None,
    blocks: Iterable[Block] | None = None,
) -> tuple[Script, Scene]:
    """Insert a new scene at ``index`` (appended when None).

    A scene created without blocks gets one empty action block so the author
    has somewhere to type.

    Returns:
        The new script and the created scene
    """
    body = tuple(blocks) if blocks is not None else (Block(BlockType.ACTION, ""),)
    scene = Scene(heading=heading, blocks=body)
    position = len(scenes) if index is None else max(0, min(index, len(scenes)))
    return tuple(scenes[:position]) + (scene,) + tuple(scenes[position:]), scene


def delete_scene(scenes: Sequence[Scene], scene_id: str) -> Script:
    """Remove a scene; every following scene is implicitly renumbered."""
    find_scene(scenes, scene_id)
    return tuple(s for s in scenes if s.id != scene_id)


def move_scene(scenes: Sequence[Scene], scene_id: str, index: int) -> Script:
    """Move a scene to a new 0-based position."""
    scene = find_scene(scenes, scene_id)
    remaining = [s for s in scenes if s.id != scene_id]
    position = max(0, min(index, len(remaining)))
    remaining.insert(position, scene)
    return tuple(remaining)


def rename_scene(scenes: Sequence[Scene], scene_id: str, heading: str) -> Script:
    """Change a scene's heading."""
    return replace_scene(scenes, replace(find_scene(scenes, scene_id), heading=heading))


def toggle_collapsed(scenes: Sequence[Scene], scene_id: str) -> Script:
    """Flip a scene between collapsed and expanded."""
    scene = find_scene(scenes, scene_id)
    return replace_scene(scenes, replace(scene, collapsed=not scene.collapsed))


# Persisted form


def looks_like_scene_heading(text: str) -> bool:
    """Return True for text starting with a slug-line prefix such as ``INT.``."""
    return bool(SCENE_HEADING_PATTERN.match(text or ""))


def coerce_block_type(value: Any) -> BlockType:
    """Read a block type from a persisted record.

    Unknown types fall back to ACTION so a damaged record never blocks loading.
    """
    if isinstance(value, BlockType):
        return value
    key = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return BlockType(key)
    except ValueError:
        logger.warning("Unknown block type, treating as action", block_type=value)
        return BlockType.ACTION


def flatten_script(scenes: Iterable[Scene]) -> list[dict[str, str]]:
    """Serialize scenes to the flat record list.

    Each scene contributes a synthetic heading record (carrying the scene id)
    followed by its body records.
    """
    records: list[dict[str, str]] = []
    for scene in scenes:
        records.append(
            {
                "id": scene.id,
                "type": BlockType.SCENE_HEADING.value,
                "content": scene.heading,
            }
        )
        records.extend(block.to_record() for block in scene.blocks)
    return records


def _implicit_scene(blocks: list[Block], default_heading: str) -> Scene:
    """Build a scene for body blocks that precede any heading record."""
    for index, block in enumerate(blocks):
        if looks_like_scene_heading(block.content):
            logger.warning(
                "Script has no leading scene heading, promoting heading-like block",
                block_id=block.id,
            )
            body = blocks[:index] + blocks[index + 1 :]
            return Scene(heading=block.content.strip(), blocks=tuple(body), id=block.id)

    logger.warning(
        "Script has no leading scene heading, using placeholder",
        heading=default_heading,
    )
    return Scene(heading=default_heading, blocks=tuple(blocks))


def parse_script(
    records: Iterable[Mapping[str, Any]],
    default_heading: str = DEFAULT_SCENE_HEADING,
) -> Script:
    """Rebuild scenes from the flat record list.

    Args:
        records: Ordered ``{id, type, content}`` records
        default_heading: Heading for an implicit first scene with no
            heading-like content

    Returns:
        The parsed script
    """
    scenes: list[Scene] = []
    heading: Mapping[str, Any] | None = None
    body: list[Block] = []

    def close_scene() -> None:
        if heading is not None:
            scenes.append(
                Scene(
                    heading=str(heading.get("content") or ""),
                    blocks=tuple(body),
                    id=str(heading.get("id") or new_id()),
                )
            )
        elif body:
            scenes.append(_implicit_scene(body, default_heading))

    for record in records:
        block_type = coerce_block_type(record.get("type"))
        if block_type is BlockType.SCENE_HEADING:
            close_scene()
            heading = record
            body = []
            continue
        body.append(
            Block(
                type=block_type,
                content=str(record.get("content") or ""),
                id=str(record.get("id") or new_id()),
            )
        )
    close_scene()

    logger.debug("Parsed script", scene_count=len(scenes))
    return tuple(scenes)


def scene_headers(
    scenes: Sequence[Scene], description_length: int = 200
) -> list[SceneHeader]:
    """Derive one scene index record per scene, numbered by position."""
    headers = []
    for index, scene in enumerate(scenes):
        description = next(
            (" ".join(b.content.split()) for b in scene.blocks if b.content.strip()),
            "",
        )
        headers.append(
            SceneHeader(
                scene_number=index + 1,
                title=scene.heading,
                description=description[:description_length],
            )
        )
    return headers
