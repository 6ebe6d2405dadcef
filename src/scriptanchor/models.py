"""Record shapes exchanged with the persistence collaborator.

Shots and scene headers are owned by the external store. The editor core only
reads shot records (to anchor them) and proposes new ones; it never rewrites
the ``selection_text`` of an existing shot.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShotType(str, Enum):
    """Shot framing vocabulary used by shot defaults."""

    WIDE = "Wide Shot"
    MEDIUM = "Medium Shot"
    CLOSE_UP = "Close-up"
    MASTER = "Master Shot"


class ShotAngle(str, Enum):
    """Camera angle vocabulary used by shot defaults."""

    EYE_LEVEL = "Eye Level"
    HIGH_ANGLE = "High Angle"


class ShotRecord(BaseModel):
    """A shot association as stored by the persistence collaborator.

    ``selection_text`` is an exact copy of the text the author selected when the
    shot was created. It is used purely as a matching key.
    """

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    id: str | int | None = None
    project_id: str | None = None
    scene_number: int = Field(ge=1)
    selection_text: str | None = None
    title: str = ""
    shot_type: str = ShotType.MEDIUM.value
    shot_angle: str = ShotAngle.EYE_LEVEL.value
    camera_movement: str = "Static"
    lens: str | None = None
    description: str | None = None
    priority: str = "Medium"
    status: str = "pending"
    order_index: int | None = None

    @field_validator("scene_number", mode="before")
    @classmethod
    def coerce_scene_number(cls, v: Any) -> Any:
        """Accept numeric strings coming back from loosely typed stores."""
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return v

    def to_record(self) -> dict[str, Any]:
        """Serialize for the store, leaving out unset identifiers."""
        return self.model_dump(exclude_none=True)


class SceneHeader(BaseModel):
    """Lightweight scene index entry, unique per (project, scene_number)."""

    scene_number: int = Field(ge=1)
    title: str
    description: str = ""


class ShotChangeKind(str, Enum):
    """Kinds of change events emitted by the shot feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ShotChangeEvent(BaseModel):
    """Notification that the remote shot list for a project changed.

    The payload is informational only: consumers always re-fetch.
    """

    project_id: str
    kind: ShotChangeKind
    shot_id: str | int | None = None
