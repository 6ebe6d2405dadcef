"""ScriptAnchor: screenplay block editor core with shot anchoring."""

from scriptanchor.editor import (
    Block,
    BlockType,
    EditorSession,
    Scene,
    SelectionAnchor,
    ShotIndicator,
    normalize_text,
)
from scriptanchor.exceptions import ScriptAnchorError
from scriptanchor.models import ShotRecord

__version__ = "0.1.0"
__author__ = "ScriptAnchor Contributors"

__all__ = [
    "Block",
    "BlockType",
    "EditorSession",
    "Scene",
    "ScriptAnchorError",
    "SelectionAnchor",
    "ShotIndicator",
    "ShotRecord",
    "__version__",
    "normalize_text",
]
