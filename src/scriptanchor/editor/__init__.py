"""Screenplay block editor core: block model, anchoring and autosave."""

from scriptanchor.editor.autosave import AutosaveCoordinator, SaveState
from scriptanchor.editor.blocks import (
    Block,
    BlockType,
    Scene,
    Script,
    flatten_script,
    parse_script,
    scene_headers,
)
from scriptanchor.editor.classification import (
    Caret,
    classify_line,
    cycle_type,
    next_block_type,
    parse_plain_text,
)
from scriptanchor.editor.defaults import ShotDefaults, infer_shot_defaults, propose_shot
from scriptanchor.editor.indicators import (
    BlockBox,
    ShotGroup,
    ShotIndicator,
    group_shots,
    locate_indicators,
)
from scriptanchor.editor.layout import LayoutProvider, ScreenplayLayout
from scriptanchor.editor.selection import (
    ScreenPosition,
    SelectionAnchor,
    TextPosition,
    TextSelection,
    resolve_selection,
)
from scriptanchor.editor.session import EditorSession
from scriptanchor.editor.text import normalize_text, texts_match

__all__ = [
    "AutosaveCoordinator",
    "Block",
    "BlockBox",
    "BlockType",
    "Caret",
    "EditorSession",
    "LayoutProvider",
    "SaveState",
    "Scene",
    "ScreenPosition",
    "ScreenplayLayout",
    "Script",
    "SelectionAnchor",
    "ShotDefaults",
    "ShotGroup",
    "ShotIndicator",
    "TextPosition",
    "TextSelection",
    "classify_line",
    "cycle_type",
    "flatten_script",
    "group_shots",
    "infer_shot_defaults",
    "locate_indicators",
    "next_block_type",
    "normalize_text",
    "parse_plain_text",
    "parse_script",
    "propose_shot",
    "resolve_selection",
    "scene_headers",
    "texts_match",
]
