"""Unit tests for block type cycling, caret edits and plain-text import."""

import pytest

from scriptanchor.editor.blocks import Block, BlockType, Scene
from scriptanchor.editor.classification import (
    Caret,
    classify_line,
    cycle_block_type,
    cycle_type,
    delete_backward,
    insert_text,
    is_character_cue,
    next_block_type,
    paragraph_break,
    parse_plain_text,
    set_block_type,
    soft_break,
)
from scriptanchor.exceptions import ParseError, ValidationError


@pytest.fixture
def scene():
    return Scene(
        heading="INT. OFFICE - DAY",
        blocks=(
            Block(BlockType.ACTION, "Phones ring.", id="a"),
            Block(BlockType.CHARACTER, "MIKE", id="c"),
            Block(BlockType.DIALOGUE, "Not now.", id="d"),
        ),
        id="s",
    )


class TestTypeStateMachine:
    """Test cycling and the type that follows a paragraph break."""

    def test_five_presses_return_to_start(self):
        current = BlockType.ACTION
        seen = []
        for _ in range(5):
            current = cycle_type(current)
            seen.append(current)
        assert seen == [
            BlockType.CHARACTER,
            BlockType.PARENTHETICAL,
            BlockType.DIALOGUE,
            BlockType.TRANSITION,
            BlockType.ACTION,
        ]

    def test_scene_heading_cycles_to_action(self):
        assert cycle_type(BlockType.SCENE_HEADING) is BlockType.ACTION

    @pytest.mark.parametrize(
        ("current", "expected"),
        [
            (BlockType.CHARACTER, BlockType.DIALOGUE),
            (BlockType.PARENTHETICAL, BlockType.DIALOGUE),
            (BlockType.DIALOGUE, BlockType.ACTION),
            (BlockType.ACTION, BlockType.ACTION),
            (BlockType.TRANSITION, BlockType.ACTION),
        ],
    )
    def test_next_block_type(self, current, expected):
        assert next_block_type(current) is expected

    def test_cycle_block_keeps_caret(self, scene):
        caret = Caret("a", 3)
        updated, new_caret = cycle_block_type(scene, caret)
        assert updated.get_block("a").type is BlockType.CHARACTER
        assert new_caret == caret

    def test_set_block_type(self, scene):
        updated = set_block_type(scene, "a", BlockType.TRANSITION)
        assert updated.get_block("a").type is BlockType.TRANSITION

    def test_set_block_type_rejects_heading(self, scene):
        with pytest.raises(ValidationError):
            set_block_type(scene, "a", BlockType.SCENE_HEADING)


class TestCaretEdits:
    """Test text edits at the caret."""

    def test_insert_text(self, scene):
        updated, caret = insert_text(scene, Caret("a", 6), " all day")
        assert updated.get_block("a").content == "Phones all day ring."
        assert caret == Caret("a", 14)

    def test_insert_clamps_offset(self, scene):
        updated, caret = insert_text(scene, Caret("a", 99), "!")
        assert updated.get_block("a").content == "Phones ring.!"
        assert caret.offset == len("Phones ring.!")

    def test_soft_break_stays_in_block(self, scene):
        updated, caret = soft_break(scene, Caret("d", 4))
        assert updated.get_block("d").content == "Not \nnow."
        assert len(updated.blocks) == 3
        assert caret == Caret("d", 5)

    def test_paragraph_break_after_character_creates_dialogue(self, scene):
        updated, caret = paragraph_break(scene, Caret("c", 4))
        assert len(updated.blocks) == 4
        created = updated.blocks[2]
        assert created.type is BlockType.DIALOGUE
        assert created.content == ""
        assert caret == Caret(created.id, 0)

    def test_paragraph_break_splits_at_caret(self, scene):
        updated, _ = paragraph_break(scene, Caret("a", 7))
        assert updated.get_block("a").content == "Phones "
        assert updated.blocks[1].content == "ring."
        assert updated.blocks[1].type is BlockType.ACTION

    def test_delete_backward_removes_character(self, scene):
        updated, caret = delete_backward(scene, Caret("d", 3))
        assert updated.get_block("d").content == "No now."
        assert caret == Caret("d", 2)

    def test_delete_backward_merges_blocks(self, scene):
        updated, caret = delete_backward(scene, Caret("d", 0))
        assert [b.id for b in updated.blocks] == ["a", "c"]
        assert updated.get_block("c").content == "MIKENot now."
        assert updated.get_block("c").type is BlockType.CHARACTER
        assert caret == Caret("c", 4)

    def test_delete_backward_at_start_of_scene(self, scene):
        updated, caret = delete_backward(scene, Caret("a", 0))
        assert updated == scene
        assert caret == Caret("a", 0)

    def test_unknown_block(self, scene):
        with pytest.raises(ValidationError):
            insert_text(scene, Caret("missing", 0), "x")


class TestPlainTextClassification:
    """Test classify_line and parse_plain_text."""

    @pytest.mark.parametrize(
        ("line", "previous", "expected"),
        [
            ("INT. KITCHEN - NIGHT", None, BlockType.SCENE_HEADING),
            ("CUT TO:", None, BlockType.TRANSITION),
            ("FADE OUT.", None, BlockType.TRANSITION),
            ("SARAH", None, BlockType.CHARACTER),
            ("SARAH (V.O.)", None, BlockType.CHARACTER),
            ("(whispering)", BlockType.CHARACTER, BlockType.PARENTHETICAL),
            ("Hello?", BlockType.CHARACTER, BlockType.DIALOGUE),
            ("Anyone home?", BlockType.PARENTHETICAL, BlockType.DIALOGUE),
            ("The door creaks open.", None, BlockType.ACTION),
            ("BANG", BlockType.ACTION, BlockType.ACTION),
        ],
    )
    def test_classify_line(self, line, previous, expected):
        assert classify_line(line, previous) is expected

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("SARAH", True),
            ("DR. WHO", True),
            ("THE END:", False),
            ("123", False),
            ("Sarah", False),
            ("", False),
        ],
    )
    def test_is_character_cue(self, text, expected):
        assert is_character_cue(text) is expected

    def test_parse_plain_text(self):
        text = (
            "INT. KITCHEN - NIGHT\n"
            "\n"
            "The door creaks open.\n"
            "She steps inside.\n"
            "\n"
            "SARAH\n"
            "(whispering)\n"
            "Hello?\n"
            "Anyone home?\n"
            "\n"
            "CUT TO:\n"
        )
        records = parse_plain_text(text)
        assert [r["type"] for r in records] == [
            "scene_heading",
            "action",
            "character",
            "parenthetical",
            "dialogue",
            "transition",
        ]
        assert records[1]["content"] == "The door creaks open.\nShe steps inside."
        assert records[4]["content"] == "Hello?\nAnyone home?"
        assert all(r["id"] for r in records)

    def test_parse_plain_text_empty(self):
        with pytest.raises(ParseError):
            parse_plain_text("  \n\n ")
