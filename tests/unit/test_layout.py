"""Unit tests for the deterministic screenplay layout."""

from scriptanchor.editor.blocks import Block, BlockType, Scene
from scriptanchor.editor.layout import ScreenplayLayout, wrapped_line_count


def test_wrapped_line_count():
    assert wrapped_line_count("", 10) == 1
    assert wrapped_line_count("one two three", 7) == 2
    assert wrapped_line_count("a\nb", 10) == 2


def test_blocks_stack_top_to_bottom():
    layout = ScreenplayLayout()
    scene = Scene(
        heading="INT. HALL",
        blocks=(
            Block(BlockType.ACTION, "Short.", id="a"),
            Block(BlockType.DIALOGUE, "Line one\nLine two", id="b"),
        ),
    )
    boxes = layout.block_boxes([scene])
    assert boxes["a"].top == layout.scene_header_height
    assert boxes["a"].height == layout.line_height
    assert boxes["b"].top == boxes["a"].bottom + layout.block_spacing
    assert boxes["b"].height == 2 * layout.line_height


def test_collapsed_scene_renders_no_blocks():
    layout = ScreenplayLayout()
    first = Scene(
        heading="INT. A", blocks=(Block(content="x", id="a"),), collapsed=True
    )
    second = Scene(heading="INT. B", blocks=(Block(content="y", id="b"),))
    boxes = layout.block_boxes([first, second])
    assert "a" not in boxes
    assert boxes["b"].top == (
        2 * layout.scene_header_height + layout.scene_spacing
    )
