"""Unit tests for the editor session."""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from scriptanchor.editor.autosave import SaveState
from scriptanchor.editor.blocks import BlockType, flatten_script
from scriptanchor.editor.classification import Caret
from scriptanchor.editor.indicators import BlockBox
from scriptanchor.editor.selection import TextPosition, TextSelection
from scriptanchor.editor.session import EditorSession
from scriptanchor.exceptions import PersistenceError, ShotCreationError
from scriptanchor.models import ShotRecord


class FixedLayout:
    """Layout provider that stacks blocks in fixed 10px rows."""

    def block_boxes(self, scenes):
        return {
            block.id: BlockBox(10.0 * i, 10.0 * i + 8)
            for i, block in enumerate(b for s in scenes for b in s.blocks)
        }


def select(block_id, start, end, end_block=None):
    return TextSelection(
        TextPosition(block_id, start), TextPosition(end_block or block_id, end)
    )


@pytest_asyncio.fixture
async def session(store, fast_settings, two_scene_script):
    await store.save_script("proj", flatten_script(two_scene_script))
    events = {"anchors": [], "indicators": [], "states": [], "notices": []}
    editor = EditorSession(
        "proj",
        store,
        settings=fast_settings,
        layout=FixedLayout(),
        on_anchor_ready=events["anchors"].append,
        on_indicators_ready=events["indicators"].append,
        on_save_state_changed=events["states"].append,
        on_notice=events["notices"].append,
    )
    editor.events = events
    await editor.load()
    await editor.settle()
    yield editor
    await editor.close()


class TestLoading:
    """Test loading a project."""

    @pytest.mark.asyncio
    async def test_load_does_not_arm_autosave(self, session, store):
        assert [s.id for s in session.scenes] == ["s1", "s2"]
        assert session.save_state is SaveState.IDLE
        await asyncio.sleep(0.1)
        assert session.events["states"] == []

    @pytest.mark.asyncio
    async def test_empty_project_gets_placeholder_scene(self, store, fast_settings):
        editor = EditorSession("empty", store, settings=fast_settings)
        scenes = await editor.load()
        assert len(scenes) == 1
        assert scenes[0].heading == "Scene 1"
        assert scenes[0].blocks[0].type is BlockType.ACTION
        await editor.close()

    @pytest.mark.asyncio
    async def test_shot_load_failure_is_reported(self, store, fast_settings):
        store.load_shots_for_project = AsyncMock(
            side_effect=PersistenceError("offline", operation="load_shots")
        )
        notices = []
        editor = EditorSession(
            "proj", store, settings=fast_settings, on_notice=notices.append
        )
        await editor.load()
        assert editor.shots == []
        assert isinstance(notices[0], PersistenceError)
        await editor.close()


class TestEditing:
    """Test edits arm autosave and persist."""

    @pytest.mark.asyncio
    async def test_typing_autosaves(self, session, store):
        caret = session.insert_text(Caret("b4", 6), " Anyone?")
        assert caret == Caret("b4", 14)
        assert session.save_state is SaveState.PENDING

        await asyncio.sleep(0.15)

        assert session.save_state is SaveState.IDLE
        saved = [r for r in store.scripts["proj"] if r["id"] == "b4"]
        assert saved[0]["content"] == "Hello? Anyone?"
        assert store.scene_headers[("proj", 2)].title == "EXT. STREET - DAY"

    @pytest.mark.asyncio
    async def test_paragraph_break_and_cycle(self, session):
        caret = session.paragraph_break(Caret("b3", 5))
        block = session.scenes[0].get_block(caret.block_id)
        assert block.type is BlockType.DIALOGUE

        session.cycle_type(caret)
        block = session.scenes[0].get_block(caret.block_id)
        assert block.type is BlockType.TRANSITION

    @pytest.mark.asyncio
    async def test_set_block_type(self, session):
        session.set_block_type("b1", BlockType.CHARACTER)
        assert session.scenes[0].get_block("b1").type is BlockType.CHARACTER

    @pytest.mark.asyncio
    async def test_scene_edits(self, session, store):
        scene = session.add_scene("INT. ATTIC", index=0)
        session.rename_scene(scene.id, "INT. CELLAR")
        session.move_scene(scene.id, 2)
        assert [s.id for s in session.scenes] == ["s1", "s2", scene.id]
        session.delete_scene("s1")
        assert [s.id for s in session.scenes] == ["s2", scene.id]

        assert await session.save_now() is True
        headers = {n: h.title for (_, n), h in store.scene_headers.items()}
        assert headers[1] == "EXT. STREET - DAY"
        assert headers[2] == "INT. CELLAR"

    @pytest.mark.asyncio
    async def test_headers_for_deleted_trailing_scenes_remain(self, session, store):
        assert await session.save_now() is True
        session.delete_scene("s1")
        assert await session.save_now() is True

        assert len(session.scenes) == 1
        assert store.scene_headers[("proj", 1)].title == "EXT. STREET - DAY"
        # upsert-only index: the old scene 2 row is never removed
        assert store.scene_headers[("proj", 2)].title == "EXT. STREET - DAY"

    @pytest.mark.asyncio
    async def test_collapse_does_not_save(self, session):
        session.toggle_collapsed("s1")
        assert session.scenes[0].collapsed is True
        assert session.save_state is SaveState.IDLE


class TestShots:
    """Test selections, shot creation and indicators."""

    @pytest.mark.asyncio
    async def test_selection_creates_anchor_and_shot(self, session, store):
        anchor = session.release_selection(select("b1", 9, 9, end_block="b2"))
        assert anchor.text == "creaks open.\nShe steps"
        assert session.events["anchors"] == [anchor]
        assert session.shots_for_anchor() == []

        created = await session.create_shot()
        assert created.id is not None
        assert created.shot_type == "Wide Shot"
        assert session.anchor is None

        await session.settle()
        (indicator,) = session.indicators
        assert indicator.block_ids == ("b1", "b2")
        assert store.shots["proj"][0].selection_text == "creaks open.\nShe steps"

    @pytest.mark.asyncio
    async def test_short_selection_gives_no_anchor(self, session):
        assert session.release_selection(select("b1", 0, 2)) is None
        assert session.events["anchors"] == []
        assert await session.create_shot() is None

    @pytest.mark.asyncio
    async def test_existing_shots_for_anchor(self, session, store):
        await store.create_shot(
            ShotRecord(project_id="proj", scene_number=1, selection_text="hello?")
        )
        await session.refresh_shots()
        anchor = session.release_selection(select("b4", 0, 6))
        assert [s.selection_text for s in session.shots_for_anchor(anchor)] == [
            "hello?"
        ]

    @pytest.mark.asyncio
    async def test_overrides_applied(self, session):
        anchor = session.release_selection(select("b3", 0, 5))
        created = await session.create_shot(anchor, title="Reaction")
        assert created.title == "Reaction"
        assert created.shot_type == "Close-up"

    @pytest.mark.asyncio
    async def test_failed_creation_adds_nothing(self, session, store):
        store.create_shot = AsyncMock(side_effect=RuntimeError("denied"))
        session.release_selection(select("b4", 0, 6))

        assert await session.create_shot() is None
        await session.settle()

        assert session.shots == []
        assert session.indicators == []
        (notice,) = session.events["notices"]
        assert isinstance(notice, ShotCreationError)

    @pytest.mark.asyncio
    async def test_anchor_follows_scene_renumbering(self, session, store):
        anchor = session.release_selection(select("b5", 0, 9))
        assert anchor.scene_number == 2

        session.delete_scene("s1")
        assert session.anchor.scene_number == 1

        created = await session.create_shot()
        assert created.scene_number == 1
        assert store.shots["proj"][0].scene_number == 1
        await session.settle()
        (indicator,) = session.indicators
        assert indicator.block_ids == ("b5",)

    @pytest.mark.asyncio
    async def test_held_anchor_rebound_after_move(self, session):
        anchor = session.release_selection(select("b5", 0, 9))
        session.move_scene("s2", 0)

        record = session.propose_shot(anchor)
        assert record.scene_number == 1

    @pytest.mark.asyncio
    async def test_anchor_dropped_with_its_scene(self, session, store):
        anchor = session.release_selection(select("b5", 0, 9))
        session.delete_scene("s2")

        assert session.anchor is None
        assert await session.create_shot(anchor) is None
        assert store.shots.get("proj", []) == []

    @pytest.mark.asyncio
    async def test_remote_change_triggers_refetch(self, session, store):
        await store.create_shot(
            ShotRecord(project_id="proj", scene_number=2, selection_text="CUT TO:")
        )
        await session.settle()
        (indicator,) = session.indicators
        assert indicator.scene_id == "s2"

        shot_id = store.shots["proj"][0].id
        await store.delete_shot(shot_id)
        await session.settle()
        assert session.indicators == []

    @pytest.mark.asyncio
    async def test_stale_shot_survives_edit(self, session, store):
        await store.create_shot(
            ShotRecord(project_id="proj", scene_number=1, selection_text="SARAH")
        )
        await session.settle()
        assert len(session.indicators) == 1

        session.delete_backward(Caret("b3", 5))
        await session.settle()
        assert session.indicators == []
        assert store.shots["proj"][0].selection_text == "SARAH"

    @pytest.mark.asyncio
    async def test_deleting_scene_renumbers_shots(self, session, store):
        await store.create_shot(
            ShotRecord(project_id="proj", scene_number=1, selection_text="bakery")
        )
        await session.settle()
        assert session.indicators == []

        session.delete_scene("s1")
        await session.settle()
        (indicator,) = session.indicators
        assert indicator.scene_id == "s2"
        assert indicator.scene_number == 1
