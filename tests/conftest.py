"""Pytest configuration and fixtures."""

import pytest
from hypothesis import HealthCheck, settings

from scriptanchor.config import ScriptAnchorSettings, set_settings
from scriptanchor.editor.blocks import Block, BlockType, Scene
from scriptanchor.store.memory import InMemoryScriptStore

# Function-scoped autouse fixtures are shared by generated examples
settings.register_profile(
    "scriptanchor", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile("scriptanchor")


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test",
    )
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test",
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep every test away from user config files and the real environment."""
    for name in (
        "SCRIPTANCHOR_DATABASE_PATH",
        "SCRIPTANCHOR_AUTOSAVE_DELAY",
        "SCRIPTANCHOR_LOG_LEVEL",
        "SCRIPTANCHOR_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "scriptanchor.config.settings._get_config_paths", lambda: []
    )
    set_settings(None)
    yield
    set_settings(None)


@pytest.fixture
def fast_settings(tmp_path):
    """Settings with short delays so timing tests finish quickly."""
    return ScriptAnchorSettings(
        _env_file=None,
        database_path=tmp_path / "test.db",
        autosave_delay=0.05,
        indicator_settle_delay=0.0,
    )


@pytest.fixture
def store():
    return InMemoryScriptStore()


@pytest.fixture
def door_scene():
    """A kitchen scene whose action is split across two blocks."""
    return Scene(
        heading="INT. KITCHEN - NIGHT",
        blocks=(
            Block(BlockType.ACTION, "The door creaks open.", id="b1"),
            Block(BlockType.ACTION, "She steps inside.", id="b2"),
            Block(BlockType.CHARACTER, "SARAH", id="b3"),
            Block(BlockType.DIALOGUE, "Hello?", id="b4"),
        ),
        id="s1",
    )


@pytest.fixture
def two_scene_script(door_scene):
    street = Scene(
        heading="EXT. STREET - DAY",
        blocks=(
            Block(BlockType.ACTION, "Cars rush past the old bakery.", id="b5"),
            Block(BlockType.TRANSITION, "CUT TO:", id="b6"),
        ),
        id="s2",
    )
    return (door_scene, street)
