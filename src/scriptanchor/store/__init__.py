"""Persistence collaborators for the editor core."""

from scriptanchor.store.base import ScriptStore, ShotChangeListener, Unsubscribe
from scriptanchor.store.memory import InMemoryScriptStore
from scriptanchor.store.sqlite import SQLiteScriptStore

__all__ = [
    "InMemoryScriptStore",
    "SQLiteScriptStore",
    "ScriptStore",
    "ShotChangeListener",
    "Unsubscribe",
]
