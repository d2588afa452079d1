"""Tests for the plugin hook specification.

Tests verify that:
- TagsieveHookSpec defines the store and notification hooks
- hookimpl decorator is available for plugins
- TagsievePlugin base class provides opt-out defaults
"""

from pathlib import Path

from tagsieve.plugin import TagsieveHookSpec, TagsievePlugin, hookimpl
from tagsieve.store.memory import MemoryMessage, MemoryStore


def test_hookspec_defines_required_hooks():
    """TagsieveHookSpec should define all hooks."""
    spec = TagsieveHookSpec()
    assert hasattr(spec, "open_store")
    assert hasattr(spec, "filter_applied")


def test_base_plugin_has_defaults():
    """TagsievePlugin should provide default implementations."""

    class TestPlugin(TagsievePlugin):
        name = "test"

    plugin = TestPlugin()
    assert plugin.open_store(Path("/mail"), writable=True) is None
    assert plugin.filter_applied("f", MemoryMessage("m@example.com", "t")) is None


def test_base_plugin_metadata():
    assert TagsievePlugin.name == "base"
    assert TagsievePlugin.version == "0.0.0"
    assert TagsievePlugin.description == ""


def test_plugin_can_override_hooks():
    """Subclasses should be able to provide a store."""
    store = MemoryStore()

    class StorePlugin(TagsievePlugin):
        name = "custom"

        @hookimpl
        def open_store(self, database, writable):
            return store

    assert StorePlugin().open_store(Path("/mail"), writable=False) is store
