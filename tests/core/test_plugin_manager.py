"""Tests for the PluginManager class."""

from pathlib import Path

import pytest

from tagsieve.core.plugin import NoBackendError, PluginError, PluginManager
from tagsieve.plugin import TagsievePlugin, hookimpl
from tagsieve.store.memory import MemoryMessage, MemoryStore


class MockStorePlugin(TagsievePlugin):
    """A mock store backend for testing."""

    name = "mock"
    version = "1.0.0"
    description = "A mock store backend"

    def __init__(self):
        self.opened = []

    @hookimpl
    def open_store(self, database, writable):
        self.opened.append((database, writable))
        return MemoryStore()


class ObserverPlugin(TagsievePlugin):
    """A plugin that only observes filter applications."""

    name = "observer"
    version = "2.0.0"

    def __init__(self):
        self.seen = []

    @hookimpl
    def filter_applied(self, filter_name, message):
        self.seen.append(filter_name)


class FakeEntryPoint:
    """Stand-in for importlib.metadata.EntryPoint."""

    def __init__(self, name, target):
        self.name = name
        self._target = target

    def load(self):
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


def test_plugin_manager_creation():
    """PluginManager should initialize with empty plugin list."""
    assert PluginManager().list_plugins() == []


def test_register_plugin():
    manager = PluginManager()
    manager.register(MockStorePlugin())
    assert "mock" in manager.list_plugins()


def test_unregister_plugin():
    manager = PluginManager()
    manager.register(MockStorePlugin())
    manager.unregister("mock")

    assert manager.list_plugins() == []
    assert manager.get_plugin("mock") is None


def test_get_plugin_info():
    manager = PluginManager()
    manager.register(MockStorePlugin())

    assert manager.get_plugin_info("mock") == {
        "name": "mock",
        "version": "1.0.0",
        "description": "A mock store backend",
    }
    assert manager.get_plugin_info("missing") is None


def test_open_store():
    manager = PluginManager()
    plugin = MockStorePlugin()
    manager.register(plugin)

    store = manager.open_store("mock", Path("/mail"), writable=False)

    assert isinstance(store, MemoryStore)
    assert plugin.opened == [(Path("/mail"), False)]


def test_open_store_unknown_backend():
    manager = PluginManager()
    manager.register(MockStorePlugin())

    with pytest.raises(NoBackendError, match="Available plugins: mock"):
        manager.open_store("imap", Path("/mail"), writable=True)


def test_open_store_plugin_without_store():
    manager = PluginManager()
    manager.register(ObserverPlugin())

    with pytest.raises(NoBackendError, match="does not provide a mail store"):
        manager.open_store("observer", Path("/mail"), writable=True)


def test_no_backend_is_plugin_error():
    assert issubclass(NoBackendError, PluginError)


def test_notify_filter_applied():
    manager = PluginManager()
    observer = ObserverPlugin()
    manager.register(observer)
    manager.register(MockStorePlugin())

    manager.notify_filter_applied("finance", MemoryMessage("m@example.com", "t"))

    assert observer.seen == ["finance"]


def test_discover_registers_entry_points(monkeypatch):
    monkeypatch.setattr(
        "tagsieve.core.plugin.entry_points",
        lambda group: [FakeEntryPoint("mock", MockStorePlugin)],
    )
    manager = PluginManager()

    assert manager.discover() == ["mock"]
    assert manager.get_plugin("mock") is not None


def test_discover_skips_broken_plugins(monkeypatch, caplog):
    monkeypatch.setattr(
        "tagsieve.core.plugin.entry_points",
        lambda group: [
            FakeEntryPoint("broken", ImportError("no module")),
            FakeEntryPoint("observer", ObserverPlugin),
        ],
    )
    manager = PluginManager()

    with caplog.at_level("WARNING", logger="tagsieve"):
        discovered = manager.discover()

    assert discovered == ["observer"]
    assert "Cannot load plugin broken" in caplog.text


def test_discover_skips_registered_names(monkeypatch):
    monkeypatch.setattr(
        "tagsieve.core.plugin.entry_points",
        lambda group: [FakeEntryPoint("mock", MockStorePlugin)],
    )
    manager = PluginManager()
    manager.register(MockStorePlugin())

    assert manager.discover() == []
