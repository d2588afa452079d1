"""Plugin management for tagsieve.

This module provides the PluginManager class that handles plugin discovery
via Python entry points, registration with pluggy and store backend
selection.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from pathlib import Path

import pluggy

from tagsieve.errors import TagsieveError
from tagsieve.plugin import TagsieveHookSpec, TagsievePlugin
from tagsieve.store.base import MailStore, StoreMessage

logger = logging.getLogger(__name__)

# Entry point group name for tagsieve plugins
ENTRY_POINT_GROUP = "tagsieve.plugins"


class PluginError(TagsieveError):
    """Base exception for plugin-related errors."""


class NoBackendError(PluginError):
    """Raised when the requested store backend is unavailable."""


class PluginManager:
    """Manages plugin discovery and registration.

    Example:
        manager = PluginManager()
        manager.discover()  # Find and register entry point plugins
        manager.register(MyPlugin())  # Manually register a plugin

        store = manager.open_store("notmuch", Path("~/mail"), writable=True)
    """

    def __init__(self) -> None:
        """Initialize the plugin manager."""
        self.pm = pluggy.PluginManager("tagsieve")
        self.pm.add_hookspecs(TagsieveHookSpec)
        self._plugins: dict[str, TagsievePlugin] = {}

    def register(self, plugin: TagsievePlugin) -> None:
        """Register a plugin instance."""
        name = plugin.name
        self._plugins[name] = plugin
        self.pm.register(plugin, name=name)

    def unregister(self, name: str) -> None:
        """Unregister a plugin by name."""
        if name in self._plugins:
            plugin = self._plugins.pop(name)
            self.pm.unregister(plugin)

    def discover(self) -> list[str]:
        """Discover and register plugins from entry points.

        Scans the 'tagsieve.plugins' entry point group and registers any
        plugins found. Plugins that fail to load are logged and skipped.

        Returns:
            List of discovered plugin names.
        """
        discovered = []

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                plugin_class = ep.load()
                plugin_instance = plugin_class()
            except Exception as e:
                logger.warning("Cannot load plugin %s: %s", ep.name, e)
                continue
            if plugin_instance.name in self._plugins:
                continue
            self.register(plugin_instance)
            discovered.append(plugin_instance.name)

        return discovered

    def list_plugins(self) -> list[str]:
        """List all registered plugin names."""
        return list(self._plugins.keys())

    def get_plugin(self, name: str) -> TagsievePlugin | None:
        """Get a plugin by name, or None if not found."""
        return self._plugins.get(name)

    def get_plugin_info(self, name: str) -> dict[str, str] | None:
        """Get information about a plugin.

        Returns:
            Dictionary with plugin info (name, version, description),
            or None if not found.
        """
        plugin = self._plugins.get(name)
        if plugin is None:
            return None

        return {
            "name": plugin.name,
            "version": getattr(plugin, "version", "0.0.0"),
            "description": getattr(plugin, "description", ""),
        }

    def open_store(self, backend: str, database: Path, writable: bool) -> MailStore:
        """Open a mail store with the named backend plugin.

        Raises:
            NoBackendError: If no plugin has that name, or the plugin does
                not provide a store.
        """
        plugin = self._plugins.get(backend)
        if plugin is None:
            available = ", ".join(sorted(self._plugins)) or "none"
            raise NoBackendError(
                f"Store backend '{backend}' not found. Available plugins: {available}"
            )

        store = plugin.open_store(database=database, writable=writable)
        if store is None:
            raise NoBackendError(f"Plugin '{backend}' does not provide a mail store")
        logger.debug("Opened %s store at %s (writable=%s)", backend, database, writable)
        return store

    def notify_filter_applied(self, filter_name: str, message: StoreMessage) -> None:
        """Call the filter_applied hook on every registered plugin."""
        self.pm.hook.filter_applied(filter_name=filter_name, message=message)
