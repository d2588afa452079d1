"""Plugin system for tagsieve.

This module provides the plugin infrastructure using pluggy. Plugins
implement hooks defined in hookspec.py to provide mail store backends or
to observe filter applications.

Usage:
    from tagsieve.plugin import TagsievePlugin, hookimpl

    class MyStorePlugin(TagsievePlugin):
        name = "my-store"

        @hookimpl
        def open_store(self, database, writable):
            return MyStore(database, writable)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pluggy

from tagsieve.plugin.hookspec import TagsieveHookSpec

if TYPE_CHECKING:
    from tagsieve.store.base import MailStore, StoreMessage

# Create the hookimpl marker for plugins to use
hookimpl = pluggy.HookimplMarker("tagsieve")

__all__ = ["TagsievePlugin", "hookimpl", "TagsieveHookSpec"]


class TagsievePlugin:
    """Base class for tagsieve plugins.

    Subclasses must define:
        name: Unique identifier for the plugin (str)

    Optional hooks (have defaults):
        open_store(): Store backend (default: None, not a backend)
        filter_applied(): Notification after a filter was applied

    Optional attributes:
        version: Plugin version string (str)
        description: Human-readable description (str)
    """

    name: str = "base"
    version: str = "0.0.0"
    description: str = ""

    @hookimpl
    def open_store(self, database: Path, writable: bool) -> "MailStore | None":
        """Default implementation: not a store backend.

        Returns:
            None by default.
        """
        return None

    @hookimpl
    def filter_applied(self, filter_name: str, message: "StoreMessage") -> None:
        """Default implementation: ignore the notification."""
        return None
