"""Hook specifications for tagsieve plugins.

This module defines the pluggy hook specification that plugins implement.
Plugins use the @hookimpl decorator to register their implementations.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from tagsieve.store.base import MailStore, StoreMessage

hookspec = pluggy.HookspecMarker("tagsieve")


class TagsieveHookSpec:
    """Hook specification defining the plugin interface.

    Store backends implement open_store; any plugin may listen to
    filter_applied to audit or react to tagging decisions.
    """

    @hookspec
    def open_store(self, database: Path, writable: bool) -> "MailStore | None":
        """Open the mail store located at ``database``.

        Args:
            database: Path of the mail database directory.
            writable: Whether the store will be modified (tagging,
                message removal). Read-only stores are used for dry runs.

        Returns:
            An object implementing the MailStore protocol, or None if the
            plugin is not a store backend.
        """

    @hookspec
    def filter_applied(self, filter_name: str, message: "StoreMessage") -> None:
        """Called after a filter's operations were applied to a message.

        Args:
            filter_name: Identity of the filter (name or fingerprint).
            message: The message that was modified.
        """
