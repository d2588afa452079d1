"""notmuch store backend plugin for tagsieve.

Registered through the ``tagsieve.plugins`` entry point group. The
notmuch2 bindings (and libnotmuch) are only needed once a store is
actually opened.
"""

from __future__ import annotations

from pathlib import Path

from tagsieve.core.plugin import NoBackendError
from tagsieve.plugin import TagsievePlugin, hookimpl
from tagsieve.store.base import MailStore


class NotmuchPlugin(TagsievePlugin):
    """Store backend for notmuch mail databases."""

    name = "notmuch"
    version = "1.0.0"
    description = "notmuch mail database (requires the notmuch2 bindings)"

    @hookimpl
    def open_store(self, database: Path, writable: bool) -> MailStore:
        try:
            from tagsieve.store.notmuch import NotmuchStore
        except ImportError as e:
            raise NoBackendError(
                "The notmuch backend needs the notmuch2 bindings: "
                "pip install 'tagsieve[notmuch]'"
            ) from e
        return NotmuchStore(database, writable=writable)
