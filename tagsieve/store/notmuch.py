"""notmuch store backend built on the notmuch2 bindings.

Wraps notmuch2 database, message and thread objects in the store
protocols and converts notmuch errors into StoreReadError.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import notmuch2

from tagsieve.errors import StoreReadError
from tagsieve.store.base import PathLike

logger = logging.getLogger(__name__)


class NotmuchThread:
    def __init__(self, thread: "notmuch2.Thread"):
        self._thread = thread

    def tags(self) -> list[str]:
        try:
            return list(self._thread.tags)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot read thread tags: {e}") from e


class NotmuchMessage:
    """A notmuch message exposed through the StoreMessage protocol."""

    def __init__(self, message: "notmuch2.Message"):
        self._msg = message

    def message_id(self) -> str:
        return self._msg.messageid

    def thread_id(self) -> str:
        return self._msg.threadid

    def header(self, name: str) -> Optional[str]:
        try:
            return self._msg.header(name)
        except LookupError:
            return None
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot read header {name!r}: {e}") from e

    def tags(self) -> list[str]:
        return list(self._msg.tags)

    def filenames(self) -> Iterator[Path]:
        return iter(self._msg.filenames())

    def filename(self) -> Path:
        return self._msg.path

    def add_tag(self, tag: str) -> None:
        try:
            self._msg.tags.add(tag)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot add tag {tag!r}: {e}") from e

    def remove_tag(self, tag: str) -> None:
        try:
            self._msg.tags.discard(tag)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot remove tag {tag!r}: {e}") from e

    def remove_all_tags(self) -> None:
        try:
            self._msg.tags.clear()
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot remove tags: {e}") from e


class NotmuchStore:
    """A notmuch database opened for one filter pass."""

    def __init__(self, database: Path, writable: bool = False):
        mode = (
            notmuch2.Database.MODE.READ_WRITE
            if writable
            else notmuch2.Database.MODE.READ_ONLY
        )
        try:
            self._db = notmuch2.Database(path=str(database), mode=mode)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot open notmuch database {database}: {e}") from e

    def search_messages(self, query: str) -> Iterator[NotmuchMessage]:
        try:
            messages = self._db.messages(query)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Query {query!r} failed: {e}") from e
        return (NotmuchMessage(msg) for msg in messages)

    def search_threads(self, query: str) -> Iterator[NotmuchThread]:
        try:
            threads = self._db.threads(query)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Query {query!r} failed: {e}") from e
        return (NotmuchThread(thread) for thread in threads)

    def remove_message(self, path: PathLike) -> None:
        try:
            self._db.remove(path)
        except notmuch2.NotmuchError as e:
            raise StoreReadError(f"Cannot remove {path!r} from the database: {e}") from e

    def close(self) -> None:
        self._db.close()
        logger.debug("Closed notmuch database")
