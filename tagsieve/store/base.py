"""Capability interfaces consumed from the mail store.

The filtering engine never talks to a concrete mail index. It relies on
these narrow protocols so the same code runs against notmuch or against
the in-memory store used in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

PathLike = Union[str, bytes, Path]


class StoreThread(Protocol):
    """A thread handle returned by a thread query."""

    def tags(self) -> Iterable[str]:
        """Return the union of the tags of the thread's messages."""
        ...


class StoreMessage(Protocol):
    """A message held by the store that can be read and tagged."""

    def message_id(self) -> str:
        ...

    def thread_id(self) -> str:
        ...

    def header(self, name: str) -> Optional[str]:
        """Return the value of header ``name``, or None if it is absent.

        Raises:
            StoreReadError: If the header cannot be read.
        """
        ...

    def tags(self) -> Iterable[str]:
        ...

    def filenames(self) -> Iterable[PathLike]:
        """Return every file backing this message (duplicates included)."""
        ...

    def filename(self) -> PathLike:
        """Return one file backing this message."""
        ...

    def add_tag(self, tag: str) -> None:
        ...

    def remove_tag(self, tag: str) -> None:
        ...

    def remove_all_tags(self) -> None:
        ...


class MailStore(Protocol):
    """A queryable mail index."""

    def search_messages(self, query: str) -> Iterable[StoreMessage]:
        """Return the messages matching a notmuch-style query.

        Raises:
            StoreReadError: If the query cannot be built or executed.
        """
        ...

    def search_threads(self, query: str) -> Iterable[StoreThread]:
        """Return the threads matching a notmuch-style query.

        Raises:
            StoreReadError: If the query cannot be built or executed.
        """
        ...

    def remove_message(self, path: PathLike) -> None:
        """Remove the file ``path`` from the index."""
        ...

    def close(self) -> None:
        """Release the store; further use is undefined."""
        ...
