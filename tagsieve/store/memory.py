"""In-memory mail store.

Implements the store protocols with plain Python containers. Useful for
tests and for driving the engine from code without a notmuch database.

Supported query syntax is a whitespace separated list of terms, all of
which must match:

    *               every message
    tag:<tag>       messages carrying <tag>
    id:<msgid>      the message with that Message-ID
    thread:<id>     messages of that thread
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from tagsieve.errors import StoreReadError
from tagsieve.store.base import PathLike

_TERM_PREFIXES = ("tag:", "id:", "thread:")


@dataclass
class MemoryThread:
    """Snapshot of a thread's tags taken when the thread was queried."""

    thread_id: str
    tag_list: list[str] = field(default_factory=list)

    def tags(self) -> Iterator[str]:
        return iter(self.tag_list)


@dataclass
class MemoryMessage:
    """A message living in a MemoryStore.

    Header lookups are case-insensitive, like notmuch.
    """

    msg_id: str
    thread: str
    headers: dict[str, str] = field(default_factory=dict)
    tag_list: list[str] = field(default_factory=list)
    files: list[PathLike] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def message_id(self) -> str:
        return self.msg_id

    def thread_id(self) -> str:
        return self.thread

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def tags(self) -> Iterator[str]:
        return iter(list(self.tag_list))

    def filenames(self) -> Iterator[PathLike]:
        return iter(list(self.files))

    def filename(self) -> PathLike:
        if not self.files:
            raise StoreReadError(f"Message {self.msg_id} has no backing file")
        return self.files[0]

    def add_tag(self, tag: str) -> None:
        if tag not in self.tag_list:
            self.tag_list.append(tag)

    def remove_tag(self, tag: str) -> None:
        if tag in self.tag_list:
            self.tag_list.remove(tag)

    def remove_all_tags(self) -> None:
        self.tag_list.clear()


class MemoryStore:
    """A mail store holding MemoryMessage objects.

    Example usage:
        store = MemoryStore()
        store.add(MemoryMessage("a@example.com", "t1", {"Subject": "hi"}, ["new"]))
        for msg in store.search_messages("tag:new"):
            ...
    """

    def __init__(self, messages: Optional[list[MemoryMessage]] = None):
        self._messages: list[MemoryMessage] = list(messages or [])

    @property
    def messages(self) -> list[MemoryMessage]:
        """Get the list of messages currently in the store."""
        return self._messages

    def add(self, message: MemoryMessage) -> MemoryMessage:
        self._messages.append(message)
        return message

    def get(self, msg_id: str) -> Optional[MemoryMessage]:
        for msg in self._messages:
            if msg.msg_id == msg_id:
                return msg
        return None

    def search_messages(self, query: str) -> Iterator[MemoryMessage]:
        terms = self._parse_query(query)
        # Materialize so callers may tag or remove messages while iterating.
        return iter([m for m in self._messages if self._matches(m, terms)])

    def search_threads(self, query: str) -> Iterator[MemoryThread]:
        terms = self._parse_query(query)
        threads: dict[str, MemoryThread] = {}
        for msg in self._messages:
            if not self._matches(msg, terms):
                continue
            thread = threads.setdefault(msg.thread, MemoryThread(msg.thread))
            for tag in msg.tag_list:
                if tag not in thread.tag_list:
                    thread.tag_list.append(tag)
        for thread in threads.values():
            thread.tag_list.sort()
        return iter(list(threads.values()))

    def remove_message(self, path: PathLike) -> None:
        for msg in list(self._messages):
            if path in msg.files:
                msg.files.remove(path)
                if not msg.files:
                    self._messages.remove(msg)
                return
        raise StoreReadError(f"No message backed by {path!r}")

    def close(self) -> None:
        pass

    def _parse_query(self, query: str) -> list[tuple[str, str]]:
        """Split a query into (prefix, value) terms.

        Raises:
            StoreReadError: If a term uses unsupported syntax.
        """
        terms: list[tuple[str, str]] = []
        for term in query.split():
            if term == "*":
                continue
            for prefix in _TERM_PREFIXES:
                if term.startswith(prefix) and len(term) > len(prefix):
                    terms.append((prefix, term[len(prefix):]))
                    break
            else:
                raise StoreReadError(f"Unsupported query term: {term!r}")
        if not terms and query.strip() != "*":
            raise StoreReadError(f"Empty query: {query!r}")
        return terms

    def _matches(self, message: MemoryMessage, terms: list[tuple[str, str]]) -> bool:
        for prefix, value in terms:
            if prefix == "tag:" and value not in message.tag_list:
                return False
            if prefix == "id:" and value != message.msg_id:
                return False
            if prefix == "thread:" and value != message.thread:
                return False
        return True
