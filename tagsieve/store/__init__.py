"""Mail store interfaces and the in-memory implementation."""

from tagsieve.store.base import MailStore, PathLike, StoreMessage, StoreThread
from tagsieve.store.memory import MemoryMessage, MemoryStore, MemoryThread

__all__ = [
    "MailStore",
    "MemoryMessage",
    "MemoryStore",
    "MemoryThread",
    "PathLike",
    "StoreMessage",
    "StoreThread",
]
