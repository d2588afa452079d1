"""Exceptions raised by the tagsieve filtering engine.

Every error the engine surfaces derives from TagsieveError so callers
running a batch of messages can isolate failures with a single except
clause. The engine itself never recovers from these locally.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class TagsieveError(Exception):
    """Base exception for all tagsieve errors."""


class PatternCompileError(TagsieveError):
    """Raised when a rule pattern is not a valid regular expression.

    Attributes:
        pattern: The offending pattern source string.
        reason: The error reported by the regex compiler.
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid regex pattern {pattern!r}: {reason}")


class UnsupportedValueError(TagsieveError):
    """Raised when a value of the wrong kind is used, e.g. a bool as pattern."""


class UncompiledFilterError(TagsieveError):
    """Raised when a filter is matched without a valid compiled cache."""


class StoreReadError(TagsieveError):
    """Raised by store backends when a read or query fails."""


class MessageIOError(TagsieveError):
    """Raised when the raw file backing a message cannot be read.

    Attributes:
        path: Path of the file that could not be read.
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class MimeParseError(TagsieveError):
    """Raised when the MIME content of a message cannot be decoded."""


class OperationError(TagsieveError):
    """Raised when an operation (command, file deletion) fails."""
