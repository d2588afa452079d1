"""Content views of a raw message file.

The ``@body``, ``@attachment`` and ``@attachment-body`` selectors match
against the decoded MIME structure of the file backing a message rather
than against the index. This module reads and parses that file with the
standard library ``email`` package and extracts the three views.
"""

from __future__ import annotations

import os
from email import policy
from email.errors import MessageError
from email.message import EmailMessage
from email.parser import BytesParser

from tagsieve.errors import MessageIOError, MimeParseError
from tagsieve.store.base import PathLike

# Errors the email package raises while decoding headers or payloads.
_DECODE_ERRORS = (MessageError, KeyError, LookupError, ValueError, UnicodeError)


def read_message(path: PathLike) -> EmailMessage:
    """Read and parse the message file at ``path``.

    Raises:
        MessageIOError: If the file cannot be opened or read.
        MimeParseError: If the content cannot be parsed.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise MessageIOError(e.strerror or str(e), path=os.fsdecode(path)) from e

    try:
        return BytesParser(policy=policy.default).parsebytes(data)
    except _DECODE_ERRORS as e:
        raise MimeParseError(f"{os.fsdecode(path)}: {e}") from e


def _attachments(message: EmailMessage) -> list[EmailMessage]:
    return [
        part for part in message.walk()
        if part.get_content_disposition() == "attachment"
    ]


def body_text(message: EmailMessage) -> str:
    """Return the decoded text/plain body, or an empty string if none."""
    try:
        part = message.get_body(preferencelist=("plain",))
        if part is None:
            return ""
        return part.get_content()
    except _DECODE_ERRORS as e:
        raise MimeParseError(f"Cannot decode message body: {e}") from e


def attachment_names(message: EmailMessage) -> list[str]:
    """Return the filenames of all attachment parts that declare one."""
    try:
        names = [part.get_filename() for part in _attachments(message)]
    except _DECODE_ERRORS as e:
        raise MimeParseError(f"Cannot decode attachment headers: {e}") from e
    return [name for name in names if name is not None]


def attachment_bodies(message: EmailMessage) -> list[str]:
    """Return the decoded content of every text-typed attachment part."""
    try:
        return [
            part.get_content()
            for part in _attachments(message)
            if part.get_content_type().startswith("text")
        ]
    except _DECODE_ERRORS as e:
        raise MimeParseError(f"Cannot decode attachment body: {e}") from e
