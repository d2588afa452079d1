"""Rule evaluation against the views of a message.

A compiled rule maps field selectors to compiled patterns. Literal
selectors name a message header; selectors starting with ``@`` are
virtual fields resolved against the store or the raw message content:

    @path             files backing the message
    @tags             the message's tags
    @thread-tags      tags of the message's thread (fresh thread query)
    @body             decoded text/plain body
    @attachment       attachment filenames
    @attachment-body  decoded content of text attachments

A rule matches when every field matches. Fields are all evaluated, so
a failing read in any field of a rule aborts the evaluation even when an
earlier field already failed to match.
"""

from __future__ import annotations

import logging
import re
from email.message import EmailMessage
from pathlib import Path
from typing import Iterable, Iterator, Optional

from tagsieve.core import mime
from tagsieve.store.base import MailStore, PathLike, StoreMessage

logger = logging.getLogger(__name__)

VIRTUAL_PREFIX = "@"

PATH = "@path"
TAGS = "@tags"
THREAD_TAGS = "@thread-tags"
BODY = "@body"
ATTACHMENT = "@attachment"
ATTACHMENT_BODY = "@attachment-body"

VIRTUAL_FIELDS = frozenset({PATH, TAGS, THREAD_TAGS, BODY, ATTACHMENT, ATTACHMENT_BODY})

CompiledRule = dict[str, list[re.Pattern[str]]]


def any_match(patterns: list[re.Pattern[str]], values: Iterable[str]) -> bool:
    """Return True if any value matches any pattern."""
    for value in values:
        for pattern in patterns:
            if pattern.search(value):
                return True
    return False


def decodable_paths(paths: Iterable[PathLike]) -> Iterator[str]:
    """Yield paths as text, skipping those that are not valid UTF-8."""
    for path in paths:
        if isinstance(path, bytes):
            try:
                yield path.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("Skipping undecodable path %r", path)
            continue
        text = str(path) if isinstance(path, Path) else path
        try:
            # Paths read with surrogateescape carry lone surrogates.
            text.encode("utf-8")
        except UnicodeEncodeError:
            logger.debug("Skipping undecodable path %r", text)
            continue
        yield text


class MessageContent:
    """Parsed content of the file backing a message, read on first use.

    One instance lives for a single match evaluation so the content
    selectors of all rules share one read and parse.
    """

    def __init__(self, message: StoreMessage):
        self._message = message
        self._parsed: Optional[EmailMessage] = None

    @property
    def parsed(self) -> EmailMessage:
        if self._parsed is None:
            self._parsed = mime.read_message(self._message.filename())
        return self._parsed

    def body(self) -> list[str]:
        return [mime.body_text(self.parsed)]

    def attachment_names(self) -> list[str]:
        return mime.attachment_names(self.parsed)

    def attachment_bodies(self) -> list[str]:
        return mime.attachment_bodies(self.parsed)


def thread_tags(message: StoreMessage, store: MailStore) -> Optional[list[str]]:
    """Look up the tags of the thread containing ``message``.

    Returns:
        The thread's tags, or None if the query found no thread.

    Raises:
        StoreReadError: If the query fails.
    """
    threads = iter(store.search_threads(f"thread:{message.thread_id()}"))
    thread = next(threads, None)
    if thread is None:
        return None
    return list(thread.tags())


def evaluate_field(
    selector: str,
    patterns: list[re.Pattern[str]],
    message: StoreMessage,
    store: MailStore,
    content: MessageContent,
) -> Optional[bool]:
    """Evaluate one field of a rule.

    Returns:
        True or False for a decided field, or None when the field does not
        contribute (unknown virtual selector, or no thread found for
        ``@thread-tags``).
    """
    if not selector.startswith(VIRTUAL_PREFIX):
        value = message.header(selector)
        if value is None:
            return False
        return all(pattern.search(value) for pattern in patterns)

    if selector == PATH:
        return any_match(patterns, decodable_paths(message.filenames()))
    if selector == TAGS:
        return any_match(patterns, message.tags())
    if selector == THREAD_TAGS:
        tags = thread_tags(message, store)
        if tags is None:
            logger.debug("No thread found for %s, skipping %s", message.message_id(), selector)
            return None
        return any_match(patterns, tags)
    if selector == BODY:
        return any_match(patterns, content.body())
    if selector == ATTACHMENT:
        return any_match(patterns, content.attachment_names())
    if selector == ATTACHMENT_BODY:
        return any_match(patterns, content.attachment_bodies())

    logger.debug("Ignoring unknown virtual field %s", selector)
    return None


def evaluate_rule(
    rule: CompiledRule,
    message: StoreMessage,
    store: MailStore,
    content: Optional[MessageContent] = None,
) -> bool:
    """Return True if every field of ``rule`` matches ``message``."""
    if content is None:
        content = MessageContent(message)
    result = True
    for selector, patterns in rule.items():
        outcome = evaluate_field(selector, patterns, message, store, content)
        if outcome is not None:
            result = outcome and result
    return result


def match_any_rule(
    rules: list[CompiledRule],
    message: StoreMessage,
    store: MailStore,
) -> bool:
    """Return True as soon as one rule matches, False if none does."""
    content = MessageContent(message)
    for rule in rules:
        if evaluate_rule(rule, message, store, content):
            return True
    return False
