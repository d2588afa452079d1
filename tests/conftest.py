"""Shared pytest fixtures for tagsieve tests."""

import itertools
from email.message import EmailMessage

import pytest

from tagsieve.store.memory import MemoryMessage, MemoryStore


def build_mail(
    subject="Hello",
    sender="alice@example.com",
    body="Hi there",
    attachments=(),
):
    """Build the raw bytes of a mail message.

    attachments is a sequence of (filename, content, maintype, subtype);
    text attachments take str content, others bytes.
    """
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = "me@example.com"
    msg["Subject"] = subject
    msg.set_content(body)
    for filename, content, maintype, subtype in attachments:
        if maintype == "text":
            msg.add_attachment(content, subtype=subtype, filename=filename)
        else:
            msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)
    return msg.as_bytes()


@pytest.fixture
def store():
    """Empty in-memory mail store."""
    return MemoryStore()


@pytest.fixture
def write_mail(tmp_path):
    """Write a mail file built by build_mail() and return its path."""
    counter = itertools.count()

    def _write(**kwargs):
        path = tmp_path / f"mail-{next(counter)}.eml"
        path.write_bytes(build_mail(**kwargs))
        return path

    return _write


@pytest.fixture
def add_message(store, write_mail):
    """Add a message backed by a real mail file to the store."""
    counter = itertools.count(1)

    def _add(
        subject="Hello",
        sender="alice@example.com",
        tags=("new",),
        thread=None,
        body="Hi there",
        attachments=(),
        headers=None,
    ):
        n = next(counter)
        path = write_mail(subject=subject, sender=sender, body=body, attachments=attachments)
        all_headers = {"From": sender, "Subject": subject}
        all_headers.update(headers or {})
        msg = MemoryMessage(
            msg_id=f"msg{n}@example.com",
            thread=thread or f"thread{n}",
            headers=all_headers,
            tag_list=list(tags),
            files=[path],
        )
        return store.add(msg)

    return _add
