"""Operations data model for tagsieve.

An Operations object describes what happens to a message once a filter
matches it: tags removed, tags added, a command run and optionally the
message deleted.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tagsieve.errors import OperationError, UnsupportedValueError
from tagsieve.models.value import Value, as_string_list
from tagsieve.store.base import MailStore, StoreMessage

logger = logging.getLogger(__name__)

# Commands spawned by run operations whose exit status is not collected yet.
_running: list[subprocess.Popen] = []


def reap_children() -> int:
    """Collect the exit status of finished commands.

    Returns:
        The number of spawned commands still running.
    """
    for proc in list(_running):
        if proc.poll() is None:
            continue
        _running.remove(proc)
        if proc.returncode != 0:
            logger.warning("Command %s exited with status %d", proc.args, proc.returncode)
    return len(_running)


class Operations(BaseModel):
    """The operation set applied to a matching message.

    Attributes:
        rm: A tag or list of tags to remove, or ``True`` to remove all tags.
        add: A tag or list of tags to add.
        run: Command (argv list) spawned after tagging. The environment
            carries TAGSIEVE_FILTER_NAME, TAGSIEVE_FILE_NAME and
            TAGSIEVE_MSG_ID.
        delete: Delete the message files and drop the message from the
            store. Serialized as ``del``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    rm: Optional[Value] = None
    add: Optional[Value] = None
    run: Optional[list[str]] = None
    delete: Optional[bool] = Field(default=None, alias="del")

    @field_validator("add")
    @classmethod
    def reject_bool_add(cls, v: Optional[Value]) -> Optional[Value]:
        """Only tags can be added; ``true``/``false`` have no meaning here."""
        if isinstance(v, bool):
            raise ValueError(f"Not a tag: {v!r}")
        return v

    def is_empty(self) -> bool:
        """Return True if no operation is configured."""
        return (
            self.rm is None
            and self.add is None
            and not self.run
            and not self.delete
        )

    @property
    def deletes(self) -> bool:
        return bool(self.delete)

    def apply(self, message: StoreMessage, store: MailStore, filter_name: str) -> bool:
        """Apply the configured operations to a message.

        Operations run in a fixed order: rm, add, run, del. Tagging is
        idempotent, so adding a tag the message already carries still
        counts as applied.

        Args:
            message: The message to modify.
            store: The store holding the message (needed for deletion).
            filter_name: Identity of the filter that matched, passed to
                commands and used in log messages.

        Returns:
            True if any operation was applied, False for an empty set.

        Raises:
            UnsupportedValueError: If ``rm`` or ``add`` holds something other
                than tags. Checked before the message is touched.
            OperationError: If the command cannot be spawned or a file
                cannot be deleted.
            StoreReadError: If the store rejects a tag change or removal.
        """
        remove_all = self.rm is True
        rm_tags: list[str] = []
        if self.rm is not None and not isinstance(self.rm, bool):
            rm_tags = as_string_list(self.rm, "tag")
        add_tags: list[str] = []
        if self.add is not None:
            if isinstance(self.add, bool):
                raise UnsupportedValueError(f"Not a tag: {self.add!r}")
            add_tags = as_string_list(self.add, "tag")

        applied = False

        if remove_all:
            message.remove_all_tags()
            applied = True
        elif self.rm is not None and self.rm is not False:
            for tag in rm_tags:
                message.remove_tag(tag)
            applied = True

        if self.add is not None:
            for tag in add_tags:
                message.add_tag(tag)
            applied = True

        if self.run:
            self._spawn(message, filter_name)
            applied = True

        if self.delete:
            self._delete(message, store)
            applied = True

        if applied:
            logger.debug("Filter %s applied to %s", filter_name, message.message_id())
        return applied

    def _spawn(self, message: StoreMessage, filter_name: str) -> None:
        reap_children()
        env = dict(os.environ)
        env["TAGSIEVE_FILTER_NAME"] = filter_name
        env["TAGSIEVE_FILE_NAME"] = os.fsdecode(message.filename())
        env["TAGSIEVE_MSG_ID"] = message.message_id()
        try:
            proc = subprocess.Popen(self.run, env=env)
        except OSError as e:
            raise OperationError(f"Cannot run {self.run[0]!r}: {e}") from e
        _running.append(proc)

    def _delete(self, message: StoreMessage, store: MailStore) -> None:
        for path in list(message.filenames()):
            try:
                os.remove(path)
            except FileNotFoundError:
                logger.warning("File %s already gone", os.fsdecode(path))
            except OSError as e:
                raise OperationError(f"Cannot delete {os.fsdecode(path)}: {e}") from e
            store.remove_message(path)
        logger.info("Deleted message %s", message.message_id())
