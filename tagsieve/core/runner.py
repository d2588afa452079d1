"""Filter pass over the messages of a mail store.

The FilterRunner walks every message carrying the query tag (``new`` by
default) and evaluates the filters against it in order, one message at a
time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from tagsieve.core.config import FilteringConfig
from tagsieve.core.filter import Filter
from tagsieve.errors import TagsieveError
from tagsieve.models.operations import reap_children
from tagsieve.store.base import MailStore, StoreMessage

if TYPE_CHECKING:
    from tagsieve.core.plugin import PluginManager

logger = logging.getLogger(__name__)


@dataclass
class FilterRunStats:
    """Statistics about a filter pass.

    Attributes:
        messages: Number of messages processed.
        matched: Number of messages at least one filter was applied to.
        failed: Number of messages skipped because of an error (only
            non-zero when errors are isolated).
        per_filter: Dict mapping filter names to their application counts.
    """

    messages: int = 0
    matched: int = 0
    failed: int = 0
    per_filter: dict[str, int] = field(default_factory=dict)


@dataclass
class DryRunMatch:
    """Filters that would be applied to one message."""

    message_id: str
    filters: list[str]


class FilterRunner:
    """Runs a list of compiled filters over the store.

    By default the first error aborts the pass, matching the fail-fast
    behaviour of a single evaluation. With ``isolate_errors`` a failing
    message is logged, counted and left untouched (its query tag stays so
    it is retried on the next run).
    """

    def __init__(
        self,
        filters: list[Filter],
        store: MailStore,
        query_tag: str = "new",
        first_match_wins: bool = True,
        isolate_errors: bool = False,
        remove_query_tag: bool = True,
        plugin_manager: Optional["PluginManager"] = None,
    ):
        self._filters = filters
        self._store = store
        self._query_tag = query_tag
        self._first_match_wins = first_match_wins
        self._isolate_errors = isolate_errors
        self._remove_query_tag = remove_query_tag
        self._plugin_manager = plugin_manager

    @classmethod
    def from_config(
        cls,
        filters: list[Filter],
        store: MailStore,
        config: FilteringConfig,
        plugin_manager: Optional["PluginManager"] = None,
    ) -> "FilterRunner":
        return cls(
            filters,
            store,
            query_tag=config.query_tag,
            first_match_wins=config.first_match_wins,
            isolate_errors=config.isolate_errors,
            remove_query_tag=config.remove_query_tag,
            plugin_manager=plugin_manager,
        )

    @property
    def query(self) -> str:
        return f"tag:{self._query_tag}"

    def run(self) -> FilterRunStats:
        """Apply the filters to every message carrying the query tag.

        Raises:
            TagsieveError: The first error met, unless errors are isolated.
        """
        stats = FilterRunStats()

        for message in self._store.search_messages(self.query):
            stats.messages += 1
            try:
                self._process(message, stats)
            except TagsieveError:
                if not self._isolate_errors:
                    raise
                stats.failed += 1
                logger.exception("Filtering message %s failed", message.message_id())

        logger.info(
            "Processed %d message(s): %d matched, %d failed",
            stats.messages, stats.matched, stats.failed,
        )
        running = reap_children()
        if running:
            logger.debug("%d command(s) still running", running)
        return stats

    def _process(self, message: StoreMessage, stats: FilterRunStats) -> None:
        matched = False
        deleted = False

        for filt in self._filters:
            if not filt.apply_if_match(message, self._store):
                continue
            name = filt.name()
            stats.per_filter[name] = stats.per_filter.get(name, 0) + 1
            matched = True
            if self._plugin_manager is not None:
                self._plugin_manager.notify_filter_applied(name, message)
            if filt.op.deletes:
                deleted = True
                break
            if self._first_match_wins:
                break

        if matched:
            stats.matched += 1
        if self._remove_query_tag and not deleted:
            message.remove_tag(self._query_tag)

    def dry_run(self) -> list[DryRunMatch]:
        """Report which filters match which messages without applying them.

        Raises:
            TagsieveError: The first error met, unless errors are isolated.
        """
        matches: list[DryRunMatch] = []

        for message in self._store.search_messages(self.query):
            try:
                names = self._matching_filters(message)
            except TagsieveError:
                if not self._isolate_errors:
                    raise
                logger.exception("Matching message %s failed", message.message_id())
                continue
            if names:
                matches.append(DryRunMatch(message.message_id(), names))

        return matches

    def _matching_filters(self, message: StoreMessage) -> list[str]:
        names = []
        for filt in self._filters:
            if filt.is_match(message, self._store):
                names.append(filt.name())
                if self._first_match_wins:
                    break
        return names
