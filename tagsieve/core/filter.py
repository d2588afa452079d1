"""Filter model: rules, compilation, matching and application.

A Filter is a list of alternative rules (OR) where each rule is a set of
field constraints (AND), plus the operations to apply on a match.
Filters are deserialized or assembled in code with raw pattern strings
and must be compiled before use:

    filt = Filter(rules=[{"Subject": "(?i)invoice"}], op={"add": "finance"})
    filt = filt.compile()
    if filt.apply_if_match(message, store):
        ...
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from tagsieve.core.fingerprint import fingerprint
from tagsieve.core.matcher import CompiledRule, match_any_rule
from tagsieve.errors import PatternCompileError, UncompiledFilterError
from tagsieve.models.operations import Operations
from tagsieve.models.value import Rule, as_string_list, canonical_rule
from tagsieve.store.base import MailStore, StoreMessage

logger = logging.getLogger(__name__)


def compile_pattern(source: str) -> re.Pattern[str]:
    """Compile a single pattern, raising PatternCompileError on failure."""
    try:
        return re.compile(source)
    except re.error as e:
        raise PatternCompileError(source, str(e)) from e


class Filter(BaseModel):
    """A set of alternative match rules and the operations they trigger.

    Attributes:
        assigned_name: User-assigned name, serialized as ``name``. Use
            name() to get the identity of the filter.
        desc: Free-form description of what the filter is for.
        rules: Alternative rules; the filter matches if any rule matches.
            Each rule maps field selectors to a pattern or list of patterns
            and is kept with its keys sorted.
        op: Operations applied to matching messages.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    assigned_name: Optional[str] = Field(default=None, alias="name")
    desc: Optional[str] = None
    rules: list[Rule] = Field(default_factory=list)
    op: Operations = Field(default_factory=Operations)

    # Never serialized: a deserialized filter always needs compile().
    _compiled: list[CompiledRule] = PrivateAttr(default_factory=list)

    @field_validator("rules")
    @classmethod
    def sort_rule_keys(cls, v: list[Rule]) -> list[Rule]:
        """Store every rule in canonical (sorted key) order."""
        return [canonical_rule(rule) for rule in v]

    def name(self) -> str:
        """Return the assigned name, or a fingerprint of the rules.

        The fingerprint only identifies the filter in logs and command
        environments. It is never written back as the filter's name.
        """
        if self.assigned_name is not None:
            return self.assigned_name
        return fingerprint(self.rules)

    def set_name(self, name: str) -> None:
        self.assigned_name = name

    @property
    def is_compiled(self) -> bool:
        return len(self._compiled) == len(self.rules)

    def compile(self) -> "Filter":
        """Compile the patterns of every rule.

        Returns a new Filter; this one is left untouched. Compiled rules are
        appended to the cache carried over from this filter, so compiling
        twice leaves the cache longer than the rule list and is reported as
        uncompiled at match time.

        Raises:
            UnsupportedValueError: If a rule holds something other than a
                pattern or a list of patterns.
            PatternCompileError: If any pattern is not a valid regex.
        """
        compiled = list(self._compiled)
        for rule in self.rules:
            compiled.append({
                selector: [compile_pattern(source) for source in as_string_list(value)]
                for selector, value in rule.items()
            })

        new = self.model_copy(deep=True)
        new._compiled = compiled
        return new

    def is_match(self, message: StoreMessage, store: MailStore) -> bool:
        """Check if ``message`` matches any of the rules.

        Raises:
            UncompiledFilterError: If the filter was not compiled exactly once.
            StoreReadError: If a header or thread lookup fails.
            MessageIOError: If the message file cannot be read.
            MimeParseError: If the message content cannot be decoded.
        """
        if not self.is_compiled:
            raise UncompiledFilterError(
                f"Filter {self.name()} needs to be compiled before it is matched"
            )
        return match_any_rule(self._compiled, message, store)

    def apply_if_match(self, message: StoreMessage, store: MailStore) -> bool:
        """Apply the operations to ``message`` if the filter matches it.

        Returns:
            False if the filter does not match; otherwise whatever
            Operations.apply() reports.
        """
        if not self.is_match(message, store):
            return False
        name = self.name()
        logger.info("Filter %s matched %s", name, message.message_id())
        return self.op.apply(message, store, name)

    def to_dict(self) -> dict[str, Any]:
        """Return the rule-file representation of this filter."""
        return self.model_dump(by_alias=True, exclude_none=True)
