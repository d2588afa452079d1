"""Data models for tagsieve."""

from tagsieve.models.operations import Operations, reap_children
from tagsieve.models.value import Rule, Value, as_string_list, canonical_rule

__all__ = [
    "Operations",
    "Rule",
    "Value",
    "as_string_list",
    "canonical_rule",
    "reap_children",
]
