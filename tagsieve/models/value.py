"""Value types shared by rules and operations.

A rule field holds either a single pattern string or a list of pattern
strings. Operations reuse the same shape for tag lists and additionally
accept a bool (``"rm": true`` removes every tag).
"""

from __future__ import annotations

from typing import Union

from tagsieve.errors import UnsupportedValueError

# Order matters for pydantic's smart union: a JSON ``true`` must stay a bool.
Value = Union[bool, str, list[str]]

Rule = dict[str, Value]


def as_string_list(value: Value, what: str = "regular expression") -> list[str]:
    """Return the strings held by a Single or Multiple value.

    Args:
        value: A single string or a list of strings.
        what: Description of the expected kind, used in the error message.

    Returns:
        A list with one element for a single string, or a copy of the list
        in its original order.

    Raises:
        UnsupportedValueError: If the value is neither a string nor a list
            of strings.
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise UnsupportedValueError(f"Not a {what}: {value!r}")


def canonical_rule(rule: dict[str, Value]) -> Rule:
    """Return a copy of ``rule`` with its keys in sorted order."""
    return {key: rule[key] for key in sorted(rule)}
