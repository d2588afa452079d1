"""Tests for rule value helpers."""

import pytest

from tagsieve.errors import UnsupportedValueError
from tagsieve.models.value import as_string_list, canonical_rule


def test_single_value():
    assert as_string_list("abc") == ["abc"]


def test_multiple_value_keeps_order():
    assert as_string_list(["b", "a"]) == ["b", "a"]


def test_multiple_value_is_copied():
    values = ["a"]
    result = as_string_list(values)
    result.append("b")
    assert values == ["a"]


def test_bool_rejected():
    with pytest.raises(UnsupportedValueError, match="Not a regular expression: True"):
        as_string_list(True)


def test_custom_description():
    with pytest.raises(UnsupportedValueError, match="Not a tag"):
        as_string_list(False, "tag")


def test_canonical_rule_sorts_keys():
    rule = canonical_rule({"b": "1", "a": "2", "@c": "3"})
    assert list(rule) == ["@c", "a", "b"]
