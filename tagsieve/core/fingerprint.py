"""Content fingerprints for unnamed filters.

A filter without a user-assigned name is identified by a hash of its
rules. The rules are first serialized into a canonical byte string, then
hashed with 64-bit FNV-1a, so the fingerprint is independent of the key
order the rules were authored in and reproducible across runtimes.

Canonical encoding (UTF-8):

    rule     := [field (RS field)*] GS   every rule ends with GS
    field    := selector US tag (US pattern)*
    tag      := "s" (single) | "m" (multiple) | "b" (bool)

where GS, RS and US are the ASCII group (0x1d), record (0x1e) and unit
(0x1f) separators. Selectors are emitted in sorted order.
"""

from __future__ import annotations

from typing import Iterable

from tagsieve.models.value import Value

FNV64_OFFSET = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF

GS = "\x1d"
RS = "\x1e"
US = "\x1f"


def fnv1a_64(data: bytes) -> int:
    """Return the 64-bit FNV-1a hash of ``data``."""
    h = FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * FNV64_PRIME) & _MASK64
    return h


def _encode_value(value: Value) -> list[str]:
    if isinstance(value, bool):
        return ["b", "true" if value else "false"]
    if isinstance(value, str):
        return ["s", value]
    return ["m", *value]


def canonical_encoding(rules: Iterable[dict[str, Value]]) -> bytes:
    """Serialize rules into the canonical byte form used for hashing."""
    encoded_rules = []
    for rule in rules:
        fields = [
            US.join([selector, *_encode_value(rule[selector])])
            for selector in sorted(rule)
        ]
        encoded_rules.append(RS.join(fields))
    return "".join(rule + GS for rule in encoded_rules).encode("utf-8")


def fingerprint(rules: Iterable[dict[str, Value]]) -> str:
    """Return the fingerprint of ``rules`` as 16 lowercase hex digits."""
    return f"{fnv1a_64(canonical_encoding(rules)):016x}"
