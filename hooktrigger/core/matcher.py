"""Dotted-path payload filter matching.

A filter maps dotted paths (``"repository.owner.login"``) to the expected
string form of the value found at that path. Every entry must match; an
empty or missing filter matches any payload. Malformed paths fail closed:
a blank path or blank segment makes the whole filter match nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from hooktrigger.utils.logging import get_logger

log = get_logger(__name__)

PayloadFilter = Mapping[str, "str | None"]

_MISSING = object()


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded JSON-like payload value."""
    match value:
        case None:
            return ValueKind.NULL
        # bool before int: bool is an int subclass
        case bool():
            return ValueKind.BOOLEAN
        case int() | float():
            return ValueKind.NUMBER
        case str():
            return ValueKind.STRING
        case Mapping():
            return ValueKind.MAPPING
        case list() | tuple():
            return ValueKind.SEQUENCE
        case _:
            # Anything else compares by its str() form
            return ValueKind.STRING


def canonical_string(value: Any) -> str | None:
    """Return the string a filter value is compared against.

    ``None`` for null values and for containers, which never compare equal
    to an expected string.
    """
    match kind_of(value):
        case ValueKind.STRING:
            return str(value)
        case ValueKind.BOOLEAN:
            return "true" if value else "false"
        case ValueKind.NUMBER:
            # repr is the shortest round-trip form for floats
            return repr(value) if isinstance(value, float) else str(int(value))
        case _:
            return None


def split_path(path: str) -> list[str] | None:
    """Split a dotted path, returning ``None`` if any segment is blank."""
    if not path or path.isspace():
        return None
    segments = path.split(".")
    if any(not segment.strip() for segment in segments):
        return None
    return segments


def resolve_path(payload: Mapping[str, Any], path: str, segments: list[str]) -> Any:
    """Walk ``segments`` through nested mappings.

    Returns the value found at the last segment, or ``_MISSING`` when a key is
    absent or an intermediate value is not a mapping.
    """
    current: Mapping[str, Any] = payload
    last = len(segments) - 1
    for depth, segment in enumerate(segments):
        if segment not in current:
            log.debug("payload_key_missing", key=segment, path=path, depth=depth)
            return _MISSING
        value = current[segment]
        if depth == last:
            return value
        match kind_of(value):
            case ValueKind.MAPPING:
                current = value
            case _:
                log.warning("payload_key_not_mapping", path=path, depth=depth + 1)
                return _MISSING
    return _MISSING


def _entry_matches(value: Any, expected: str | None) -> bool:
    if value is _MISSING:
        return False
    if kind_of(value) is ValueKind.NULL:
        return expected is None
    if expected is None:
        return False
    actual = canonical_string(value)
    return actual is not None and actual == expected


def matches(payload_filter: PayloadFilter | None, payload: Mapping[str, Any]) -> bool:
    """Return True if ``payload`` satisfies every entry of ``payload_filter``."""
    if not payload_filter:
        return True

    # Validate every path first: one malformed entry rejects the whole filter
    parsed: list[tuple[str, list[str], str | None]] = []
    for path, expected in payload_filter.items():
        segments = split_path(path)
        if segments is None:
            log.warning("payload_filter_blank_segment", path=path)
            return False
        parsed.append((path, segments, expected))

    for path, segments, expected in parsed:
        if not _entry_matches(resolve_path(payload, path, segments), expected):
            return False
    return True
