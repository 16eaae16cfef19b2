"""
Pure edit operations over a list of env lines.

Every function returns a new list and leaves its input untouched. Lines that
an operation does not target keep their relative order.
"""

import re
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import InvalidKeyError
from .lexer import KeyValue, Line


WHITESPACE_RUN_RE = re.compile(r"\s+")


def upsert(lines: List[Line], key: str, value: str) -> List[Line]:
    """
    Set the value of a key.

    Every line holding `key` is updated in place, so duplicated keys stay
    duplicated and share the new value. A missing key is inserted right
    after the last key/value line, or appended when there is none.

    Args:
        lines: Current lines
        key: Key to set
        value: New value, stored verbatim

    Returns:
        New list of lines
    """
    updated = []
    found = False
    for line in lines:
        if isinstance(line, KeyValue) and line.key == key:
            updated.append(line.with_value(value))
            found = True
        else:
            updated.append(line)

    if found:
        return updated

    new_line = KeyValue(key=key, value=value, has_export=False)
    last_kv_index = _last_key_value_index(updated)
    if last_kv_index is None:
        updated.append(new_line)
    else:
        updated.insert(last_kv_index + 1, new_line)
    return updated


def remove(lines: List[Line], key: str, occurrence: Optional[int] = None) -> List[Line]:
    """
    Drop key/value lines holding `key`. Missing keys are a no-op.

    Args:
        lines: Current lines
        key: Key to remove
        occurrence: 1-based index among the lines holding `key`; None
            removes every one of them

    Returns:
        New list of lines
    """
    return [
        line for line, targeted in _mark_targets(lines, key, occurrence)
        if not targeted
    ]


def rename(
    lines: List[Line],
    old_key: str,
    new_key: str,
    occurrence: Optional[int] = None,
) -> List[Line]:
    """
    Rename a key.

    Value, export prefix and position are kept; the verbatim cache is
    dropped so the line is regenerated with its new name. Passing the
    `occurrence` of one line of a duplicated key renames only that line,
    which is how a duplicate gets split apart.
    """
    if old_key == new_key:
        return list(lines)
    return [
        line.with_key(new_key) if targeted else line
        for line, targeted in _mark_targets(lines, old_key, occurrence)
    ]


def count_occurrences(lines: List[Line], key: str) -> int:
    """Number of key/value lines holding `key`."""
    return sum(1 for line in lines if isinstance(line, KeyValue) and line.key == key)


def list_key_values(lines: List[Line]) -> List[KeyValue]:
    """Return the key/value lines in document order, duplicates included."""
    return [line for line in lines if isinstance(line, KeyValue)]


def find_duplicate_keys(lines: List[Line]) -> List[str]:
    """
    Return keys defined on two or more lines.

    Keys are reported in the order their first repeat is seen, so the result
    is deterministic for a given line order.
    """
    seen = set()
    duplicates: Dict[str, None] = {}
    for line in lines:
        if not isinstance(line, KeyValue):
            continue
        if line.key in seen:
            duplicates.setdefault(line.key, None)
        seen.add(line.key)
    return list(duplicates)


def get_keys(lines: List[Line]) -> Dict[str, str]:
    """
    Project lines to a key -> value mapping.

    When a key is duplicated the last occurrence wins.
    """
    return {line.key: line.value for line in lines if isinstance(line, KeyValue)}


def filter_by_key(lines: List[Line], query: str) -> List[KeyValue]:
    """Return key/value lines whose key contains `query` (case-insensitive)."""
    needle = query.lower()
    return [line for line in list_key_values(lines) if needle in line.key.lower()]


def normalize_key(raw_key: str) -> str:
    """
    Normalize a key name typed by a user.

    Uppercases the key and collapses whitespace runs into underscores.

    Raises:
        InvalidKeyError: If the key is empty after trimming
    """
    stripped = raw_key.strip()
    if not stripped:
        raise InvalidKeyError("Key cannot be empty.")
    return WHITESPACE_RUN_RE.sub("_", stripped.upper())


def _last_key_value_index(lines: List[Line]):
    for index in range(len(lines) - 1, -1, -1):
        if isinstance(lines[index], KeyValue):
            return index
    return None


def _mark_targets(
    lines: List[Line],
    key: str,
    occurrence: Optional[int],
) -> Iterator[Tuple[Line, bool]]:
    seen = 0
    for line in lines:
        if isinstance(line, KeyValue) and line.key == key:
            seen += 1
            yield line, occurrence is None or seen == occurrence
        else:
            yield line, False
