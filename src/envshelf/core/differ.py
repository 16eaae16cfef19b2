"""
Semantic diff between two versions of an env document.

Both sides are projected to key -> value mappings (last occurrence wins on
duplicated keys), so comments, blank lines and reordering never show up.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .lexer import Line
from .lines import get_keys


class ChangeKind(Enum):
    """Kinds of semantic change."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True)
class DiffItem:
    """A single changed key."""
    key: str
    change: ChangeKind
    before: Optional[str] = None
    after: Optional[str] = None

    def describe(self) -> str:
        if self.change == ChangeKind.ADDED:
            return f"Added: {self.after}"
        if self.change == ChangeKind.REMOVED:
            return f"Removed: {self.before}"
        return f"{self.before} -> {self.after}"


@dataclass(frozen=True)
class DiffSummary:
    """Counts of each change kind."""
    added: int = 0
    updated: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.updated + self.removed

    def __str__(self):
        return f"Added: {self.added}, Updated: {self.updated}, Removed: {self.removed}"


def added(key: str, after: str) -> DiffItem:
    return DiffItem(key=key, change=ChangeKind.ADDED, after=after)


def updated(key: str, before: str, after: str) -> DiffItem:
    return DiffItem(key=key, change=ChangeKind.UPDATED, before=before, after=after)


def removed(key: str, before: str) -> DiffItem:
    return DiffItem(key=key, change=ChangeKind.REMOVED, before=before)


def diff(before: List[Line], after: List[Line]) -> List[DiffItem]:
    """
    Compare the key/value projections of two line lists.

    Args:
        before: Lines of the older version
        after: Lines of the newer version

    Returns:
        One DiffItem per changed key, sorted by key (ordinal, case-sensitive)
    """
    before_keys = get_keys(before)
    after_keys = get_keys(after)
    items = []

    for key, value in before_keys.items():
        if key not in after_keys:
            items.append(removed(key, value))
        elif after_keys[key] != value:
            items.append(updated(key, value, after_keys[key]))

    for key, value in after_keys.items():
        if key not in before_keys:
            items.append(added(key, value))

    items.sort(key=lambda item: item.key)
    return items


def summarize(items: List[DiffItem]) -> DiffSummary:
    """Count diff items per change kind."""
    return DiffSummary(
        added=sum(1 for item in items if item.change == ChangeKind.ADDED),
        updated=sum(1 for item in items if item.change == ChangeKind.UPDATED),
        removed=sum(1 for item in items if item.change == ChangeKind.REMOVED),
    )
