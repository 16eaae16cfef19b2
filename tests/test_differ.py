"""
Tests for the semantic diff engine.
"""

from envshelf.core.differ import (
    ChangeKind,
    DiffItem,
    DiffSummary,
    added,
    diff,
    removed,
    summarize,
    updated,
)
from envshelf.core.lexer import KeyValue, parse


def mirror(item: DiffItem) -> DiffItem:
    if item.change == ChangeKind.ADDED:
        return removed(item.key, item.after)
    if item.change == ChangeKind.REMOVED:
        return added(item.key, item.before)
    return updated(item.key, item.after, item.before)


class TestDiff:
    """Test diff computation."""

    def test_updated_and_added(self):
        """Changed value and new key, ordered by key."""
        before = [KeyValue("A", "1")]
        after = [KeyValue("A", "2"), KeyValue("B", "3")]
        assert diff(before, after) == [updated("A", "1", "2"), added("B", "3")]

    def test_removed(self):
        """Keys missing after are removed with their old value."""
        assert diff(parse("A=1\nB=2"), parse("B=2")) == [removed("A", "1")]

    def test_identical_is_empty(self):
        """A document diffed with itself has no changes."""
        lines = parse("# c\nA=1\nA=2\nexport B=\n")
        assert diff(lines, lines) == []

    def test_empty_documents(self):
        assert diff([], []) == []

    def test_ignores_comments_and_blank_lines(self):
        """Edits outside key/value lines never appear."""
        before = parse("# old comment\nA=1\n\n")
        after = parse("A=1\n# new comment\njunk line")
        assert diff(before, after) == []

    def test_ignores_formatting_and_export(self):
        """Only projected values are compared."""
        assert diff(parse("A=1"), parse("export A=1")) == []

    def test_whitespace_in_value_is_a_change(self):
        """Values are compared verbatim."""
        assert diff(parse("A=1"), parse("A=1 ")) == [updated("A", "1", "1 ")]

    def test_last_duplicate_wins(self):
        """Duplicated keys are projected to their last value."""
        before = parse("A=1\nA=2")
        after = parse("A=2")
        assert diff(before, after) == []
        assert diff(parse("A=1\nA=2"), parse("A=2\nA=1")) == [updated("A", "2", "1")]

    def test_ordinal_key_order(self):
        """Keys sort by code point: uppercase before lowercase, '_' between."""
        after = parse("b=1\nB=1\n_x=1\nA=1")
        keys = [item.key for item in diff([], after)]
        assert keys == ["A", "B", "_x", "b"]

    def test_symmetry(self):
        """diff(B, A) mirrors diff(A, B)."""
        a = parse("A=1\nB=2\nC=3")
        b = parse("B=20\nC=3\nD=4")
        forward = diff(a, b)
        backward = diff(b, a)
        assert {item.key for item in forward} == {item.key for item in backward}
        assert sorted((mirror(item) for item in forward), key=lambda i: i.key) == backward


class TestDescribe:
    """Test human-readable descriptions."""

    def test_describe(self):
        assert added("A", "1").describe() == "Added: 1"
        assert removed("A", "1").describe() == "Removed: 1"
        assert updated("A", "1", "2").describe() == "1 -> 2"


class TestSummarize:
    """Test change counting."""

    def test_counts(self):
        items = diff(parse("A=1\nB=2\nC=3"), parse("A=9\nC=3\nD=4\nE=5"))
        summary = summarize(items)
        assert summary == DiffSummary(added=2, updated=1, removed=1)
        assert summary.total == 4
        assert str(summary) == "Added: 2, Updated: 1, Removed: 1"

    def test_empty(self):
        assert summarize([]).total == 0
