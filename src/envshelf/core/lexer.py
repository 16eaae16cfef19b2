"""
Lossless .env line model with byte-perfect round-trip guarantee.

Every physical line of a .env file becomes exactly one typed line record.
Untouched key/value lines keep a verbatim copy of their original text, so
the constraint is:
    write(parse(text)) == text   (for any text without '\\r')
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union


LINE_SPLIT_RE = re.compile(r"\r?\n")
KEY_VALUE_RE = re.compile(r"^\s*(export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
COMMENT_MARKERS = ("#", ";")


@dataclass(frozen=True)
class Blank:
    """
    An empty or whitespace-only line.

    `raw` keeps the spaces or tabs of the line so that whitespace-only lines
    are written back unchanged; it is "" for a truly empty line.
    """
    raw: str = ""


@dataclass(frozen=True)
class Comment:
    """A line whose trimmed content starts with '#' or ';'."""
    raw: str


@dataclass(frozen=True)
class KeyValue:
    """
    A `[export ]KEY=VALUE` assignment.

    `raw` caches the original text of the line. It is only set by the
    parser and must be dropped (None) whenever key or value changes, which
    makes the serializer regenerate the line. It takes no part in equality.
    """
    key: str
    value: str
    has_export: bool = False
    raw: Optional[str] = field(default=None, compare=False)

    def __repr__(self):
        export = "export " if self.has_export else ""
        return f"KeyValue({export}{self.key}={self.value!r})"

    def with_value(self, value: str) -> "KeyValue":
        return KeyValue(key=self.key, value=value, has_export=self.has_export)

    def with_key(self, key: str) -> "KeyValue":
        return KeyValue(key=key, value=self.value, has_export=self.has_export)


@dataclass(frozen=True)
class Unknown:
    """Any line that is not blank, a comment, or a valid assignment."""
    raw: str


Line = Union[Blank, Comment, KeyValue, Unknown]


def is_identifier(key: str) -> bool:
    """Return True if key is a valid env variable name."""
    return bool(IDENTIFIER_RE.match(key))


def split_lines(content: str) -> List[str]:
    """
    Split content on '\\n' or '\\r\\n'.

    A trailing newline yields a single empty last entry, which is what makes
    the join in `write` reproduce it.
    """
    return LINE_SPLIT_RE.split(content)


def parse_line(line: str) -> Line:
    """Classify a single line (without its line terminator)."""
    stripped = line.strip()

    if not stripped:
        return Blank(raw=line)

    if stripped.startswith(COMMENT_MARKERS):
        return Comment(raw=line)

    match = KEY_VALUE_RE.match(line)
    if match:
        return KeyValue(
            key=match.group(2),
            value=match.group(3),
            has_export=match.group(1) is not None,
            raw=line,
        )

    return Unknown(raw=line)


def parse(content: str) -> List[Line]:
    """
    Parse .env file content into lines.

    Never raises: every input line maps to exactly one output line.

    Args:
        content: Raw text of a .env file

    Returns:
        List of Line records in document order
    """
    return [parse_line(line) for line in split_lines(content)]


def render_line(line: Line) -> str:
    """Render a single line back to text."""
    if isinstance(line, KeyValue):
        if line.raw is not None:
            return line.raw
        export_prefix = "export " if line.has_export else ""
        return f"{export_prefix}{line.key}={line.value}"
    if isinstance(line, (Blank, Comment, Unknown)):
        return line.raw
    raise TypeError(f"Not an env line: {line!r}")


def write(lines: List[Line]) -> str:
    """
    Reconstruct .env file text from lines.

    Args:
        lines: List of Line records

    Returns:
        Text joined with '\\n'; byte-identical to the parsed input when no
        line was modified
    """
    return "\n".join(render_line(line) for line in lines)
