"""
Directory and file-name rules for env file discovery.
"""

import re
from typing import Set


ENV_FILE_RE = re.compile(r"^\.env(\..+)?$")

IGNORED_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "target",
    ".turbo",
    ".cache",
})


def is_env_file_name(name: str) -> bool:
    """Return True for `.env` and `.env.<anything>` file names."""
    return bool(ENV_FILE_RE.match(name))


def parse_extra_ignores(value: str) -> Set[str]:
    """
    Parse a comma separated list of extra directory names to skip.

    Expected format: "vendor, .venv,coverage"
    """
    ignored: Set[str] = set()

    for part in value.split(","):
        name = part.strip().strip("/")
        if name:
            ignored.add(name)

    return ignored
