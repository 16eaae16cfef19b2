"""
envshelf core modules.

Includes:
- lexer: Lossless line model (parse / write)
- lines: Pure edits over line lists (upsert, remove, rename, duplicates)
- differ: Semantic key/value diff between two versions
- session: Reducer-based editing session state
- discovery: Recursive .env file scanning grouped by folder
- fileio: Atomic writes with optional backups
- inference: Secret detection and value masking
- excludes: Directory and file-name rules for scanning
- errors: Error types for the collaborators around the core
"""

from . import errors
from . import lexer
from . import lines
from . import differ
from . import excludes
from . import discovery
from . import fileio
from . import inference
from . import session

__all__ = [
    "errors",
    "lexer",
    "lines",
    "differ",
    "excludes",
    "discovery",
    "fileio",
    "inference",
    "session",
]
