"""
envshelf - local .env manager with safe edits

Finds .env files across a folder tree and edits them without touching
anything but the lines you change.
"""

__version__ = "0.1.0"

from .core import lexer, lines, differ, session

__all__ = [
    "lexer",
    "lines",
    "differ",
    "session",
]
