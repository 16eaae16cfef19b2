"""
Error types raised by the collaborators around the line model.

The line model itself (parse, write, edits, diff) is total and never raises.
"""


class EnvShelfError(Exception):
    """Base class for all envshelf errors."""


class ScanError(EnvShelfError):
    """Raised when a directory scan fails."""


class InvalidRootError(ScanError):
    """Raised when the scan root is missing or is not a directory."""


class ScanCanceledError(ScanError):
    """Raised when a scan is canceled before it completes."""


class ReadError(EnvShelfError):
    """Raised when an env file cannot be read or decoded."""


class WriteError(EnvShelfError):
    """Raised when an env file (or its backup) cannot be written."""


class PathNotAllowedError(EnvShelfError):
    """Raised when a path was not produced by the active scan."""


class InvalidKeyError(EnvShelfError):
    """Raised when a user-supplied key name is empty after trimming."""
