"""Logging configuration for envshelf."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


LOG_LEVEL_ENV = "ENVSHELF_LOG_LEVEL"
DEFAULT_LEVEL_NAME = "WARNING"

# Log records go to stderr so command output stays pipeable.
log_console = Console(stderr=True)


def _resolve_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LEVEL_NAME).upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(verbose: bool = False) -> None:
    """Install a single Rich handler on the envshelf logger."""
    logger = logging.getLogger("envshelf")
    logger.setLevel(_resolve_level(verbose))

    for handler in logger.handlers:
        if getattr(handler, "_envshelf_managed", False):
            return

    handler = RichHandler(
        console=log_console,
        rich_tracebacks=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler._envshelf_managed = True
    logger.addHandler(handler)
    logger.propagate = False
