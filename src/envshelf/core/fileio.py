"""
Reading and writing env files on disk.

Writes are atomic (temp file in the same folder, then rename) and can leave
a timestamped backup of the previous content beside the file.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Collection, List, Optional
import logging
import os
import shutil
import tempfile

from .discovery import EnvFileRef, make_file_ref
from .errors import PathNotAllowedError, ReadError, WriteError
from .lexer import Line, parse


logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


@dataclass(frozen=True)
class EnvDocument:
    """An env file paired with its parsed lines."""
    file: EnvFileRef
    lines: List[Line] = field(default_factory=list)

    def with_lines(self, lines: List[Line]) -> "EnvDocument":
        return EnvDocument(file=self.file, lines=lines)


def ensure_allowed(path: Path, allowed_paths: Optional[Collection[Path]]) -> None:
    """
    Refuse paths that the active scan did not produce.

    Args:
        path: Path about to be read or written
        allowed_paths: Resolved paths from the last scan, or None to allow all

    Raises:
        PathNotAllowedError: If a scan is active and path is not part of it
    """
    if allowed_paths is None:
        return
    try:
        resolved = path.resolve(strict=True)
    except OSError as exc:
        raise PathNotAllowedError(f"Path not allowed: {path}") from exc
    if resolved not in allowed_paths:
        raise PathNotAllowedError(f"Path not allowed: {path}")


def read_env_file(
    path: str,
    allowed_paths: Optional[Collection[Path]] = None,
) -> EnvDocument:
    """
    Read and parse an env file.

    Raises:
        PathNotAllowedError: If the path is outside the active scan
        ReadError: If the file cannot be read or is not valid UTF-8
    """
    path_obj = Path(path).expanduser()
    ensure_allowed(path_obj, allowed_paths)

    try:
        content = path_obj.read_text(encoding="utf-8")
        ref = make_file_ref(path_obj.absolute())
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Read failed for {path}: {exc}") from exc

    logger.debug("Read %s (%d bytes)", ref.absolute_path, ref.size)
    return EnvDocument(file=ref, lines=parse(content))


def backup_path_for(path: Path, now: Optional[datetime] = None) -> Path:
    """Return the backup location for path: `.<name>.backup-<timestamp>`."""
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return path.parent / f".{path.name}.backup-{stamp}"


def write_env_file(
    path: str,
    content: str,
    create_backup: bool = False,
    allowed_paths: Optional[Collection[Path]] = None,
) -> Optional[Path]:
    """
    Atomically replace the content of an env file.

    Args:
        path: File to write
        content: New text, written as-is
        create_backup: Copy the current file aside before overwriting
        allowed_paths: Resolved paths from the last scan, or None to allow all

    Raises:
        PathNotAllowedError: If the path is outside the active scan
        WriteError: If the backup or the write fails

    Returns:
        Path of the backup file, or None when no backup was made
    """
    path_obj = Path(path).expanduser()
    ensure_allowed(path_obj, allowed_paths)

    backup = None
    if create_backup and path_obj.exists():
        backup = backup_path_for(path_obj)
        try:
            shutil.copy2(path_obj, backup)
        except OSError as exc:
            raise WriteError(f"Backup failed for {path}: {exc}") from exc
        logger.info("Backed up %s to %s", path_obj, backup)

    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=path_obj.parent,
            prefix=f".{path_obj.name}.tmp-",
        )
    except OSError as exc:
        raise WriteError(f"Write failed for {path}: {exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path_obj.exists():
            shutil.copymode(path_obj, tmp_path)
        os.replace(tmp_path, path_obj)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise WriteError(f"Write failed for {path}: {exc}") from exc

    logger.debug("Wrote %s (%d chars)", path_obj, len(content))
    return backup
