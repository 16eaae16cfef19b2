"""
Recursive discovery of .env files, grouped by containing folder.

A scan walks the tree below a root, skips heavy or generated directories,
and returns one group per folder that holds at least one `.env*` file.
Scans can be canceled from another thread through a `threading.Event`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional
import hashlib
import logging
import os
import threading

from .errors import InvalidRootError, ScanCanceledError, ScanError
from .excludes import IGNORED_DIRS, is_env_file_name


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvFileRef:
    """A discovered env file."""
    id: str
    absolute_path: str
    file_name: str
    folder_path: str
    size: int
    modified_at: int  # epoch milliseconds


@dataclass(frozen=True)
class ProjectGroup:
    """All env files found in one folder."""
    id: str
    name: str
    root_path: str
    env_files: list[EnvFileRef] = field(default_factory=list)


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a scan."""
    root_path: str
    groups: list[ProjectGroup] = field(default_factory=list)
    allowed_paths: frozenset[Path] = frozenset()

    @property
    def file_count(self) -> int:
        return sum(len(group.env_files) for group in self.groups)

    def find_group(self, group_id: str) -> Optional[ProjectGroup]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None


def hash_path(path: Path) -> str:
    """Stable identifier for a path."""
    return hashlib.sha256(str(path).encode()).hexdigest()


def modified_millis(stat_result: os.stat_result) -> int:
    return int(stat_result.st_mtime * 1000)


def make_file_ref(path: Path) -> EnvFileRef:
    """
    Build an EnvFileRef from a file on disk.

    Raises:
        OSError: If the file cannot be stat'ed
    """
    stat_result = path.stat()
    return EnvFileRef(
        id=hash_path(path),
        absolute_path=str(path),
        file_name=path.name,
        folder_path=str(path.parent),
        size=stat_result.st_size,
        modified_at=modified_millis(stat_result),
    )


def scan_env_files(
    root_path: str = ".",
    cancel_event: Optional[threading.Event] = None,
    extra_ignores: Optional[Iterable[str]] = None,
) -> ScanResult:
    """
    Find every .env file below root_path and group them by folder.

    Args:
        root_path: Directory to scan
        cancel_event: When set by another thread, the scan stops
        extra_ignores: Additional directory names to prune

    Raises:
        InvalidRootError: If root_path is not an existing directory
        ScanCanceledError: If cancel_event was set during the walk
        ScanError: If the tree cannot be walked

    Returns:
        ScanResult with groups sorted by name and files sorted by name
    """
    root = Path(root_path).expanduser()
    if not root.is_dir():
        raise InvalidRootError(f"Invalid root path: {root_path}")
    root = root.resolve()

    pruned = set(IGNORED_DIRS)
    if extra_ignores:
        pruned.update(extra_ignores)

    def on_walk_error(error: OSError) -> None:
        # Unreadable subdirectories are skipped; an unreadable root is fatal.
        if Path(error.filename or "") == root:
            raise ScanError(f"IO error: {error}") from error
        logger.debug("Skipping unreadable directory: %s", error)

    folders: dict[Path, list[EnvFileRef]] = {}
    allowed: set[Path] = set()

    logger.debug("Scanning %s", root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_walk_error, followlinks=False):
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCanceledError("Scan canceled")

        dirnames[:] = sorted(d for d in dirnames if d not in pruned)

        for filename in sorted(filenames):
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCanceledError("Scan canceled")
            if not is_env_file_name(filename):
                continue

            path = Path(dirpath) / filename
            if not path.is_file():
                continue

            try:
                ref = make_file_ref(path)
            except OSError as exc:
                raise ScanError(f"IO error: {exc}") from exc

            folders.setdefault(path.parent, []).append(ref)
            allowed.add(path.resolve())

    groups = []
    for folder, files in folders.items():
        files.sort(key=lambda ref: ref.file_name)
        groups.append(ProjectGroup(
            id=hash_path(folder),
            name=folder.name or str(folder),
            root_path=str(folder),
            env_files=files,
        ))
    groups.sort(key=lambda group: (group.name, group.root_path))

    logger.info("Found %d env file(s) in %d folder(s)", len(allowed), len(groups))
    return ScanResult(root_path=str(root), groups=groups, allowed_paths=frozenset(allowed))
