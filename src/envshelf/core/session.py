"""
Editing session state for envshelf.

The session is modelled as a reducer: an immutable `AppState`, a closed set
of action types, and `reduce(state, action)` as the only place where the
structured lines and the raw text of the open document change. That keeps
the two views in sync:
    raw_text == write(document.lines)   after every structural edit
    document.lines == parse(raw_text)   after every raw text edit

`EditorSession` owns one `AppState`, talks to the scanner and to the file
layer, and turns their failures into state transitions.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union
import logging
import threading

from .differ import DiffItem, DiffSummary, diff, summarize
from .discovery import EnvFileRef, ProjectGroup, ScanResult, scan_env_files
from .errors import EnvShelfError, InvalidKeyError, ScanCanceledError
from .fileio import EnvDocument, read_env_file, write_env_file
from .lexer import KeyValue, Line, parse, write
from .lines import (
    filter_by_key,
    find_duplicate_keys,
    normalize_key,
    remove,
    rename,
    upsert,
)


logger = logging.getLogger(__name__)

TAB_TABLE = "table"
TAB_RAW = "raw"
TAB_DIFF = "diff"
TABS = (TAB_TABLE, TAB_RAW, TAB_DIFF)


class ScanState(Enum):
    """Scan lifecycle: IDLE -> SCANNING -> DONE | ERROR, SCANNING -> IDLE on cancel."""
    IDLE = "idle"
    SCANNING = "scanning"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class AppState:
    root_path: Optional[str] = None
    scan_state: ScanState = ScanState.IDLE
    groups: List[ProjectGroup] = field(default_factory=list)
    selected_group_id: Optional[str] = None
    selected_file: Optional[EnvFileRef] = None
    document: Optional[EnvDocument] = None
    original_lines: List[Line] = field(default_factory=list)
    raw_text: str = ""
    active_tab: str = TAB_TABLE
    mask_values: bool = True
    create_backup: bool = False
    search_key: str = ""
    status_message: Optional[str] = None


# Actions

@dataclass(frozen=True)
class ScanStarted:
    root_path: str


@dataclass(frozen=True)
class ScanSucceeded:
    groups: List[ProjectGroup]


@dataclass(frozen=True)
class ScanFailed:
    message: str


@dataclass(frozen=True)
class ScanCanceled:
    pass


@dataclass(frozen=True)
class GroupSelected:
    group_id: str


@dataclass(frozen=True)
class FileOpened:
    document: EnvDocument


@dataclass(frozen=True)
class ReadFailed:
    message: str


@dataclass(frozen=True)
class LinesEdited:
    lines: List[Line]


@dataclass(frozen=True)
class RawTextEdited:
    raw_text: str


@dataclass(frozen=True)
class SaveSucceeded:
    """The lines that were written become the saved snapshot."""
    lines: List[Line]
    message: str


@dataclass(frozen=True)
class SaveFailed:
    message: str


@dataclass(frozen=True)
class SettingsChanged:
    mask_values: Optional[bool] = None
    create_backup: Optional[bool] = None
    search_key: Optional[str] = None
    active_tab: Optional[str] = None


@dataclass(frozen=True)
class StatusReported:
    message: Optional[str]


@dataclass(frozen=True)
class RootForgotten:
    pass


Action = Union[
    ScanStarted,
    ScanSucceeded,
    ScanFailed,
    ScanCanceled,
    GroupSelected,
    FileOpened,
    ReadFailed,
    LinesEdited,
    RawTextEdited,
    SaveSucceeded,
    SaveFailed,
    SettingsChanged,
    StatusReported,
    RootForgotten,
]


def reduce(state: AppState, action: Action) -> AppState:
    """
    Compute the next state for an action.

    Args:
        state: Current state (never modified)
        action: One of the action types above

    Returns:
        New AppState
    """
    if isinstance(action, ScanStarted):
        return replace(
            state,
            root_path=action.root_path,
            scan_state=ScanState.SCANNING,
            status_message="Scanning for .env files...",
        )

    if isinstance(action, ScanSucceeded):
        return replace(
            state,
            groups=action.groups,
            selected_group_id=action.groups[0].id if action.groups else None,
            selected_file=None,
            document=None,
            original_lines=[],
            raw_text="",
            scan_state=ScanState.DONE,
            status_message=f"Found {len(action.groups)} project group(s).",
        )

    if isinstance(action, ScanFailed):
        return replace(state, scan_state=ScanState.ERROR, status_message=action.message)

    if isinstance(action, ScanCanceled):
        return replace(state, scan_state=ScanState.IDLE, status_message="Scan canceled.")

    if isinstance(action, GroupSelected):
        return replace(state, selected_group_id=action.group_id)

    if isinstance(action, FileOpened):
        lines = action.document.lines
        return replace(
            state,
            selected_file=action.document.file,
            document=action.document,
            original_lines=lines,
            raw_text=write(lines),
            active_tab=TAB_TABLE,
            status_message=f"Loaded {action.document.file.file_name}",
        )

    if isinstance(action, ReadFailed):
        return replace(state, status_message=action.message)

    if isinstance(action, LinesEdited):
        if state.document is None:
            return state
        return replace(
            state,
            document=state.document.with_lines(action.lines),
            raw_text=write(action.lines),
        )

    if isinstance(action, RawTextEdited):
        if state.document is None:
            return replace(state, raw_text=action.raw_text)
        return replace(
            state,
            raw_text=action.raw_text,
            document=state.document.with_lines(parse(action.raw_text)),
        )

    if isinstance(action, SaveSucceeded):
        if state.document is None:
            return state
        return replace(
            state,
            original_lines=action.lines,
            status_message=action.message,
        )

    if isinstance(action, SaveFailed):
        return replace(state, status_message=action.message)

    if isinstance(action, SettingsChanged):
        changes = {
            name: getattr(action, name)
            for name in ("mask_values", "create_backup", "search_key", "active_tab")
            if getattr(action, name) is not None
        }
        if changes.get("active_tab", TAB_TABLE) not in TABS:
            return replace(state, status_message=f"Unknown tab: {changes['active_tab']}")
        return replace(state, **changes)

    if isinstance(action, StatusReported):
        return replace(state, status_message=action.message)

    if isinstance(action, RootForgotten):
        return replace(
            state,
            root_path=None,
            scan_state=ScanState.IDLE,
            groups=[],
            selected_group_id=None,
            selected_file=None,
            document=None,
            original_lines=[],
            raw_text="",
            search_key="",
            status_message=None,
        )

    raise TypeError(f"Unknown action: {action!r}")


# Derived views

def pending_changes(state: AppState) -> List[DiffItem]:
    """Diff between the last saved lines and the working lines."""
    if state.document is None:
        return []
    return diff(state.original_lines, state.document.lines)


def is_dirty(state: AppState) -> bool:
    """True when the working text differs from the last saved text."""
    if state.document is None:
        return False
    return state.raw_text != write(state.original_lines)


def duplicate_keys(state: AppState) -> List[str]:
    if state.document is None:
        return []
    return find_duplicate_keys(state.document.lines)


def visible_key_values(state: AppState) -> List[KeyValue]:
    """Key/value lines shown in the table, filtered by the search box."""
    if state.document is None:
        return []
    return filter_by_key(state.document.lines, state.search_key)


def selected_group(state: AppState) -> Optional[ProjectGroup]:
    for group in state.groups:
        if group.id == state.selected_group_id:
            return group
    return None


class EditorSession:
    """
    Owns the state of one editing session.

    All state changes go through `dispatch`, which holds a lock so that an
    edit and the recomputation of its derived views happen as one step.
    Collaborator failures are reported through `status_message`; methods
    return True on success and False otherwise.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        scanner: Callable[..., ScanResult] = scan_env_files,
        reader: Callable[..., EnvDocument] = read_env_file,
        writer: Callable[..., Optional[Path]] = write_env_file,
        extra_ignores: Optional[set[str]] = None,
    ):
        self._state = state or AppState()
        self._scanner = scanner
        self._reader = reader
        self._writer = writer
        self._extra_ignores = extra_ignores or set()
        self._lock = threading.RLock()
        self._cancel_event = threading.Event()
        self._scan_result: Optional[ScanResult] = None
        self.last_backup: Optional[Path] = None

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def allowed_paths(self):
        """Resolved paths of the last scan, or None when no scan ran."""
        if self._scan_result is None:
            return None
        return self._scan_result.allowed_paths

    def dispatch(self, action: Action) -> AppState:
        with self._lock:
            self._state = reduce(self._state, action)
            return self._state

    # Scanning

    def scan(self, root_path: str) -> bool:
        """Scan root_path and open the first file of the first group."""
        self._cancel_event.clear()
        self.dispatch(ScanStarted(root_path=root_path))
        try:
            result = self._scanner(
                root_path,
                cancel_event=self._cancel_event,
                extra_ignores=self._extra_ignores,
            )
        except ScanCanceledError:
            logger.info("Scan of %s canceled", root_path)
            self.dispatch(ScanCanceled())
            return False
        except EnvShelfError as exc:
            logger.warning("Scan of %s failed: %s", root_path, exc)
            self.dispatch(ScanFailed(message=str(exc)))
            return False

        self._scan_result = result
        self.dispatch(ScanSucceeded(groups=result.groups))
        if result.groups:
            self.select_group(result.groups[0].id)
        return True

    def cancel_scan(self) -> None:
        """Ask a running scan to stop; safe to call from another thread."""
        self._cancel_event.set()

    def select_group(self, group_id: str) -> bool:
        """Select a group and open its first file."""
        self.dispatch(GroupSelected(group_id=group_id))
        group = selected_group(self._state)
        if group is None or not group.env_files:
            return False
        return self.open_file(group.env_files[0].absolute_path)

    # Files

    def open_file(self, path: str) -> bool:
        try:
            document = self._reader(path, allowed_paths=self.allowed_paths)
        except EnvShelfError as exc:
            logger.warning("Could not open %s: %s", path, exc)
            self.dispatch(ReadFailed(message=str(exc)))
            return False
        self.dispatch(FileOpened(document=document))
        return True

    def revert(self) -> bool:
        """Reload the selected file from disk, dropping unsaved edits."""
        if self._state.selected_file is None:
            return False
        return self.open_file(self._state.selected_file.absolute_path)

    def save(self) -> bool:
        """
        Write the working text to disk.

        On failure the working lines, raw text and last saved snapshot are
        left untouched, so the document still reports pending changes.
        """
        with self._lock:
            state = self._state
        if state.document is None or state.selected_file is None:
            return False

        # Edits dispatched while the writer runs stay pending: the snapshot
        # advances to the lines of `state`, not to the live document.
        changes = summarize(pending_changes(state))
        try:
            self.last_backup = self._writer(
                state.selected_file.absolute_path,
                state.raw_text,
                create_backup=state.create_backup,
                allowed_paths=self.allowed_paths,
            )
        except EnvShelfError as exc:
            logger.warning("Save failed: %s", exc)
            self.dispatch(SaveFailed(message=str(exc)))
            return False

        self.dispatch(SaveSucceeded(
            lines=state.document.lines,
            message=save_message(changes, state.create_backup),
        ))
        return True

    # Edits
    #
    # A key typed by the user that exactly matches a key already in the
    # document is used as written; anything else is normalized first.

    def set_value(self, raw_key: str, value: str) -> bool:
        with self._lock:
            key = self._resolve_key(raw_key)
            if key is None:
                return False
            return self._edit(lambda lines: upsert(lines, key, value))

    def add_variable(self, raw_key: str = "NEW_KEY", value: str = "value") -> bool:
        return self.set_value(raw_key, value)

    def rename_key(
        self,
        raw_old_key: str,
        raw_new_key: str,
        occurrence: Optional[int] = None,
    ) -> bool:
        """Rename a key; `occurrence` (1-based) limits the edit to one line."""
        with self._lock:
            old_key = self._resolve_key(raw_old_key)
            new_key = self._normalize(raw_new_key)
            if old_key is None or new_key is None:
                return False
            return self._edit(lambda lines: rename(lines, old_key, new_key, occurrence))

    def remove_key(self, raw_key: str, occurrence: Optional[int] = None) -> bool:
        """Remove a key; `occurrence` (1-based) limits the edit to one line."""
        with self._lock:
            key = self._resolve_key(raw_key)
            if key is None:
                return False
            return self._edit(lambda lines: remove(lines, key, occurrence))

    def set_raw_text(self, raw_text: str) -> None:
        self.dispatch(RawTextEdited(raw_text=raw_text))

    def update_settings(self, **settings) -> AppState:
        return self.dispatch(SettingsChanged(**settings))

    def forget_root(self) -> None:
        self._scan_result = None
        self.dispatch(RootForgotten())

    def _normalize(self, raw_key: str) -> Optional[str]:
        try:
            return normalize_key(raw_key)
        except InvalidKeyError as exc:
            self.dispatch(StatusReported(message=str(exc)))
            return None

    def _resolve_key(self, raw_key: str) -> Optional[str]:
        document = self._state.document
        if document is not None and any(
            isinstance(line, KeyValue) and line.key == raw_key for line in document.lines
        ):
            return raw_key
        return self._normalize(raw_key)

    def _edit(self, operation: Callable[[List[Line]], List[Line]]) -> bool:
        with self._lock:
            if self._state.document is None:
                return False
            lines = operation(self._state.document.lines)
            self.dispatch(LinesEdited(lines=lines))
            return True


def save_message(changes: DiffSummary, with_backup: bool) -> str:
    """Status line shown after a successful save."""
    if changes.total == 0:
        return "File saved. No changes to save."
    suffix = " (with backup)." if with_backup else "."
    return f"File saved. {changes}{suffix}"
