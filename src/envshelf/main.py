"""
envshelf CLI - find, inspect and safely edit .env files

Main entry point for the envshelf command-line tool.
"""

import click
import sys
import threading
from datetime import datetime
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from . import config
from .core.differ import ChangeKind, DiffItem, diff
from .core.errors import EnvShelfError, InvalidKeyError
from .core.fileio import read_env_file
from .core.inference import MaskMode, mask_value
from .core.lines import count_occurrences, find_duplicate_keys, normalize_key
from .core.session import (
    EditorSession,
    ScanState,
    duplicate_keys,
    pending_changes,
    visible_key_values,
)
from .logging_setup import configure_logging


console = Console()

CHANGE_STYLES = {
    ChangeKind.ADDED: "green",
    ChangeKind.UPDATED: "yellow",
    ChangeKind.REMOVED: "red",
}


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def _format_size(size: int) -> str:
    return f"{round(size / 1024)} KB"


def _format_modified(modified_at: int) -> str:
    return datetime.fromtimestamp(modified_at / 1000).strftime("%Y-%m-%d %H:%M")


def _new_session(settings: config.Settings) -> EditorSession:
    session = EditorSession(extra_ignores=settings.extra_ignores)
    session.update_settings(
        mask_values=settings.mask_values,
        create_backup=settings.create_backup,
    )
    return session


def _open_or_fail(session: EditorSession, file: str) -> None:
    if not session.open_file(file):
        fail(session.state.status_message or f"Could not read {file}")


def _resolve_mask(show_values: bool, mask: str | None, settings: config.Settings) -> MaskMode:
    if show_values:
        return MaskMode.NONE
    if mask:
        return MaskMode(mask)
    return MaskMode.ALL if settings.mask_values else MaskMode.NONE


def render_diff(items: list[DiffItem], title: str = "Changes") -> None:
    """Print diff items as a table."""
    if not items:
        console.print("[dim]No changes.[/dim]")
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Change")
    table.add_column("Detail")

    for item in items:
        style = CHANGE_STYLES[item.change]
        table.add_row(item.key, f"[{style}]{item.change.value}[/{style}]", item.describe())

    console.print(table)


def render_duplicates(keys: list[str]) -> None:
    if keys:
        console.print(f"[red]Duplicate keys detected: {', '.join(keys)}[/red]")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """
    envshelf - find, inspect and safely edit .env files
    """
    configure_logging(verbose)


@cli.command()
@click.argument('root', required=False)
def scan(root):
    """
    Scan a folder for .env files and list them by project.

    Defaults to the last scanned folder, or the current directory.
    Press Ctrl+C to cancel a long scan.
    """
    settings = config.load_settings()
    root = root or settings.last_root or "."
    session = _new_session(settings)

    worker = threading.Thread(target=session.scan, args=(root,), daemon=True)
    with console.status("[cyan]Scanning for .env files...[/cyan]"):
        worker.start()
        try:
            while worker.is_alive():
                worker.join(0.1)
        except KeyboardInterrupt:
            session.cancel_scan()
            worker.join()

    state = session.state
    if state.scan_state == ScanState.ERROR:
        fail(state.status_message or "Scan failed")
    if state.scan_state == ScanState.IDLE:
        console.print(f"[yellow]{state.status_message}[/yellow]")
        return

    config.remember_root(root)

    if not state.groups:
        console.print("[yellow]No .env files found[/yellow]")
        return

    file_count = sum(len(group.env_files) for group in state.groups)
    console.print(Panel(
        f"Root: {state.root_path}\n{state.status_message}\nEnv files: {file_count}",
        title="[bold cyan]Scan complete[/bold cyan]",
        border_style="cyan",
        box=box.ROUNDED,
    ))

    for group in state.groups:
        table = Table(title=f"[bold]{group.name}[/bold] [dim]{group.root_path}[/dim]", box=box.ROUNDED)
        table.add_column("File", style="cyan", no_wrap=True)
        table.add_column("Size", style="blue", justify="right")
        table.add_column("Modified", style="magenta")
        for ref in group.env_files:
            table.add_row(ref.file_name, _format_size(ref.size), _format_modified(ref.modified_at))
        console.print(table)


@cli.command()
@click.argument('file', type=click.Path(dir_okay=False))
@click.option('--search', '-s', default="", help='Only show keys containing this text')
@click.option('--show-values', is_flag=True, help='Show values in clear text')
@click.option('--mask', type=click.Choice([mode.value for mode in MaskMode]), default=None,
              help='Which values to mask (default: from settings)')
def show(file, search, show_values, mask):
    """
    Show the variables of an env file as a table.
    """
    settings = config.load_settings()
    session = _new_session(settings)
    _open_or_fail(session, file)
    session.update_settings(search_key=search)
    mode = _resolve_mask(show_values, mask, settings)

    state = session.state
    table = Table(title=state.selected_file.file_name, box=box.ROUNDED)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_column("Export", style="dim")

    for index, line in enumerate(visible_key_values(state), start=1):
        table.add_row(
            str(index),
            line.key,
            mask_value(line.key, line.value, mode),
            "yes" if line.has_export else "",
        )

    console.print(table)
    render_duplicates(duplicate_keys(state))


@cli.command()
@click.argument('file', type=click.Path(dir_okay=False))
def raw(file):
    """
    Print the text of an env file exactly as stored.
    """
    session = _new_session(config.load_settings())
    _open_or_fail(session, file)
    click.echo(session.state.raw_text, nl=False)


def _apply_and_save(session: EditorSession, applied: bool) -> None:
    """Show pending changes for an edit, then save."""
    state = session.state
    if not applied:
        fail(state.status_message or "Edit failed")

    changes = pending_changes(state)
    render_diff(changes, title=f"Changes to {state.selected_file.file_name}")
    render_duplicates(duplicate_keys(state))

    if not session.save():
        fail(session.state.status_message or "Save failed")

    console.print(f"[green]✓ {session.state.status_message}[/green]")
    if session.last_backup:
        console.print(f"[dim]Backup written to {session.last_backup}[/dim]")


def _require_key(session: EditorSession, raw_key: str, occurrence: int | None = None) -> None:
    lines = session.state.document.lines
    key = raw_key
    if count_occurrences(lines, key) == 0:
        try:
            key = normalize_key(raw_key)
        except InvalidKeyError as exc:
            fail(str(exc))

    count = count_occurrences(lines, key)
    if count == 0:
        fail(f"Key '{raw_key}' does not exist")
    if occurrence is not None and occurrence > count:
        fail(f"Key '{key}' appears {count} time(s), no occurrence {occurrence}")


@cli.command(name="set")
@click.argument('file', type=click.Path(dir_okay=False))
@click.argument('key')
@click.argument('value')
@click.option('--backup/--no-backup', default=None, help='Back up the file before saving')
def set_command(file, key, value, backup):
    """
    Set KEY to VALUE, adding the variable if needed.

    A KEY already in the file is used as written; a new KEY is uppercased
    and spaces become underscores.
    """
    session = _new_session(config.load_settings())
    if backup is not None:
        session.update_settings(create_backup=backup)
    _open_or_fail(session, file)
    _apply_and_save(session, session.set_value(key, value))


@cli.command()
@click.argument('file', type=click.Path(dir_okay=False))
@click.argument('old_key')
@click.argument('new_key')
@click.option('--backup/--no-backup', default=None, help='Back up the file before saving')
@click.option('--occurrence', '-n', type=click.IntRange(min=1), default=None,
              help='Only rename the Nth line defining OLD_KEY')
def rename(file, old_key, new_key, backup, occurrence):
    """
    Rename OLD_KEY to NEW_KEY, keeping its value and position.

    Use --occurrence to split a duplicated key by renaming one of its lines.
    """
    session = _new_session(config.load_settings())
    if backup is not None:
        session.update_settings(create_backup=backup)
    _open_or_fail(session, file)
    _require_key(session, old_key, occurrence)
    _apply_and_save(session, session.rename_key(old_key, new_key, occurrence))


@cli.command()
@click.argument('file', type=click.Path(dir_okay=False))
@click.argument('key')
@click.option('--backup/--no-backup', default=None, help='Back up the file before saving')
@click.option('--occurrence', '-n', type=click.IntRange(min=1), default=None,
              help='Only remove the Nth line defining KEY')
def unset(file, key, backup, occurrence):
    """
    Remove every line that defines KEY, or only the Nth with --occurrence.
    """
    session = _new_session(config.load_settings())
    if backup is not None:
        session.update_settings(create_backup=backup)
    _open_or_fail(session, file)
    _require_key(session, key, occurrence)
    _apply_and_save(session, session.remove_key(key, occurrence))


@cli.command(name="diff")
@click.argument('before', type=click.Path(dir_okay=False))
@click.argument('after', type=click.Path(dir_okay=False))
def diff_command(before, after):
    """
    Show which keys were added, updated or removed between two env files.
    """
    try:
        before_doc = read_env_file(before)
        after_doc = read_env_file(after)
    except EnvShelfError as exc:
        fail(str(exc))

    render_diff(
        diff(before_doc.lines, after_doc.lines),
        title=f"{before_doc.file.file_name} → {after_doc.file.file_name}",
    )


@cli.command()
@click.argument('file', type=click.Path(dir_okay=False))
def dupes(file):
    """
    List keys defined more than once. Exits with 1 when any are found.
    """
    try:
        document = read_env_file(file)
    except EnvShelfError as exc:
        fail(str(exc))

    keys = find_duplicate_keys(document.lines)
    if not keys:
        console.print("[green]✓ No duplicate keys[/green]")
        return

    render_duplicates(keys)
    sys.exit(1)


@cli.command()
def forget():
    """
    Forget the remembered scan folder.
    """
    config.forget_root()
    console.print("[green]✓ Forgot saved folder[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
