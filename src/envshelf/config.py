"""Settings from environment variables and the persisted preferences file.

Environment:
    ENVSHELF_CONFIG_DIR      directory holding settings.json (~/.config/envshelf)
    ENVSHELF_MASK_VALUES     mask values in tables (default: on)
    ENVSHELF_CREATE_BACKUP   back up files before saving (default: off)
    ENVSHELF_EXTRA_IGNORES   comma separated directory names to skip when scanning
    ENVSHELF_LOG_LEVEL       logging level (default: WARNING)

Schema on disk (<config dir>/settings.json):

    {
        "last_root": "/home/me/projects",
        "mask_values": true,
        "create_backup": false
    }

Environment variables win over the file; the file wins over defaults.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional
import json
import logging
import os

from .core.excludes import parse_extra_ignores


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "~/.config/envshelf"
SETTINGS_FILE = "settings.json"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def config_dir() -> Path:
    return Path(os.getenv("ENVSHELF_CONFIG_DIR", DEFAULT_CONFIG_DIR)).expanduser()


def settings_path() -> Path:
    return config_dir() / SETTINGS_FILE


@dataclass
class Settings:
    """User preferences."""
    last_root: Optional[str] = None
    mask_values: bool = True
    create_backup: bool = False
    extra_ignores: set[str] = field(default_factory=set)


def load_settings() -> Settings:
    """
    Load preferences, falling back to defaults.

    A missing or corrupt settings file is not an error: defaults are used and
    the problem is logged.
    """
    settings = Settings()
    path = settings_path()

    if path.exists():
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
            data = {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", path)
            data = {}

        last_root = data.get("last_root")
        if isinstance(last_root, str) and last_root:
            settings.last_root = last_root
        if isinstance(data.get("mask_values"), bool):
            settings.mask_values = data["mask_values"]
        if isinstance(data.get("create_backup"), bool):
            settings.create_backup = data["create_backup"]

    settings.mask_values = _env_bool("ENVSHELF_MASK_VALUES", settings.mask_values)
    settings.create_backup = _env_bool("ENVSHELF_CREATE_BACKUP", settings.create_backup)
    settings.extra_ignores = parse_extra_ignores(os.getenv("ENVSHELF_EXTRA_IGNORES", ""))
    return settings


def save_settings(settings: Settings) -> None:
    """Persist preferences to disk, creating directories as needed."""
    path = settings_path()
    payload = asdict(settings)
    payload.pop("extra_ignores")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2))


def remember_root(root_path: str) -> None:
    settings = load_settings()
    settings.last_root = str(Path(root_path).expanduser().resolve())
    save_settings(settings)


def forget_root() -> None:
    settings = load_settings()
    settings.last_root = None
    save_settings(settings)
