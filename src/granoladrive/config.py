"""Configuration loading and defaults."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml


_HOME = Path.home()
_INSTALL_DIR = _HOME / ".lca-granola-sync"
_DEFAULT_CONFIG_DIR = _HOME / ".config" / "granoladrive"
_DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "config.yaml"

_PATH_FIELDS = (
    "credentials_path",
    "cloud_storage_path",
    "state_path",
    "lock_path",
    "output_hint_path",
    "operator_name_path",
)


def _default_keywords() -> list[str]:
    return ["loblaw", "loblaws", "loblaw digital", "remedy"]


@dataclass
class Config:
    project_name: str = "loblaw digital"
    client_context_dir: str = "client context"
    keywords: list[str] = field(default_factory=_default_keywords)
    home_domain: str = "latecheckout.studio"
    output_subfolder: str = "transcripts"
    filename_include_user: bool = False
    timezone: str | None = None

    credentials_path: Path = _HOME / "Library/Application Support/Granola/supabase.json"
    cloud_storage_path: Path = _HOME / "Library/CloudStorage"
    drive_prefix: str = "GoogleDrive-"
    state_path: Path = _HOME / ".lca-granola-sync-state.json"
    lock_path: Path = _HOME / ".lca-granola-sync.lock"
    output_hint_path: Path = _INSTALL_DIR / "output_path"
    operator_name_path: Path = _INSTALL_DIR / "user_name"

    api_base_url: str = "https://api.granola.ai"
    client_version: str = "5.354.0"
    request_delay: float = 0.2
    request_timeout: float = 30.0
    page_size: int = 100

    lock_stale_minutes: float = 30
    checkpoint_every: int = 10
    search_depth: int = 4

    @property
    def lowered_keywords(self) -> tuple[str, ...]:
        return tuple(k.lower() for k in self.keywords if k)


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML, using defaults for anything not set.

    A missing file at the default location is fine; a missing file that was
    asked for explicitly is an error.
    """
    path = Path(config_path or _DEFAULT_CONFIG_PATH).expanduser()

    if not path.exists():
        if config_path is None:
            return Config()
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config file: {path}")

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config key(s) in {path}: {', '.join(unknown)}")

    kwargs: dict = {}
    for key, value in raw.items():
        if key in _PATH_FIELDS:
            value = Path(value).expanduser()
        elif key == "keywords":
            if not isinstance(value, list) or not value:
                raise ValueError("'keywords' must be a non-empty list")
            value = [str(v) for v in value]
        elif key == "timezone" and value:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {value}") from e
        kwargs[key] = value

    return Config(**kwargs)
