"""Locate the shared project folder inside a Google Drive for Desktop mount.

Each mount lives at ``~/Library/CloudStorage/GoogleDrive-<account>``. The
project folder may sit in a few places depending on how it was shared, so the
resolver tries a prioritized list of strategies. Each strategy takes the config
and the detected mounts and yields candidate project folders; the first one
that exists wins.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from .config import Config
from .errors import OutputLocationNotFound

log = logging.getLogger(__name__)

_MY_DRIVE = "My Drive"
_SHARED_DRIVES = "Shared drives"

Strategy = Callable[[Config, list[Path]], Iterable[Path]]


def find_drive_mounts(config: Config) -> list[Path]:
    root = config.cloud_storage_path
    if not root.is_dir():
        return []
    return sorted(
        p for p in root.iterdir() if p.is_dir() and p.name.startswith(config.drive_prefix)
    )


def cached_hint(config: Config, mounts: list[Path]) -> Iterator[Path]:
    """The folder recorded by the installer, if any."""
    hint_file = config.output_hint_path
    if not hint_file.is_file():
        return
    lines = hint_file.read_text(encoding="utf-8").strip().splitlines()
    if lines and lines[0].strip():
        yield Path(lines[0].strip()).expanduser()


def client_context_layout(config: Config, mounts: list[Path]) -> Iterator[Path]:
    for mount in mounts:
        yield mount / _MY_DRIVE / config.client_context_dir / config.project_name


def shared_drive_layouts(config: Config, mounts: list[Path]) -> Iterator[Path]:
    for mount in mounts:
        shared = mount / _SHARED_DRIVES
        if not shared.is_dir():
            continue
        for drive_root in sorted(p for p in shared.iterdir() if p.is_dir()):
            yield drive_root / config.client_context_dir / config.project_name
            yield drive_root / config.project_name


def personal_drive_layout(config: Config, mounts: list[Path]) -> Iterator[Path]:
    for mount in mounts:
        yield mount / _MY_DRIVE / config.project_name


def recursive_search(config: Config, mounts: list[Path]) -> Iterator[Path]:
    """Breadth-first, case-insensitive search for the project folder name."""
    target = config.project_name.lower()
    for mount in mounts:
        root = mount / _MY_DRIVE
        if not root.is_dir():
            continue
        queue: deque[tuple[Path, int]] = deque([(root, 0)])
        while queue:
            current, depth = queue.popleft()
            if depth >= config.search_depth:
                continue
            try:
                children = sorted(p for p in current.iterdir() if p.is_dir())
            except OSError:
                log.debug("Cannot list %s, skipping", current)
                continue
            for child in children:
                if child.name.lower() == target:
                    yield child
                queue.append((child, depth + 1))


STRATEGIES: tuple[Strategy, ...] = (
    cached_hint,
    client_context_layout,
    shared_drive_layouts,
    personal_drive_layout,
    recursive_search,
)


def find_project_dir(
    config: Config,
    strategies: Iterable[Strategy] = STRATEGIES,
) -> Path:
    """Return the first existing candidate project folder."""
    mounts = find_drive_mounts(config)
    if not mounts:
        raise OutputLocationNotFound(
            f"Google Drive not found under {config.cloud_storage_path}. "
            "Install Google Drive for Desktop and sign in."
        )

    for strategy in strategies:
        for candidate in strategy(config, mounts):
            if candidate.is_dir():
                log.debug("Project folder found by %s: %s", strategy.__name__, candidate)
                return candidate

    raise OutputLocationNotFound(
        f'Could not find the "{config.client_context_dir}/{config.project_name}" folder '
        "in Google Drive. Make sure it is shared with you."
    )


def resolve_output_dir(config: Config) -> Path:
    """Return the transcripts folder inside the project folder, creating it if needed."""
    output_dir = find_project_dir(config) / config.output_subfolder
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir.resolve()
