"""Read the Granola access token and operator name from local files."""

from __future__ import annotations

import getpass
import json
import logging
import time
from pathlib import Path

from .errors import CredentialsExpired, CredentialsMissing

log = logging.getLogger(__name__)


def read_token(creds_path: Path, *, now_ms: int | None = None) -> str:
    """Return the bearer token stored by the Granola desktop app.

    The file holds a JSON object whose ``workos_tokens`` member is itself a
    JSON-encoded string. No refresh is attempted: an expired token ends the run.
    """
    if not creds_path.exists():
        raise CredentialsMissing(
            f"Granola credentials not found at {creds_path}. Open Granola and log in first."
        )

    try:
        outer = json.loads(creds_path.read_text(encoding="utf-8"))
        tokens = outer["workos_tokens"]
        if isinstance(tokens, str):
            tokens = json.loads(tokens)
        access_token = tokens["access_token"]
        expires_at = int(tokens["obtained_at"]) + int(tokens["expires_in"]) * 1000
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise CredentialsMissing(f"Granola credentials at {creds_path} are unreadable: {e}") from e

    now = now_ms if now_ms is not None else int(time.time() * 1000)
    if now > expires_at:
        raise CredentialsExpired("Granola token expired. Open Granola to refresh, then re-run.")

    log.debug("Loaded Granola token (expires in %ds)", (expires_at - now) // 1000)
    return access_token


def read_operator_name(name_path: Path) -> str:
    """Display name of the person running the sync, else the OS account name."""
    if name_path.is_file():
        for line in name_path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                return line.strip()
    return getpass.getuser()
