"""Shared fixtures for granoladrive tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from granoladrive.config import Config
from granoladrive.models import Attendee, GranolaDocument, TranscriptSegment


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 10, 14, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_attendees() -> list[Attendee]:
    return [
        Attendee(name="Alice", email="alice@loblaw.ca"),
        Attendee(name="Ed", email="ed@latecheckout.studio"),
        Attendee(name="Alice Again", email="alice@loblaw.ca"),
        Attendee(name="Bob"),
    ]


@pytest.fixture
def sample_transcript() -> list[TranscriptSegment]:
    return [
        TranscriptSegment(
            source="microphone",
            text="Morning everyone",
            start=datetime(2024, 1, 10, 14, 31, tzinfo=timezone.utc),
        ),
        TranscriptSegment(
            source="system",
            text="Hi, let's start",
            start=datetime(2024, 1, 10, 14, 32, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def sample_document(sample_attendees: list[Attendee], fixed_now: datetime) -> GranolaDocument:
    return GranolaDocument(
        id="doc-123",
        title="Loblaw Weekly",
        created_at=fixed_now,
        event_start=fixed_now,
        attendees=sample_attendees,
        notes_markdown="- shipped the thing",
    )


@pytest.fixture
def make_doc(fixed_now):
    def _make(doc_id="d1", title="Loblaw Weekly", **kwargs):
        return GranolaDocument(id=doc_id, title=title, created_at=fixed_now, **kwargs)
    return _make


@pytest.fixture
def drive_root(tmp_path: Path) -> Path:
    """A CloudStorage folder with one Google Drive mount and the project folder."""
    root = tmp_path / "CloudStorage"
    project = root / "GoogleDrive-ed@example.com" / "My Drive" / "client context" / "loblaw digital"
    project.mkdir(parents=True)
    return root


@pytest.fixture
def config(tmp_path: Path, drive_root: Path) -> Config:
    home = tmp_path / "home"
    home.mkdir()
    (home / "user_name").write_text("Ed Tester\n")
    return Config(
        credentials_path=home / "supabase.json",
        cloud_storage_path=drive_root,
        state_path=home / "state.json",
        lock_path=home / "sync.lock",
        output_hint_path=home / "output_path",
        operator_name_path=home / "user_name",
        request_delay=0,
    )


@pytest.fixture
def write_credentials():
    def _write(path: Path, *, obtained_at: int, expires_in: int = 3600, token: str = "tok") -> None:
        tokens = {"access_token": token, "obtained_at": obtained_at, "expires_in": expires_in}
        path.write_text(json.dumps({"workos_tokens": json.dumps(tokens)}))
    return _write
