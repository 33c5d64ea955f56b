"""Data models for Granola documents and sync bookkeeping."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class Attendee:
    name: str | None = None
    email: str | None = None

    @property
    def key(self) -> str | None:
        return self.email or self.name


@dataclass
class TranscriptSegment:
    source: str
    text: str
    start: datetime | None = None

    @property
    def speaker(self) -> str:
        return "You" if self.source == "microphone" else "Other"


@dataclass
class GranolaDocument:
    id: str
    title: str
    created_at: datetime
    event_start: datetime | None = None
    attendees: list[Attendee] = field(default_factory=list)
    notes_markdown: str = ""


@dataclass(frozen=True)
class FolderMembership:
    """A Granola document list (folder) and the ids it contains."""

    name: str
    document_ids: frozenset[str] = frozenset()


@dataclass
class SyncRecord:
    """Persisted outcome for one document id. Never removed once written."""

    title: str
    at: str
    file: str | None = None
    skipped: bool = False
    reason: str | None = None

    def to_dict(self) -> dict:
        if self.skipped:
            data: dict = {"title": self.title, "skipped": True}
            if self.reason:
                data["reason"] = self.reason
        else:
            data = {"title": self.title, "file": self.file}
        data["at"] = self.at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> SyncRecord:
        return cls(
            title=data.get("title", ""),
            at=data.get("at", ""),
            file=data.get("file"),
            skipped=bool(data.get("skipped", False)),
            reason=data.get("reason"),
        )


class SyncOutcome(enum.Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DocumentResult:
    document: GranolaDocument
    outcome: SyncOutcome
    filename: str | None = None
    reason: str | None = None
    error: Exception | None = None


class RunStatus(enum.Enum):
    COMPLETED = "completed"
    LOCKED = "locked"


@dataclass
class SyncSummary:
    status: RunStatus
    delivered: int = 0
    skipped: int = 0
    failed: int = 0
    in_scope: int = 0
    output_dir: Path | None = None

    def add(self, result: DocumentResult) -> None:
        if result.outcome is SyncOutcome.DELIVERED:
            self.delivered += 1
        elif result.outcome is SyncOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
