"""Turn Granola API payloads into model objects."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .models import Attendee, FolderMembership, GranolaDocument, TranscriptSegment

log = logging.getLogger(__name__)


def parse_timestamp(value: str | int | float | None) -> datetime | None:
    """Parse an ISO string or epoch number into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        # Epoch millis or seconds
        if value > 1e12:
            value = value / 1000
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(value, str):
        try:
            return parse_timestamp(float(value))
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def parse_document(raw: dict) -> GranolaDocument:
    """Parse one entry of a get-documents page."""
    doc_id = raw.get("id")
    if not doc_id:
        raise ValueError("document has no id")

    created_at = parse_timestamp(raw.get("created_at") or raw.get("createdAt"))
    if created_at is None:
        raise ValueError(f"document {doc_id} has no usable created_at")

    event_start = None
    gcal = raw.get("google_calendar_event")
    if isinstance(gcal, dict):
        start = gcal.get("start") or {}
        if isinstance(start, dict):
            event_start = parse_timestamp(start.get("dateTime"))

    return GranolaDocument(
        id=str(doc_id),
        title=raw.get("title") or "Untitled Meeting",
        created_at=created_at,
        event_start=event_start,
        attendees=_parse_attendees(raw),
        notes_markdown=raw.get("notes_markdown") or "",
    )


def _parse_attendees(raw: dict) -> list[Attendee]:
    # Prefer doc.people.attendees, then google_calendar_event.attendees
    people = raw.get("people")
    if isinstance(people, dict) and people.get("attendees"):
        return [
            Attendee(name=p.get("name"), email=p.get("email"))
            for p in people["attendees"]
            if isinstance(p, dict)
        ]

    gcal = raw.get("google_calendar_event")
    if isinstance(gcal, dict):
        return [
            Attendee(name=a.get("displayName"), email=a.get("email"))
            for a in gcal.get("attendees", [])
            if isinstance(a, dict)
        ]
    return []


def parse_documents_page(payload: Any) -> list[GranolaDocument]:
    """Parse a get-documents response, dropping entries that cannot be parsed."""
    if not isinstance(payload, dict):
        return []
    docs: list[GranolaDocument] = []
    for raw in payload.get("docs") or []:
        try:
            docs.append(parse_document(raw))
        except (ValueError, TypeError, AttributeError):
            log.warning("Skipping unparseable document %r", _describe(raw), exc_info=True)
    return docs


def page_length(payload: Any) -> int:
    """Number of raw entries in a get-documents page, parsed or not."""
    if isinstance(payload, dict) and isinstance(payload.get("docs"), list):
        return len(payload["docs"])
    return 0


def _describe(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("id") or raw.get("title") or "?")
    return type(raw).__name__


def parse_folders(payload: Any) -> list[FolderMembership]:
    """Parse a get-document-lists response (``{"lists": [...]}`` or a bare list)."""
    if isinstance(payload, dict):
        lists = payload.get("lists") or []
    elif isinstance(payload, list):
        lists = payload
    else:
        lists = []

    folders: list[FolderMembership] = []
    for entry in lists:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name") or entry.get("title") or ""
        members = entry.get("documents") or entry.get("document_ids") or []
        ids = set()
        for member in members:
            if isinstance(member, str):
                ids.add(member)
            elif isinstance(member, dict) and member.get("id"):
                ids.add(str(member["id"]))
        folders.append(FolderMembership(name=name, document_ids=frozenset(ids)))
    return folders


def parse_transcript(payload: Any) -> list[TranscriptSegment]:
    """Parse a get-document-transcript response into ordered segments."""
    if isinstance(payload, dict):
        entries = payload.get("transcript") or payload.get("segments") or []
    elif isinstance(payload, list):
        entries = payload
    else:
        entries = []

    segments: list[TranscriptSegment] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        segments.append(
            TranscriptSegment(
                source=entry.get("source") or "",
                text=entry.get("text") or "",
                start=parse_timestamp(entry.get("start_timestamp")),
            )
        )
    return segments
