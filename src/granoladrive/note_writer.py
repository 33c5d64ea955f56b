"""Render Granola documents to Markdown and write them to the shared folder."""

from __future__ import annotations

import logging
import re
from datetime import datetime, tzinfo
from pathlib import Path

from .models import GranolaDocument, TranscriptSegment

log = logging.getLogger(__name__)

_SLUG_DROP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE = re.compile(r"\s+")
_SLUG_MAX = 80


def _local(dt: datetime, tz: tzinfo | None) -> datetime:
    return dt.astimezone(tz) if tz is not None else dt


def _format_date(dt: datetime) -> str:
    # "Wednesday, January 10, 2024"
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def _format_attendees(doc: GranolaDocument, home_domain: str) -> list[str]:
    entries: list[str] = []
    seen: set[str] = set()
    for attendee in doc.attendees:
        key = attendee.key
        if not key or key in seen:
            continue
        seen.add(key)
        entry = attendee.name or attendee.email
        if attendee.email and "@" in attendee.email:
            domain = attendee.email.split("@", 1)[1]
            if domain and domain != home_domain:
                entry += f" ({domain})"
        entries.append(entry)
    return entries


def _format_segment(segment: TranscriptSegment, tz: tzinfo | None) -> str:
    if segment.start is None:
        return f"**{segment.speaker}:** {segment.text}"
    time_str = f"{_local(segment.start, tz):%I:%M %p}"
    return f"**[{time_str}] {segment.speaker}:** {segment.text}"


def render_note(
    doc: GranolaDocument,
    transcript: list[TranscriptSegment] | None,
    *,
    operator_name: str,
    home_domain: str,
    tz: tzinfo | None = None,
) -> str:
    """Build the Markdown artifact for one document."""
    lines: list[str] = [f"# {doc.title}", ""]

    lines.append(f"**Date:** {_format_date(_local(doc.created_at, tz))}")
    if doc.event_start is not None:
        lines.append(f"**Time:** {_local(doc.event_start, tz):%I:%M %p %Z}".rstrip())
    lines.append(f"**Recorded by:** {operator_name}")
    lines.append("**Source:** Granola")
    lines.append(f"**Document ID:** {doc.id}")

    attendees = _format_attendees(doc, home_domain)
    if attendees:
        lines += ["", "**Attendees:**"]
        lines += [f"- {a}" for a in attendees]

    lines += ["", "---", ""]

    if doc.notes_markdown:
        lines += ["## Notes", "", doc.notes_markdown, "", "---", ""]

    lines += ["## Transcript", ""]
    if transcript:
        for segment in transcript:
            lines += [_format_segment(segment, tz), ""]
    else:
        lines.append("*No transcript available.*")

    return "\n".join(lines).rstrip("\n") + "\n"


def _slug(text: str) -> str:
    slug = _SLUG_DROP.sub("", text.lower())
    slug = _SLUG_SPACE.sub("-", slug.strip())
    return slug[:_SLUG_MAX].rstrip("-")


def slugify(title: str | None) -> str:
    return _slug(title or "") or "meeting"


def make_filename(
    doc: GranolaDocument,
    existing: set[str],
    *,
    user: str | None = None,
    tz: tzinfo | None = None,
) -> str:
    """Generate '<date>_<slug>.md' (or '<date>_<user>_<slug>.md') not in ``existing``.

    The date follows the same zone as the note's Date line. A user name with
    nothing sluggable in it is left out.
    """
    parts = [f"{_local(doc.created_at, tz):%Y-%m-%d}"]
    user_slug = _slug(user) if user else ""
    if user_slug:
        parts.append(user_slug)
    parts.append(slugify(doc.title))
    stem = "_".join(parts)

    name = f"{stem}.md"
    i = 1
    while name in existing:
        name = f"{stem}_{i}.md"
        i += 1
    return name


def write_note(
    output_dir: Path,
    doc: GranolaDocument,
    content: str,
    existing: set[str],
    *,
    user: str | None = None,
    tz: tzinfo | None = None,
    dry_run: bool = False,
) -> Path:
    """Write the note under a name no other file uses. Returns the path written.

    ``existing`` is the caller's snapshot of the folder and is updated with
    the chosen name. Files are created exclusively so a file that appeared
    after the snapshot (another machine syncing the same folder) is never
    overwritten. A write that fails part way removes its file again, so a
    retry on the next run does not leave a stray artifact behind.
    """
    while True:
        filename = make_filename(doc, existing, user=user, tz=tz)
        filepath = output_dir / filename

        if dry_run:
            existing.add(filename)
            log.info("[DRY RUN] Would write %s (%d chars)", filepath, len(content))
            return filepath

        try:
            # Unpaired surrogates can arrive in valid JSON; replace them.
            f = filepath.open("x", encoding="utf-8", errors="replace")
        except FileExistsError:
            log.debug("%s appeared since the folder was listed, trying next name", filename)
            existing.add(filename)
            continue

        try:
            with f:
                f.write(content)
        except BaseException:
            filepath.unlink(missing_ok=True)
            raise

        existing.add(filename)
        log.info("  Saved: %s", filename)
        return filepath
