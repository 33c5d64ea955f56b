"""Track which documents have been delivered or skipped, across runs."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from .errors import StateCorrupted
from .models import SyncRecord

log = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


class SyncState:
    """Persistent run state: ``{"synced": {doc_id: record}, "lastSync": ts}``.

    Records are only ever added. The file is rewritten wholesale on save.
    """

    def __init__(self, state_path: Path):
        self.path = state_path
        self._synced: dict[str, SyncRecord] = {}
        self.last_sync: str | None = None
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            log.debug("No sync state at %s, starting fresh", self.path)
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            synced = raw.get("synced") or {}
            self._synced = {
                doc_id: SyncRecord.from_dict(entry) for doc_id, entry in synced.items()
            }
            self.last_sync = raw.get("lastSync")
        except (json.JSONDecodeError, UnicodeDecodeError, OSError, AttributeError) as e:
            # Starting empty here would re-deliver every document.
            raise StateCorrupted(f"Sync state at {self.path} is unreadable: {e}") from e
        log.debug("Loaded sync state with %d entries", len(self._synced))

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "synced": {doc_id: rec.to_dict() for doc_id, rec in self._synced.items()},
            "lastSync": self.last_sync,
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def __len__(self) -> int:
        return len(self._synced)

    def is_processed(self, doc_id: str) -> bool:
        return doc_id in self._synced

    def get(self, doc_id: str) -> SyncRecord | None:
        return self._synced.get(doc_id)

    def _add(self, doc_id: str, record: SyncRecord) -> None:
        if doc_id in self._synced:
            raise ValueError(f"Document {doc_id} already has a sync record")
        self._synced[doc_id] = record

    def record_delivered(self, doc_id: str, title: str, filename: str) -> SyncRecord:
        record = SyncRecord(title=title, file=filename, at=utc_now_iso())
        self._add(doc_id, record)
        return record

    def record_skipped(self, doc_id: str, title: str, reason: str) -> SyncRecord:
        record = SyncRecord(title=title, skipped=True, reason=reason, at=utc_now_iso())
        self._add(doc_id, record)
        return record

    def mark_completed(self) -> None:
        self.last_sync = utc_now_iso()
