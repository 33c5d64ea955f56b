"""Tests for granoladrive.sync_state — SyncState persistence and dedup records."""

from __future__ import annotations

import json

import pytest

from granoladrive.errors import StateCorrupted
from granoladrive.sync_state import SyncState


class TestSyncStateInit:
    def test_file_missing_empty_state(self, tmp_path):
        s = SyncState(tmp_path / "nonexistent.json")
        assert len(s) == 0
        assert s.last_sync is None

    def test_valid_json_loaded(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text(json.dumps({
            "synced": {
                "d1": {"title": "T", "file": "f.md", "at": "2024-01-10T00:00:00Z"},
                "d2": {"title": "U", "skipped": True, "at": "2024-01-10T00:00:00Z"},
            },
            "lastSync": "2024-01-10T00:00:00Z",
        }))
        s = SyncState(p)
        assert s.is_processed("d1")
        assert s.is_processed("d2")
        assert s.get("d1").file == "f.md"
        assert s.get("d2").skipped is True
        assert s.last_sync == "2024-01-10T00:00:00Z"

    def test_corrupt_json_is_fatal(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text("not json{{{")
        with pytest.raises(StateCorrupted):
            SyncState(p)

    def test_invalid_utf8_is_fatal(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_bytes(b"\xff\xfe{\"synced\": {}}")
        with pytest.raises(StateCorrupted):
            SyncState(p)

    def test_non_object_is_fatal(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text("[1, 2]")
        with pytest.raises(StateCorrupted):
            SyncState(p)

    def test_empty_object_is_empty_state(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text("{}")
        assert len(SyncState(p)) == 0


class TestRecords:
    def test_record_delivered(self, tmp_path):
        s = SyncState(tmp_path / "s.json")
        rec = s.record_delivered("d1", "Loblaw Weekly", "2024-01-10_loblaw-weekly.md")
        assert s.is_processed("d1")
        assert rec.file == "2024-01-10_loblaw-weekly.md"
        assert rec.at

    def test_record_skipped(self, tmp_path):
        s = SyncState(tmp_path / "s.json")
        rec = s.record_skipped("d1", "T", "no transcript")
        assert s.is_processed("d1")
        assert rec.skipped is True
        assert rec.reason == "no transcript"

    def test_records_are_never_replaced(self, tmp_path):
        s = SyncState(tmp_path / "s.json")
        s.record_delivered("d1", "T", "a.md")
        with pytest.raises(ValueError, match="already"):
            s.record_delivered("d1", "T", "b.md")
        with pytest.raises(ValueError, match="already"):
            s.record_skipped("d1", "T", "no transcript")
        assert s.get("d1").file == "a.md"

    def test_unknown_id(self, tmp_path):
        s = SyncState(tmp_path / "s.json")
        assert not s.is_processed("missing")
        assert s.get("missing") is None


class TestSave:
    def test_round_trip_format(self, tmp_path):
        p = tmp_path / "state.json"
        s = SyncState(p)
        s.record_delivered("d1", "Loblaw Weekly", "2024-01-10_loblaw-weekly.md")
        s.record_skipped("d2", "Empty", "no transcript")
        s.mark_completed()
        s.save()

        saved = json.loads(p.read_text())
        assert set(saved) == {"synced", "lastSync"}
        assert set(saved["synced"]["d1"]) == {"title", "file", "at"}
        assert saved["synced"]["d2"]["skipped"] is True
        assert saved["lastSync"] == s.last_sync

        reloaded = SyncState(p)
        assert reloaded.get("d1").file == "2024-01-10_loblaw-weekly.md"
        assert reloaded.last_sync == s.last_sync

    def test_save_creates_parent_dir_and_no_temp_left(self, tmp_path):
        p = tmp_path / "sub" / "dir" / "state.json"
        s = SyncState(p)
        s.save()
        assert p.exists()
        assert [f.name for f in p.parent.iterdir()] == ["state.json"]

    def test_unsaved_changes_not_on_disk(self, tmp_path):
        p = tmp_path / "state.json"
        s = SyncState(p)
        s.record_delivered("d1", "T", "a.md")
        assert not p.exists()
