"""Tests for granoladrive.scope — project membership and dedup."""

from __future__ import annotations

from granoladrive.models import FolderMembership
from granoladrive.scope import is_in_scope, project_document_ids, select_for_sync
from granoladrive.sync_state import SyncState

KEYWORDS = ("loblaw", "loblaws", "loblaw digital", "remedy")


class TestProjectDocumentIds:
    def test_matching_folders_case_insensitive(self):
        folders = [
            FolderMembership("LOBLAW Digital", frozenset({"a", "b"})),
            FolderMembership("Remedy calls", frozenset({"c"})),
            FolderMembership("Personal", frozenset({"z"})),
        ]
        assert project_document_ids(folders, KEYWORDS) == {"a", "b", "c"}

    def test_no_folders(self):
        assert project_document_ids([], KEYWORDS) == set()


class TestIsInScope:
    def test_in_matching_folder(self, make_doc):
        assert is_in_scope(make_doc(doc_id="a", title="Standup"), {"a"}, KEYWORDS)

    def test_title_keyword_without_folder(self, make_doc):
        assert is_in_scope(make_doc(doc_id="x", title="Weekly LOBLAW sync"), set(), KEYWORDS)

    def test_neither(self, make_doc):
        assert not is_in_scope(make_doc(doc_id="x", title="Dentist"), {"a"}, KEYWORDS)


class TestSelectForSync:
    def test_excludes_processed_and_out_of_scope(self, tmp_path, make_doc):
        state = SyncState(tmp_path / "state.json")
        state.record_delivered("done", "Loblaw old", "old.md")
        state.record_skipped("skipped", "Loblaw empty", "no transcript")
        docs = [
            make_doc(doc_id="new", title="Loblaw Weekly"),
            make_doc(doc_id="done", title="Loblaw old"),
            make_doc(doc_id="skipped", title="Loblaw empty"),
            make_doc(doc_id="folder-only", title="Standup"),
            make_doc(doc_id="other", title="Dentist"),
        ]
        folders = [FolderMembership("Loblaw", frozenset({"folder-only"}))]
        to_sync, in_scope = select_for_sync(docs, folders, state, KEYWORDS)
        assert [d.id for d in to_sync] == ["new", "folder-only"]
        assert in_scope == 4

    def test_preserves_listing_order(self, tmp_path, make_doc):
        state = SyncState(tmp_path / "state.json")
        docs = [make_doc(doc_id=i, title="remedy") for i in ("c", "a", "b")]
        to_sync, _ = select_for_sync(docs, [], state, KEYWORDS)
        assert [d.id for d in to_sync] == ["c", "a", "b"]

    def test_duplicate_ids_in_listing_kept_once(self, tmp_path, make_doc):
        state = SyncState(tmp_path / "state.json")
        docs = [make_doc(doc_id="a"), make_doc(doc_id="b"), make_doc(doc_id="a")]
        to_sync, in_scope = select_for_sync(docs, [], state, KEYWORDS)
        assert [d.id for d in to_sync] == ["a", "b"]
        assert in_scope == 2
