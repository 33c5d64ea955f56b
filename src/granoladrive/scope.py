"""Decide which remote documents belong to the project and still need syncing."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import FolderMembership, GranolaDocument
from .sync_state import SyncState

log = logging.getLogger(__name__)


def project_document_ids(folders: Iterable[FolderMembership], keywords: Iterable[str]) -> set[str]:
    """Ids of all documents in folders whose name contains a keyword."""
    keywords = [k.lower() for k in keywords]
    ids: set[str] = set()
    for folder in folders:
        name = folder.name.lower()
        if any(k in name for k in keywords):
            log.info('Found Granola folder: "%s" (%d docs)', folder.name, len(folder.document_ids))
            ids.update(folder.document_ids)
    return ids


def is_in_scope(doc: GranolaDocument, folder_ids: set[str], keywords: Iterable[str]) -> bool:
    if doc.id in folder_ids:
        return True
    title = (doc.title or "").lower()
    return any(k.lower() in title for k in keywords)


def select_for_sync(
    documents: Iterable[GranolaDocument],
    folders: Iterable[FolderMembership],
    state: SyncState,
    keywords: Iterable[str],
) -> tuple[list[GranolaDocument], int]:
    """Return (documents to sync in listing order, number of in-scope documents).

    A document with any record in ``state`` (delivered or skipped) is never
    selected again, even if its remote content changed.
    """
    keywords = list(keywords)
    folder_ids = project_document_ids(folders, keywords)

    seen: set[str] = set()
    in_scope = 0
    to_sync: list[GranolaDocument] = []
    for doc in documents:
        if doc.id in seen:
            continue
        seen.add(doc.id)
        if not is_in_scope(doc, folder_ids, keywords):
            continue
        in_scope += 1
        if not state.is_processed(doc.id):
            to_sync.append(doc)
    return to_sync, in_scope
