"""Orchestrator: lock -> credentials -> list -> filter -> fetch, render, write -> save."""

from __future__ import annotations

import logging
import os
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

import httpx

from .api_client import GranolaClient
from .config import Config
from .credentials import read_operator_name, read_token
from .errors import TransientDocumentError
from .models import DocumentResult, GranolaDocument, RunStatus, SyncOutcome, SyncSummary
from .note_writer import render_note, write_note
from .output_location import resolve_output_dir
from .run_lock import RunLock
from .scope import select_for_sync
from .sync_state import SyncState

log = logging.getLogger(__name__)

NO_TRANSCRIPT = "no transcript"


async def _deliver(
    client: GranolaClient,
    doc: GranolaDocument,
    *,
    config: Config,
    state: SyncState,
    output_dir: Path,
    existing: set[str],
    operator_name: str,
    tz: tzinfo | None,
    dry_run: bool,
) -> DocumentResult:
    try:
        transcript = await client.get_transcript(doc.id)
        if transcript is None:
            log.info("  No transcript, skipping")
            if not dry_run:
                state.record_skipped(doc.id, doc.title, NO_TRANSCRIPT)
            return DocumentResult(doc, SyncOutcome.SKIPPED, reason=NO_TRANSCRIPT)

        content = render_note(
            doc,
            transcript,
            operator_name=operator_name,
            home_domain=config.home_domain,
            tz=tz,
        )
        filepath = write_note(
            output_dir,
            doc,
            content,
            existing,
            user=operator_name if config.filename_include_user else None,
            tz=tz,
            dry_run=dry_run,
        )
        if not dry_run:
            state.record_delivered(doc.id, doc.title, filepath.name)
        return DocumentResult(doc, SyncOutcome.DELIVERED, filename=filepath.name)

    except Exception as e:
        raise TransientDocumentError(doc.id, doc.title, str(e) or type(e).__name__) from e


async def sync_document(
    client: GranolaClient,
    doc: GranolaDocument,
    *,
    config: Config,
    state: SyncState,
    output_dir: Path,
    existing: set[str],
    operator_name: str,
    tz: tzinfo | None = None,
    dry_run: bool = False,
) -> DocumentResult:
    """Sync one document. Never raises; failures come back as FAILED results."""
    log.info("Syncing: %s", doc.title)
    try:
        return await _deliver(
            client,
            doc,
            config=config,
            state=state,
            output_dir=output_dir,
            existing=existing,
            operator_name=operator_name,
            tz=tz,
            dry_run=dry_run,
        )
    except TransientDocumentError as err:
        log.error("%s", err, exc_info=True)
        return DocumentResult(doc, SyncOutcome.FAILED, error=err)


async def run_sync(
    config: Config,
    *,
    dry_run: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncSummary:
    """Run a single sync pass.

    Returns a LOCKED summary without touching state if another run holds a
    fresh lock. Credential, output-location, state and listing failures
    propagate; the lock is released either way.
    """
    lock = RunLock(config.lock_path, stale_after_ms=int(config.lock_stale_minutes * 60 * 1000))
    if not lock.acquire():
        log.warning("Sync already running (lock %s). Exiting.", config.lock_path)
        return SyncSummary(status=RunStatus.LOCKED)

    try:
        log.info("Granola sync starting%s", " (dry run)" if dry_run else "")
        token = read_token(config.credentials_path)

        output_dir = resolve_output_dir(config)
        log.info("Output: %s", output_dir)

        state = SyncState(config.state_path)
        operator_name = read_operator_name(config.operator_name_path)
        tz = ZoneInfo(config.timezone) if config.timezone else None
        summary = SyncSummary(status=RunStatus.COMPLETED, output_dir=output_dir)

        async with GranolaClient(
            token,
            base_url=config.api_base_url,
            client_version=config.client_version,
            request_delay=config.request_delay,
            timeout=config.request_timeout,
            transport=transport,
        ) as client:
            folders = await client.list_folders()
            documents = [doc async for doc in client.iter_documents(config.page_size)]
            log.info("Found %d total documents", len(documents))

            to_sync, summary.in_scope = select_for_sync(
                documents, folders, state, config.lowered_keywords
            )
            log.info("%d project documents, %d new to sync", summary.in_scope, len(to_sync))

            existing = set(os.listdir(output_dir)) if to_sync else set()
            for doc in to_sync:
                result = await sync_document(
                    client,
                    doc,
                    config=config,
                    state=state,
                    output_dir=output_dir,
                    existing=existing,
                    operator_name=operator_name,
                    tz=tz,
                    dry_run=dry_run,
                )
                summary.add(result)
                if (
                    not dry_run
                    and config.checkpoint_every > 0
                    and result.outcome is SyncOutcome.DELIVERED
                    and summary.delivered % config.checkpoint_every == 0
                ):
                    state.save()

        if not to_sync:
            log.info("All caught up. Nothing new to sync.")
        if not dry_run:
            state.mark_completed()
            state.save()

        log.info(
            "Done: %d synced, %d skipped, %d errors",
            summary.delivered,
            summary.skipped,
            summary.failed,
        )
        return summary
    finally:
        lock.release()
