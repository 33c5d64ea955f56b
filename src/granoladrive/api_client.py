"""Async client for the Granola HTTP API."""

from __future__ import annotations

import asyncio
import gzip
import json
import logging
import zlib
from collections.abc import AsyncIterator
from typing import Any

import httpx

from .api_parser import page_length, parse_documents_page, parse_folders, parse_transcript
from .errors import RemoteApiError
from .models import FolderMembership, GranolaDocument, TranscriptSegment

log = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
_EXCERPT_CHARS = 200

FOLDERS_ENDPOINT = "/v2/get-document-lists"
DOCUMENTS_ENDPOINT = "/v2/get-documents"
TRANSCRIPT_ENDPOINT = "/v1/get-document-transcript"


def decode_body(raw: bytes) -> bytes:
    """Gunzip a body that is still compressed, else return it unchanged."""
    if not raw.startswith(_GZIP_MAGIC):
        return raw
    try:
        return gzip.decompress(raw)
    except (OSError, EOFError, zlib.error):
        return raw


class GranolaClient:
    """Paced, single-connection access to the endpoints the sync needs.

    Use as an async context manager. Requests are spaced by ``request_delay``
    seconds and never retried here.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.granola.ai",
        client_version: str = "5.354.0",
        request_delay: float = 0.2,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token
        self._base_url = base_url
        self._client_version = client_version
        self._request_delay = request_delay
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._requests_made = 0

    async def __aenter__(self) -> GranolaClient:
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
                "User-Agent": f"Granola/{self._client_version}",
                "X-Client-Version": self._client_version,
                "Accept-Encoding": "gzip, deflate",
            },
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _post(self, endpoint: str, body: dict) -> Any | None:
        """POST a JSON body. Returns the decoded JSON, or None on 404."""
        if self._http is None:
            raise RuntimeError("GranolaClient used outside 'async with'")

        if self._requests_made and self._request_delay > 0:
            await asyncio.sleep(self._request_delay)
        self._requests_made += 1

        response = await self._http.post(endpoint, json=body)
        text = decode_body(response.content).decode("utf-8", errors="replace")

        if response.status_code == 404:
            log.debug("%s -> 404", endpoint)
            return None
        if response.status_code >= 400:
            raise RemoteApiError(response.status_code, text[:_EXCERPT_CHARS])
        try:
            return json.loads(text)
        except ValueError:
            excerpt = text[:_EXCERPT_CHARS]
            raise RemoteApiError(
                response.status_code, excerpt, f"Bad JSON from {endpoint}: {excerpt}"
            ) from None

    async def list_folders(self) -> list[FolderMembership]:
        payload = await self._post(FOLDERS_ENDPOINT, {})
        return parse_folders(payload)

    async def iter_documents(self, page_size: int = 100) -> AsyncIterator[GranolaDocument]:
        """Yield every document, one page at a time, until a short page."""
        offset = 0
        while True:
            payload = await self._post(
                DOCUMENTS_ENDPOINT,
                {"limit": page_size, "offset": offset, "include_last_viewed_panel": False},
            )
            for doc in parse_documents_page(payload):
                yield doc
            if page_length(payload) < page_size:
                return
            offset += page_size

    async def get_transcript(self, document_id: str) -> list[TranscriptSegment] | None:
        """Transcript segments in order, or None when Granola has none for the document."""
        payload = await self._post(TRANSCRIPT_ENDPOINT, {"document_id": document_id})
        if payload is None:
            return None
        return parse_transcript(payload)
