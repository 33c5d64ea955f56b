"""Exceptions raised while syncing Granola documents."""

from __future__ import annotations


class GranolaDriveError(Exception):
    """Base class for errors that stop or affect a sync run."""


class CredentialError(GranolaDriveError):
    pass


class CredentialsMissing(CredentialError):
    pass


class CredentialsExpired(CredentialError):
    pass


class OutputLocationNotFound(GranolaDriveError):
    pass


class StateCorrupted(GranolaDriveError):
    pass


class RemoteApiError(GranolaDriveError):
    """Granola API answered with an error status or an unusable body."""

    def __init__(self, status: int, excerpt: str, message: str | None = None):
        self.status = status
        self.excerpt = excerpt
        super().__init__(message or f"API {status}: {excerpt}")


class TransientDocumentError(GranolaDriveError):
    """Processing a single document failed; it stays eligible for the next run."""

    def __init__(self, document_id: str, title: str, reason: str):
        self.document_id = document_id
        self.title = title
        super().__init__(f'Failed "{title}" ({document_id}): {reason}')
