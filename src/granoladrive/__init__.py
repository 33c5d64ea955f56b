"""Sync project meeting transcripts from Granola into a shared Google Drive folder."""

__version__ = "0.1.0"
