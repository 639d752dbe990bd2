"""
Repository-layer exceptions for the record store.
"""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base exception for record store failures."""


class RecordStoreReadError(RecordStoreError):
    """Raised when the store file cannot be read or decoded."""


class RecordStoreWriteError(RecordStoreError):
    """Raised when the store file cannot be written."""
