"""
app/validators/file_type.py

File-type allow-list and size checks applied before content inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from mimetypes import guess_type
from typing import Iterable

_UNSPECIFIED_MEDIA_TYPES = {"", "application/octet-stream"}


def media_types_for(file_types: Iterable[str]) -> frozenset[str]:
    """
    Map short file-type names (``csv``, ``png``) to their media types.

    Unknown names are dropped.
    """

    media_types: set[str] = set()
    for file_type in file_types:
        media_type = guess_type(f"upload.{file_type.strip().lower()}")[0]
        if media_type is not None:
            media_types.add(media_type)
    return frozenset(media_types)


def resolve_media_type(*, content_type: str | None, filename: str | None) -> str:
    """
    Return the claimed media type, falling back to the filename extension
    when the client did not send a specific one.
    """

    claimed = (content_type or "").split(";", 1)[0].strip().lower()
    if claimed in _UNSPECIFIED_MEDIA_TYPES and filename:
        guessed = guess_type(filename.strip())[0]
        if guessed:
            return guessed
    return claimed


@dataclass(frozen=True)
class FileTypeAllowList:
    """
    Rejects uploads by claimed type or size before any parsing happens.
    """

    allowed_media_types: frozenset[str]
    max_size_bytes: int

    @classmethod
    def from_file_types(cls, file_types: Iterable[str], *, max_size_bytes: int) -> "FileTypeAllowList":
        return cls(
            allowed_media_types=media_types_for(file_types),
            max_size_bytes=max_size_bytes,
        )

    def is_allowed_type(self, media_type: str) -> bool:
        return media_type in self.allowed_media_types

    def is_within_size(self, size_bytes: int) -> bool:
        return size_bytes <= self.max_size_bytes
