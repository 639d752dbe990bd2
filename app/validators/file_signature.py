"""
app/validators/file_signature.py

Content-based verification of a claimed upload media type.

Binary formats are identified by their magic numbers. Text formats such as
CSV have none, so a claimed ``text/csv`` or ``text/plain`` is checked with a
structural heuristic instead of being trusted as-is.
"""

from __future__ import annotations

import logging

import filetype

logger = logging.getLogger(__name__)

TEXT_MEDIA_TYPES = frozenset({"text/csv", "text/plain"})

_HEURISTIC_WINDOW_BYTES = 1024
_FORBIDDEN_MARKERS = ("<script", "<!doctype", "<html")


class FileSignatureValidator:
    """
    Checks that a buffer's content is consistent with its claimed media type.
    """

    def error_message(self) -> str:
        return "validation failed (file type does not match file signature)"

    def is_valid(self, buffer: bytes | None, claimed_media_type: str | None) -> bool:
        if buffer is None:
            return False

        claimed = (claimed_media_type or "").strip().lower()
        detected = self.detect_signatures(buffer)
        if detected:
            if claimed not in detected:
                logger.warning(
                    "File signature mismatch claimed=%s detected=%s",
                    claimed,
                    ",".join(detected),
                )
                return False
            return True

        if claimed in TEXT_MEDIA_TYPES:
            return self._looks_like_delimited_text(buffer)

        logger.warning("No file signature found for non-text media type %s", claimed)
        return False

    @staticmethod
    def detect_signatures(buffer: bytes) -> list[str]:
        """
        Return the canonical media types matched by the buffer's magic number.
        """

        if not buffer:
            return []
        kind = filetype.guess(buffer)
        if kind is None:
            return []
        return [kind.mime]

    @staticmethod
    def _looks_like_delimited_text(buffer: bytes) -> bool:
        if b"\x00" in buffer:
            return False

        try:
            text = buffer.decode("utf-8-sig")
        except UnicodeDecodeError:
            return False

        if "\n" not in text and "\r" not in text:
            return False

        first_line = text.splitlines()[0]
        if "," not in first_line and "\t" not in first_line:
            return False

        head = buffer[:_HEURISTIC_WINDOW_BYTES].decode("utf-8", errors="ignore").lower()
        if any(marker in head for marker in _FORBIDDEN_MARKERS):
            return False
        if head.lstrip("\ufeff").startswith("#!"):
            return False

        return True
