"""
Shared byte fixtures and builders for tests.
"""

from __future__ import annotations

# 1x1 RGBA PNG: signature, IHDR chunk, IEND chunk.
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    b"\x1f\x15\xc4\x89"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def make_csv(header: str, rows: list[str], line_ending: str = "\r\n") -> bytes:
    return line_ending.join([header, *rows]).encode("utf-8")
