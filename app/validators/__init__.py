"""
app/validators package marker.
"""

from app.validators.file_signature import TEXT_MEDIA_TYPES, FileSignatureValidator
from app.validators.file_type import FileTypeAllowList, media_types_for, resolve_media_type
from app.validators.row_normalizer import RowNormalizer

__all__ = [
    "FileSignatureValidator",
    "FileTypeAllowList",
    "RowNormalizer",
    "TEXT_MEDIA_TYPES",
    "media_types_for",
    "resolve_media_type",
]
