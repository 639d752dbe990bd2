"""
app/validators/row_normalizer.py

Row-level type coercion for CSV bulk uploads.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from app.domain.upload_record import NormalizedRow, NormalizedValue

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class RowNormalizer:
    """
    Converts raw CSV rows into typed rows.

    Coercion order for each trimmed value: blank -> None, "true"/"false"
    (any case) -> bool, finite decimal literal -> int or float, otherwise
    the trimmed string itself.
    """

    def normalize(self, raw_row: Mapping[str, Any]) -> NormalizedRow:
        normalized: NormalizedRow = {}
        for key, value in raw_row.items():
            normalized[str(key).strip()] = self.coerce_value(value)
        return normalized

    def is_empty_row(self, raw_row: Mapping[str, Any]) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in raw_row.values())

    def coerce_value(self, value: Any) -> NormalizedValue:
        if self._is_blank(value):
            return None

        raw_value = str(value).strip()
        lowered = raw_value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False

        if _INTEGER_PATTERN.fullmatch(raw_value):
            return int(raw_value)

        if _DECIMAL_PATTERN.fullmatch(raw_value):
            number = float(raw_value)
            if math.isfinite(number):
                return number

        return raw_value

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""
