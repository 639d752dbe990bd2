"""
app/services/csv_ingestion_service.py

Streaming CSV parsing for bulk uploads.

The buffer is decoded lazily and tokenized one line at a time. Each data row
is either normalized into an UploadRecord or reported as one error line; the
run stops inspecting rows once the record cap has been reached.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from functools import lru_cache

from app.config import get_upload_settings
from app.domain.upload_record import IngestionResult, RecordStatus, UploadRecord
from app.validators.row_normalizer import RowNormalizer

logger = logging.getLogger(__name__)

RawRow = dict[str, "str | None"]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVIngestionError(ValueError):
    """
    Base class for failures that reject a whole upload.
    """


class CSVParseError(CSVIngestionError):
    """
    Raised when the CSV stream itself is malformed or undecodable.
    """


class NoValidRecordsError(CSVIngestionError):
    """
    Raised when the file yields no data rows at all.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVIngestionService:
    """
    Turns a CSV byte buffer into upload records and error lines.
    """

    def __init__(
        self,
        *,
        max_records: int,
        log_row_errors: bool = True,
        normalizer: RowNormalizer | None = None,
    ) -> None:
        self._max_records = max(1, max_records)
        self._log_row_errors = log_row_errors
        self._normalizer = normalizer or RowNormalizer()

    @property
    def max_records(self) -> int:
        return self._max_records

    def ingest(self, data: bytes, *, max_records: int | None = None) -> IngestionResult:
        """
        Parse ``data`` as CSV and collect records up to the record cap.

        Raises:
            CSVParseError: the stream could not be decoded or tokenized.
            NoValidRecordsError: no data rows and no row errors were produced.
        """

        cap = self._max_records if max_records is None else max(1, max_records)
        records: list[UploadRecord] = []
        errors: list[str] = []
        rows_seen = 0

        try:
            for row_index, raw_row in enumerate(iter_raw_rows(data), start=1):
                if len(records) >= cap:
                    break
                rows_seen = row_index

                if self._normalizer.is_empty_row(raw_row):
                    self._record_error(errors, f"Row {row_index}: empty row skipped")
                    continue

                try:
                    record = UploadRecord(
                        data=self._normalizer.normalize(raw_row),
                        status=RecordStatus.PROCESSED,
                    )
                except (TypeError, ValueError) as exc:
                    self._record_error(errors, f"Row {row_index}: {exc}")
                    continue

                records.append(record)
                if len(records) == cap:
                    errors.append(
                        f"Warning: Upload truncated. Maximum limit of {cap} records reached."
                    )
                    logger.warning("CSV upload truncated at %s records", cap)
        except UnicodeDecodeError as exc:
            raise CSVParseError("Failed to parse CSV: file must be UTF-8 encoded.") from exc
        except csv.Error as exc:
            raise CSVParseError(f"Failed to parse CSV: {exc}") from exc

        if not records and not errors:
            raise NoValidRecordsError("No valid records found in the CSV file")

        return IngestionResult(records=records, errors=errors, rows_seen=rows_seen)

    def _record_error(self, errors: list[str], message: str) -> None:
        if self._log_row_errors:
            logger.warning("CSV row rejected: %s", message)
        errors.append(message)


def iter_raw_rows(data: bytes) -> Iterator[RawRow]:
    """
    Yield one raw row per CSV data line, keyed by the header.

    Blank lines are skipped. Short lines leave missing columns as None and
    cells beyond the header width are keyed ``_<index>``.
    """

    if not data:
        return

    # A single cell may span the whole buffer.
    if csv.field_size_limit() < len(data):
        csv.field_size_limit(len(data))

    with io.TextIOWrapper(io.BytesIO(data), encoding="utf-8-sig", newline="") as text_stream:
        reader = csv.reader(text_stream, delimiter=",", strict=True)
        header = next((cells for cells in reader if cells), None)
        if header is None:
            return

        width = len(header)
        for cells in reader:
            if not cells:
                continue
            row: RawRow = {}
            for position, name in enumerate(header):
                row[name] = cells[position] if position < len(cells) else None
            for position in range(width, len(cells)):
                row[f"_{position}"] = cells[position]
            yield row


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_ingestion_service() -> CSVIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """

    settings = get_upload_settings()
    return CSVIngestionService(
        max_records=settings.max_records,
        log_row_errors=settings.log_row_errors,
    )
