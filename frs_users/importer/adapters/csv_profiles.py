"""CSV adapter for profile imports.

Reads the header row, normalizes header tokens, and streams data rows as
``header -> value`` mappings. Rows whose column count does not match the
header are dropped; they are counted in :class:`ProfileCSVStatistics` but
never reach the matching stage.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from typing import IO, Iterator

from frs_users.importer.contracts import normalize_header

logger = logging.getLogger(__name__)


class CSVAdapterError(Exception):
    """Base exception for CSV adapter failures."""


class CSVHeaderError(CSVAdapterError):
    """Raised when the header row is missing or empty."""

    def __init__(self, message: str = "Could not read header row") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class ProfileCSVRow:
    """A well-formed data row keyed by normalized header."""

    sequence_number: int
    source_line: int
    values: dict[str, str]


@dataclass
class ProfileCSVStatistics:
    """Accumulated statistics from CSV parsing."""

    rows_processed: int = 0
    rows_skipped_malformed: int = 0


class ProfileCSVAdapter:
    """CSV reader that yields rows aligned to the normalized header."""

    def __init__(self, file_obj: IO[str]) -> None:
        self._file_obj = file_obj
        self._header: tuple[str, ...] | None = None
        self.statistics = ProfileCSVStatistics()

    @property
    def header(self) -> tuple[str, ...] | None:
        return self._header

    def _prepare_reader(self):
        if hasattr(self._file_obj, "seek"):
            self._file_obj.seek(0)
        reader = csv.reader(self._file_obj)
        try:
            raw_header = next(reader)
        except StopIteration as exc:
            raise CSVHeaderError() from exc
        except csv.Error as exc:
            raise CSVAdapterError(f"Could not parse CSV: {exc}") from exc
        if not raw_header or all(not (cell or "").strip() for cell in raw_header):
            raise CSVHeaderError()
        self._header = tuple(normalize_header(cell) for cell in raw_header)
        return reader

    def iter_rows(self) -> Iterator[ProfileCSVRow]:
        reader = self._prepare_reader()
        header = self._header or ()
        try:
            for sequence_number, cells in enumerate(reader, start=1):
                if len(cells) != len(header):
                    self.statistics.rows_skipped_malformed += 1
                    logger.debug(
                        "Dropping malformed CSV row %s (%s columns, expected %s)",
                        reader.line_num,
                        len(cells),
                        len(header),
                    )
                    continue
                self.statistics.rows_processed += 1
                yield ProfileCSVRow(
                    sequence_number=sequence_number,
                    source_line=reader.line_num,
                    values=dict(zip(header, cells)),
                )
        except csv.Error as exc:
            raise CSVAdapterError(f"Could not parse CSV near line {reader.line_num}: {exc}") from exc
