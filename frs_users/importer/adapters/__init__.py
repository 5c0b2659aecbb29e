"""Importer adapter implementations."""

from __future__ import annotations

from .csv_profiles import (
    CSVAdapterError,
    CSVHeaderError,
    ProfileCSVAdapter,
    ProfileCSVRow,
    ProfileCSVStatistics,
)

__all__ = [
    "CSVAdapterError",
    "CSVHeaderError",
    "ProfileCSVAdapter",
    "ProfileCSVRow",
    "ProfileCSVStatistics",
]
