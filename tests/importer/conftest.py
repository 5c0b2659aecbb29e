from __future__ import annotations

import pytest

from frs_users.importer.pipeline import ProfileImporter
from frs_users.importer.stores import SQLAlchemyAccountLinker, SQLAlchemyProfileStore


class RecordingBlobImporter:
    """Blob importer double returning a fixed media id (or None) per URL."""

    def __init__(self, results: dict[str, int | None] | None = None):
        self.results = results or {}
        self.calls: list[tuple[str, str | None]] = []

    def fetch_and_store(self, url: str, *, title: str | None = None) -> int | None:
        self.calls.append((url, title))
        return self.results.get(url)


@pytest.fixture
def blob_importer():
    return RecordingBlobImporter()


@pytest.fixture
def profile_importer(app, blob_importer):
    return ProfileImporter(
        SQLAlchemyProfileStore(),
        SQLAlchemyAccountLinker(),
        blob_importer,
        placeholder_domain="placeholder.frs",
    )


@pytest.fixture
def write_csv(tmp_path):
    def _write(*lines: str, name: str = "profiles.csv"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
