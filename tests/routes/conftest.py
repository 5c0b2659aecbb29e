"""Shared fixtures for route tests"""

import io

import pytest


@pytest.fixture
def csv_upload():
    """Build multipart form data carrying a CSV file plus extra form fields"""

    def _build(*lines, filename="profiles.csv", **fields):
        content = ("\n".join(lines) + "\n").encode("utf-8")
        data = {"csv_file": (io.BytesIO(content), filename)}
        data.update(fields)
        return data

    return _build
