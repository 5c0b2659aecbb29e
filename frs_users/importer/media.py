"""
Best-effort headshot download for profile imports.

Failures (invalid URL, HTTP errors, oversized or non-image payloads) are
logged and reported as ``None``; they never abort an import row.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse
from uuid import uuid4

import requests
from flask import current_app
from sqlalchemy.orm import Session
from werkzeug.utils import secure_filename

from frs_users.models import MediaAsset, db

DEFAULT_DOWNLOAD_TIMEOUT = 30
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024


class BlobImporter(Protocol):
    def fetch_and_store(self, url: str, *, title: str | None = None) -> int | None: ...


def is_valid_url(value: object | None) -> bool:
    """True for absolute http(s) URLs with a host."""

    if not value or not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _filename_from_url(url: str, fallback: str) -> str:
    name = secure_filename(os.path.basename(urlparse(url).path))
    return name or fallback


class HeadshotImporter:
    """Download remote images into the media directory and register a MediaAsset."""

    def __init__(
        self,
        media_dir: Path,
        *,
        timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        http: requests.Session | None = None,
        session: Session | None = None,
    ):
        self.media_dir = Path(media_dir)
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.http = http or requests.Session()
        self.session = session or db.session

    def fetch_and_store(self, url: str, *, title: str | None = None) -> int | None:
        if not is_valid_url(url):
            current_app.logger.info("Skipping headshot with invalid URL: %r", url)
            return None

        url = url.strip()
        downloaded = self._download(url)
        if downloaded is None:
            return None
        temp_path, content_type = downloaded

        original_name = _filename_from_url(url, "headshot.jpg")
        stored_name = f"{uuid4().hex}-{original_name}"
        target_path = self.media_dir / stored_name
        try:
            os.replace(temp_path, target_path)
        except OSError as exc:
            current_app.logger.warning("Failed to move headshot download into media storage: %s", exc)
            Path(temp_path).unlink(missing_ok=True)
            return None

        asset = MediaAsset(
            filename=stored_name,
            original_name=original_name,
            source_url=url,
            content_type=content_type,
            size_bytes=target_path.stat().st_size,
            title=title,
        )
        self.session.add(asset)
        self.session.flush()
        current_app.logger.info(
            "Stored headshot %s from %s",
            stored_name,
            url,
            extra={"importer_media_id": asset.id},
        )
        return asset.id

    def _download(self, url: str) -> tuple[str, str | None] | None:
        """Stream ``url`` into a temporary file; return ``(path, content_type)``."""

        self.media_dir.mkdir(parents=True, exist_ok=True)
        try:
            response = self.http.get(url, timeout=self.timeout, stream=True)
            response.raise_for_status()
        except requests.RequestException as exc:
            current_app.logger.warning("Headshot download failed for %s: %s", url, exc)
            return None

        content_type = (response.headers.get("Content-Type") or "").split(";", 1)[0].strip().lower()
        if content_type and not content_type.startswith("image/"):
            current_app.logger.warning("Headshot at %s is not an image (content-type %s)", url, content_type)
            response.close()
            return None

        handle = tempfile.NamedTemporaryFile(dir=self.media_dir, suffix=".part", delete=False)
        written = 0
        try:
            with handle:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if not chunk:
                        continue
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise ValueError(f"exceeds {self.max_bytes} bytes")
                    handle.write(chunk)
        except (requests.RequestException, ValueError, OSError) as exc:
            current_app.logger.warning("Headshot download aborted for %s: %s", url, exc)
            Path(handle.name).unlink(missing_ok=True)
            return None
        finally:
            response.close()

        if written == 0:
            current_app.logger.warning("Headshot download from %s returned no data", url)
            Path(handle.name).unlink(missing_ok=True)
            return None
        return handle.name, content_type or None


__all__ = [
    "BlobImporter",
    "DEFAULT_DOWNLOAD_TIMEOUT",
    "HeadshotImporter",
    "is_valid_url",
]
