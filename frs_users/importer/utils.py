"""
Importer-specific utilities for uploaded files, slugs, and login handles.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import Callable
from uuid import uuid4

from flask import current_app
from werkzeug.datastructures import FileStorage

DEFAULT_UPLOAD_SUBDIR = "import_uploads"
DEFAULT_MEDIA_SUBDIR = "media"

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_USERNAME_STRIP = re.compile(r"[^a-z0-9_.\-@]")


def _resolve_directory(app, config_key: str, default_subdir: str) -> Path:
    # Relative paths are anchored at the instance folder.
    configured = app.config.get(config_key)
    directory = Path(app.instance_path) / (configured or default_subdir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def resolve_upload_directory(app) -> Path:
    """Directory holding CSV uploads while a request is being handled (``IMPORTER_UPLOAD_DIR``)."""

    return _resolve_directory(app, "IMPORTER_UPLOAD_DIR", DEFAULT_UPLOAD_SUBDIR)


def resolve_media_directory(app) -> Path:
    """Permanent headshot storage (``FRS_MEDIA_DIR``)."""

    return _resolve_directory(app, "FRS_MEDIA_DIR", DEFAULT_MEDIA_SUBDIR)


def persist_upload(file_storage: FileStorage, app) -> Path:
    """
    Save an uploaded CSV under a random name in the upload directory.

    The client-supplied filename is never used on disk; callers keep it only
    for audit logging.
    """

    target_path = resolve_upload_directory(app) / f"{uuid4().hex}.csv"
    file_storage.save(target_path)
    current_app.logger.debug(
        "Stored CSV upload %r as %s",
        file_storage.filename,
        target_path.name,
        extra={"importer_upload": str(target_path)},
    )
    return target_path


def cleanup_upload(path: Path) -> None:
    """Remove a stored upload; a failure is logged, never raised."""

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:  # pragma: no cover - filesystem race
        current_app.logger.warning("Could not remove CSV upload %s: %s", path, exc)


def slugify(value: str | None) -> str:
    """Lower-case ASCII slug with hyphens, e.g. ``"José Núñez" -> "jose-nunez"``."""

    if not value:
        return ""
    ascii_value = unicodedata.normalize("NFKD", str(value)).encode("ascii", "ignore").decode("ascii")
    return _SLUG_STRIP.sub("-", ascii_value.lower()).strip("-")


def sanitize_username(value: str | None, *, fallback: str = "user") -> str:
    """Reduce ``value`` to characters allowed in a login handle."""

    ascii_value = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode("ascii")
    token = _USERNAME_STRIP.sub("", ascii_value.strip().lower())
    return token or fallback


def generate_unique_username(base: str, exists: Callable[[str], bool]) -> str:
    """Return ``base`` or ``base`` + the first numeric suffix not already taken."""

    username = base
    suffix = 1
    while exists(username):
        username = f"{base}{suffix}"
        suffix += 1
    return username


def build_placeholder_email(first_name: str | None, last_name: str | None, domain: str) -> str:
    """Placeholder address for rows without an email, e.g. ``jane.doe@placeholder.frs``."""

    first = slugify(first_name) or "user"
    last = slugify(last_name)
    return f"{first}.{last}@{domain}"
