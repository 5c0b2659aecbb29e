"""
Importer settings read from the Flask config.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

_MB = 1024 * 1024


@dataclass(frozen=True)
class ImporterSettings:
    enabled: bool
    max_upload_bytes: int
    fuzzy_threshold: float
    default_role: str
    placeholder_domain: str
    arrive_url_template: str | None
    image_timeout: float
    image_max_bytes: int


def _config(app=None):
    return (app or current_app).config


def _int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def is_importer_enabled(app=None) -> bool:
    """Return True when ``IMPORTER_ENABLED`` is set."""
    return bool(_config(app).get("IMPORTER_ENABLED", False))


def get_importer_settings(app=None) -> ImporterSettings:
    """Snapshot the importer-related config keys, falling back to defaults on bad values."""
    config = _config(app)
    return ImporterSettings(
        enabled=is_importer_enabled(app),
        max_upload_bytes=_int(config.get("IMPORTER_MAX_UPLOAD_MB"), 25) * _MB,
        fuzzy_threshold=_float(config.get("FUZZY_MATCH_THRESHOLD"), 0.85),
        default_role=config.get("FRS_DEFAULT_ROLE") or "loan_officer",
        placeholder_domain=config.get("FRS_PLACEHOLDER_EMAIL_DOMAIN") or "placeholder.frs",
        arrive_url_template=config.get("FRS_ARRIVE_URL_TEMPLATE") or None,
        image_timeout=_float(config.get("FRS_IMAGE_DOWNLOAD_TIMEOUT"), 30.0),
        image_max_bytes=_int(config.get("FRS_IMAGE_MAX_MB"), 10) * _MB,
    )
