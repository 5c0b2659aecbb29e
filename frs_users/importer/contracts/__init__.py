"""Canonical import contract helpers for importer adapters."""

from __future__ import annotations

from .profile import (
    PROFILE_CANONICAL_FIELDS,
    FieldSpec,
    get_array_field_names,
    get_profile_alias_map,
    normalize_header,
)

__all__ = [
    "FieldSpec",
    "PROFILE_CANONICAL_FIELDS",
    "get_array_field_names",
    "get_profile_alias_map",
    "normalize_header",
]
