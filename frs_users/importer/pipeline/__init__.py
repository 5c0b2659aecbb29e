"""Importer pipeline helpers."""

from __future__ import annotations

from .export import build_export_columns, export_profiles
from .importer import (
    IMPORT_MODES,
    ImportFileError,
    ImportPreview,
    ImportResult,
    ImportRow,
    ProfileImporter,
    create_profile_importer,
    decide_action,
    validate_import_mode,
)
from .matching import MATCH_MODES, MatchCandidate, ProfileMatch, build_candidate_index, find_matching_profile, validate_match_mode
from .similarity import calculate_name_similarity, levenshtein_distance, similar_text, similar_text_percent, soundex

__all__ = [
    "IMPORT_MODES",
    "MATCH_MODES",
    "ImportFileError",
    "ImportPreview",
    "ImportResult",
    "ImportRow",
    "MatchCandidate",
    "ProfileImporter",
    "ProfileMatch",
    "build_candidate_index",
    "build_export_columns",
    "calculate_name_similarity",
    "create_profile_importer",
    "decide_action",
    "export_profiles",
    "find_matching_profile",
    "levenshtein_distance",
    "similar_text",
    "similar_text_percent",
    "soundex",
    "validate_import_mode",
    "validate_match_mode",
]
