"""
Candidate index and matcher used to resolve import rows to existing profiles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Sequence

from frs_users.importer.pipeline.similarity import FUZZY_MATCH_THRESHOLD, calculate_name_similarity

MatchMode = Literal["email", "nmls", "fuzzy"]
MATCH_MODES: tuple[str, ...] = ("email", "nmls", "fuzzy")


def _lower(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).lower()


def _text(value: object | None) -> str:
    if value is None:
        return ""
    return str(value)


def _full_name(first: str, last: str) -> str:
    return f"{first} {last}".strip()


@dataclass(frozen=True)
class MatchCandidate:
    """Lower-cased comparison keys for one existing profile."""

    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    nmls: str


@dataclass(frozen=True)
class ProfileMatch:
    """The single existing profile an import row resolved to."""

    profile_id: int
    name: str
    method: MatchMode
    score: float | None = None

    def describe(self) -> str:
        if self.method == "fuzzy" and self.score is not None:
            return f"{self.name} (fuzzy {round(self.score * 100)}%)"
        return f"{self.name} ({self.method})"


def build_candidate_index(profiles: Iterable[object]) -> list[MatchCandidate]:
    """Project profiles onto their comparison keys, preserving input order."""

    candidates: list[MatchCandidate] = []
    for profile in profiles:
        first = _lower(getattr(profile, "first_name", None))
        last = _lower(getattr(profile, "last_name", None))
        candidates.append(
            MatchCandidate(
                id=profile.id,
                email=_lower(getattr(profile, "email", None)),
                first_name=first,
                last_name=last,
                full_name=_full_name(first, last),
                nmls=_text(getattr(profile, "nmls", None)),
            )
        )
    return candidates


def validate_match_mode(value: str | None) -> MatchMode:
    token = (value or "email").strip().lower()
    if token not in MATCH_MODES:
        raise ValueError(f"Unsupported match mode '{value}'. Expected one of: {', '.join(MATCH_MODES)}.")
    return token  # type: ignore[return-value]


def find_matching_profile(
    row: Mapping[str, object | None],
    candidates: Sequence[MatchCandidate],
    match_mode: MatchMode,
    *,
    threshold: float = FUZZY_MATCH_THRESHOLD,
) -> ProfileMatch | None:
    """Return the first candidate matching ``row`` under ``match_mode``, or ``None``.

    ``email`` compares lower-cased emails, ``nmls`` compares NMLS identifiers
    exactly, and ``fuzzy`` compares full names with
    :func:`calculate_name_similarity`. Ties go to the earliest candidate.
    """

    email = _lower(row.get("email"))
    full_name = _full_name(_lower(row.get("first_name")), _lower(row.get("last_name")))
    nmls = _text(row.get("nmls"))

    for candidate in candidates:
        if match_mode == "email":
            if email and candidate.email == email:
                return ProfileMatch(profile_id=candidate.id, name=candidate.full_name, method="email")
        elif match_mode == "nmls":
            if nmls and candidate.nmls == nmls:
                return ProfileMatch(profile_id=candidate.id, name=candidate.full_name, method="nmls")
        elif match_mode == "fuzzy":
            if not full_name:
                return None
            score = calculate_name_similarity(full_name, candidate.full_name)
            if score >= threshold:
                return ProfileMatch(profile_id=candidate.id, name=candidate.full_name, method="fuzzy", score=score)
    return None


__all__ = [
    "MATCH_MODES",
    "MatchMode",
    "MatchCandidate",
    "ProfileMatch",
    "build_candidate_index",
    "find_matching_profile",
    "validate_match_mode",
]
