"""
Name similarity scoring for fuzzy profile matching.

The blended score mixes three signals:

- Levenshtein edit distance normalized by the longer string (weight 0.4)
- "similar text" common-run percentage (weight 0.5)
- a flat 0.3 bonus when both names share a Soundex code

The result is intentionally left unclamped; strong edit-distance matches
that also sound alike score above 1.0 and still satisfy the match threshold.
"""

from __future__ import annotations

from difflib import SequenceMatcher

from rapidfuzz.distance import Levenshtein

LEVENSHTEIN_WEIGHT = 0.4
SIMILAR_TEXT_WEIGHT = 0.5
SOUNDEX_BONUS = 0.3

# Default threshold a score must reach to count as a fuzzy match
FUZZY_MATCH_THRESHOLD = 0.85

_SOUNDEX_CODES = {
    **dict.fromkeys("BFPV", "1"),
    **dict.fromkeys("CGJKQSXZ", "2"),
    **dict.fromkeys("DT", "3"),
    "L": "4",
    **dict.fromkeys("MN", "5"),
    "R": "6",
}
_SOUNDEX_LENGTH = 4


def levenshtein_distance(a: str, b: str) -> int:
    """Character-level edit distance with unit insert/delete/substitute costs."""

    return int(Levenshtein.distance(a, b))


def similar_text(a: str, b: str) -> int:
    """Return the number of characters shared by recursive longest common runs.

    The longest common substring is found first (earliest in ``a``, then
    earliest in ``b`` on ties) and the algorithm recurses into the text on
    either side of it.
    """

    if not a or not b:
        return 0
    match = SequenceMatcher(None, a, b, autojunk=False).find_longest_match(0, len(a), 0, len(b))
    if match.size == 0:
        return 0

    total = match.size
    if match.a and match.b:
        total += similar_text(a[: match.a], b[: match.b])
    tail_a = match.a + match.size
    tail_b = match.b + match.size
    if tail_a < len(a) and tail_b < len(b):
        total += similar_text(a[tail_a:], b[tail_b:])
    return total


def similar_text_percent(a: str, b: str) -> float:
    """Shared characters as a percentage of the combined length (0..100)."""

    combined = len(a) + len(b)
    if combined == 0:
        return 0.0
    return similar_text(a, b) * 2 * 100 / combined


def soundex(value: str) -> str:
    """Four-character English Soundex code; empty when ``value`` has no letters.

    Vowels and H/W/Y separate repeated codes, so ``Ashcraft`` encodes as A226.
    """

    code = ""
    last = None
    for char in value.upper():
        if not ("A" <= char <= "Z"):
            continue
        digit = _SOUNDEX_CODES.get(char, "0")
        if not code:
            code = char
            last = digit
        elif digit != last:
            if digit != "0":
                code += digit
            last = digit
        if len(code) == _SOUNDEX_LENGTH:
            break
    if not code:
        return ""
    return code.ljust(_SOUNDEX_LENGTH, "0")


def calculate_name_similarity(name1: str, name2: str) -> float:
    """Blend edit distance, similar-text, and Soundex into a single score.

    Identical strings short-circuit to 1.0. Callers pass lower-cased names.
    """

    if name1 == name2:
        return 1.0

    longest = max(len(name1), len(name2))
    lev_score = 1 - (levenshtein_distance(name1, name2) / longest) if longest > 0 else 0.0
    sim_score = similar_text_percent(name1, name2) / 100
    soundex_score = SOUNDEX_BONUS if soundex(name1) == soundex(name2) else 0.0

    return (lev_score * LEVENSHTEIN_WEIGHT) + (sim_score * SIMILAR_TEXT_WEIGHT) + soundex_score


__all__ = [
    "LEVENSHTEIN_WEIGHT",
    "SIMILAR_TEXT_WEIGHT",
    "SOUNDEX_BONUS",
    "FUZZY_MATCH_THRESHOLD",
    "levenshtein_distance",
    "similar_text",
    "similar_text_percent",
    "soundex",
    "calculate_name_similarity",
]
