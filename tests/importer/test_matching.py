from __future__ import annotations

from types import SimpleNamespace

import pytest

from frs_users.importer.pipeline.matching import (
    ProfileMatch,
    build_candidate_index,
    find_matching_profile,
    validate_match_mode,
)


def _profile(profile_id, *, email=None, first_name=None, last_name=None, nmls=None):
    return SimpleNamespace(id=profile_id, email=email, first_name=first_name, last_name=last_name, nmls=nmls)


@pytest.fixture
def candidates():
    return build_candidate_index(
        [
            _profile(1, email="Jon.Smith@Example.com", first_name="Jon", last_name="Smith", nmls="222"),
            _profile(2, email="maria@example.com", first_name="Maria", last_name="Garcia", nmls="333"),
            _profile(3, email=None, first_name=None, last_name=None, nmls=None),
        ]
    )


def test_build_candidate_index_lowercases_keys(candidates):
    first = candidates[0]

    assert first.email == "jon.smith@example.com"
    assert first.full_name == "jon smith"
    assert first.nmls == "222"
    assert candidates[2].email == ""
    assert candidates[2].full_name == ""


def test_email_match_is_case_insensitive(candidates):
    match = find_matching_profile({"email": "JON.SMITH@example.com"}, candidates, "email")

    assert match == ProfileMatch(profile_id=1, name="jon smith", method="email")


def test_email_mode_ignores_empty_email(candidates):
    assert find_matching_profile({"email": ""}, candidates, "email") is None


def test_nmls_match_is_exact(candidates):
    assert find_matching_profile({"nmls": "333"}, candidates, "nmls").profile_id == 2
    assert find_matching_profile({"nmls": "3333"}, candidates, "nmls") is None


def test_fuzzy_matches_close_spelling(candidates):
    match = find_matching_profile({"first_name": "John", "last_name": "Smith"}, candidates, "fuzzy")

    assert match.profile_id == 1
    assert match.method == "fuzzy"
    assert match.score >= 0.85
    assert match.describe().startswith("jon smith (fuzzy ")


def test_fuzzy_rejects_unrelated_name():
    index = build_candidate_index([_profile(7, first_name="Maria", last_name="Garcia")])

    assert find_matching_profile({"first_name": "John", "last_name": "Smith"}, index, "fuzzy") is None


def test_fuzzy_without_name_never_matches(candidates):
    assert find_matching_profile({"email": "maria@example.com"}, candidates, "fuzzy") is None


def test_first_candidate_in_index_order_wins():
    index = build_candidate_index(
        [
            _profile(10, email="dup@example.com"),
            _profile(11, email="dup@example.com"),
        ]
    )

    assert find_matching_profile({"email": "dup@example.com"}, index, "email").profile_id == 10


def test_fuzzy_threshold_is_configurable(candidates):
    row = {"first_name": "Jon", "last_name": "Smyth"}

    assert find_matching_profile(row, candidates, "fuzzy", threshold=5.0) is None
    assert find_matching_profile(row, candidates, "fuzzy", threshold=0.5).profile_id == 1


def test_validate_match_mode():
    assert validate_match_mode(None) == "email"
    assert validate_match_mode(" NMLS ") == "nmls"
    with pytest.raises(ValueError):
        validate_match_mode("phone")
