"""
Merge service for collapsing duplicate profiles into one record.

The caller picks, per field, which source profile supplies the value. The
sources are deleted before the merged profile is inserted so that the
unique index on active emails never sees both rows at once.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frs_users.models import ARRAY_FIELDS, PROFILE_FIELDS, Profile, db


class MergeError(Exception):
    """Raised when a merge request is invalid or cannot be applied."""


def _has_value(value: Any) -> bool:
    # Zero is a real value; False and empty containers are not.
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value == 0:
        return True
    if value == "0":
        return True
    return bool(value)


def _coerce_ids(values: Iterable[Any]) -> list[int]:
    ids: list[int] = []
    for raw in values:
        try:
            profile_id = int(raw)
        except (TypeError, ValueError) as exc:
            raise MergeError(f"Invalid profile id: {raw!r}") from exc
        if profile_id not in ids:
            ids.append(profile_id)
    return ids


class ProfileMergeService:
    """Service for merging two or more profiles."""

    def __init__(self, session: Session | None = None):
        self.session = session or db.session

    def merge(self, profile_ids: Iterable[Any], field_selections: Mapping[str, Any]) -> Profile:
        """
        Merge ``profile_ids`` into a new profile and return it.

        Args:
            profile_ids: IDs of the profiles to merge (at least two).
            field_selections: Mapping of profile field name to the id of the
                source profile that supplies its value.

        Raises:
            MergeError: If fewer than two profiles are found, no field
                selections are given, a field is unknown, or the database
                rejects the change.
        """
        if not field_selections:
            raise MergeError("No field selections provided.")

        unknown = sorted(name for name in field_selections if name not in PROFILE_FIELDS)
        if unknown:
            raise MergeError(f"Unknown profile field(s): {', '.join(unknown)}")

        ids = _coerce_ids(profile_ids)
        if len(ids) < 2:
            raise MergeError("At least 2 profiles required for merge.")

        profiles_map: dict[int, Profile] = {}
        for profile_id in ids:
            profile = self.session.get(Profile, profile_id)
            if profile is not None:
                profiles_map[profile_id] = profile
        if len(profiles_map) < 2:
            raise MergeError("Could not find profiles for merge.")

        merged_data: dict[str, Any] = {"email": "", "first_name": "", "last_name": "", "is_active": True}
        for field_name, raw_source_id in field_selections.items():
            try:
                source = profiles_map.get(int(raw_source_id))
            except (TypeError, ValueError):
                source = None
            if source is None:
                continue
            value = source.get_field(field_name)
            if _has_value(value):
                merged_data[field_name] = list(value) if field_name in ARRAY_FIELDS else value

        if not merged_data["email"]:
            raise MergeError("Merged profile needs an email; select a source profile for the email field.")

        merged_ids = sorted(profiles_map)
        try:
            for profile in profiles_map.values():
                self.session.delete(profile)
            self.session.flush()

            merged = Profile(**merged_data)
            self.session.add(merged)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            current_app.logger.error(f"Database error merging profiles {merged_ids}: {str(exc)}")
            raise MergeError("Failed to create merged profile.") from exc

        current_app.logger.info(
            "Merged %s profiles into profile %s",
            len(merged_ids),
            merged.id,
            extra={"importer_merged_ids": merged_ids, "importer_profile_id": merged.id},
        )
        return merged


__all__ = ["MergeError", "ProfileMergeService"]
