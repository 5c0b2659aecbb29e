"""
CSV export of profiles.

The column set mirrors what the importer understands so that an export can be
edited and imported back; list fields are joined with ``|``.
"""

from __future__ import annotations

import csv
from typing import IO, Iterable, Sequence

from frs_users.importer.mapping import join_array_value
from frs_users.models import SOCIAL_FIELDS, Profile

UTF8_BOM = "\ufeff"

BASE_EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "email",
    "first_name",
    "last_name",
    "display_name",
    "phone_number",
    "mobile_number",
    "job_title",
    "biography",
    "nmls",
    "license_number",
    "dre_license",
    "office",
    "city_state",
    "region",
    "profile_slug",
    "company_role",
    "is_active",
)
IMAGE_EXPORT_COLUMNS: tuple[str, ...] = ("headshot_url",)
SOCIAL_EXPORT_COLUMNS: tuple[str, ...] = SOCIAL_FIELDS
ARRAY_EXPORT_COLUMNS: tuple[str, ...] = ("service_areas", "specialties_lo", "languages")
TRAILING_EXPORT_COLUMNS: tuple[str, ...] = ("arrive",)


def build_export_columns(
    *,
    include_images: bool = True,
    include_social: bool = True,
    include_arrays: bool = True,
) -> list[str]:
    columns = list(BASE_EXPORT_COLUMNS)
    if include_images:
        columns.extend(IMAGE_EXPORT_COLUMNS)
    if include_social:
        columns.extend(SOCIAL_EXPORT_COLUMNS)
    if include_arrays:
        columns.extend(ARRAY_EXPORT_COLUMNS)
    columns.extend(TRAILING_EXPORT_COLUMNS)
    return columns


def _cell(profile: Profile, column: str) -> str:
    if column == "id":
        return str(profile.id)
    if column == "is_active":
        return "1" if profile.is_active else "0"
    if column == "company_role":
        return join_array_value(profile.get_field("company_roles"))
    if column == "headshot_url":
        return profile.headshot_url or ""
    if column in ARRAY_EXPORT_COLUMNS:
        return join_array_value(profile.get_field(column))
    value = profile.get_field(column)
    return "" if value is None else str(value)


def export_profiles(
    stream: IO[str],
    *,
    profiles: Iterable[Profile] | None = None,
    person_type: str | None = None,
    include_images: bool = True,
    include_social: bool = True,
    include_arrays: bool = True,
    include_inactive: bool = False,
) -> int:
    """
    Write profiles as CSV to ``stream`` and return the number of data rows.

    A UTF-8 byte order mark is written first so spreadsheet tools detect the
    encoding. When ``profiles`` is omitted, profiles are loaded with
    :meth:`Profile.get_all` using ``person_type`` and ``include_inactive``.
    """

    columns: Sequence[str] = build_export_columns(
        include_images=include_images,
        include_social=include_social,
        include_arrays=include_arrays,
    )
    if profiles is None:
        profiles = Profile.get_all(person_type=person_type, include_inactive=include_inactive)

    stream.write(UTF8_BOM)
    writer = csv.writer(stream)
    writer.writerow(columns)
    count = 0
    for profile in profiles:
        writer.writerow([_cell(profile, column) for column in columns])
        count += 1
    return count


__all__ = [
    "ARRAY_EXPORT_COLUMNS",
    "BASE_EXPORT_COLUMNS",
    "UTF8_BOM",
    "build_export_columns",
    "export_profiles",
]
