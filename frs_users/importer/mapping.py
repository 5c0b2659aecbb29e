"""
Map raw CSV rows onto canonical profile fields.

Headers are matched against the alias table from
:mod:`frs_users.importer.contracts`; list-valued columns are split into
ordered lists. Unknown headers are preserved under their own key.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from frs_users.importer.contracts import get_array_field_names, get_profile_alias_map

PRIMARY_ARRAY_SEPARATOR = "|"
FALLBACK_ARRAY_SEPARATOR = ","


def parse_array_value(value: object | None) -> list[str]:
    """Split a list cell on ``|`` when present, otherwise on ``,``; trim and drop empties."""

    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    text = str(value)
    if not text.strip():
        return []
    separator = PRIMARY_ARRAY_SEPARATOR if PRIMARY_ARRAY_SEPARATOR in text else FALLBACK_ARRAY_SEPARATOR
    return [token.strip() for token in text.split(separator) if token.strip()]


def join_array_value(values: Iterable[object] | None) -> str:
    """Inverse of :func:`parse_array_value` for export."""

    if not values:
        return ""
    if isinstance(values, str):
        return values
    return PRIMARY_ARRAY_SEPARATOR.join(str(item) for item in values)


def map_csv_fields(
    row: Mapping[str, object | None],
    alias_map: Mapping[str, str] | None = None,
    array_fields: Iterable[str] | None = None,
) -> dict[str, object | None]:
    """Return ``row`` keyed by canonical field names with list cells parsed."""

    aliases = alias_map if alias_map is not None else get_profile_alias_map()
    list_fields = set(array_fields if array_fields is not None else get_array_field_names())

    mapped: dict[str, object | None] = {}
    for raw_key, value in row.items():
        key = str(raw_key).strip().lower()
        target = aliases.get(key)
        if target is None:
            mapped[key] = value
            continue
        if target in list_fields:
            value = parse_array_value(value)
        mapped[target] = value
    return mapped


__all__ = [
    "PRIMARY_ARRAY_SEPARATOR",
    "FALLBACK_ARRAY_SEPARATOR",
    "parse_array_value",
    "join_array_value",
    "map_csv_fields",
]
