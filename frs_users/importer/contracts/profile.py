"""Canonical profile import contract definitions.

Single source of truth for the CSV columns the profile importer recognizes,
their aliases, and which of them carry delimited lists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Tuple

_NON_HEADER_CHARS = re.compile(r"[^a-z0-9_]")


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical import field."""

    name: str
    description: str
    aliases: Tuple[str, ...] = ()
    is_array: bool = False

    def headers(self) -> Tuple[str, ...]:
        """Return the canonical header plus aliases."""

        return (self.name, *self.aliases)


PROFILE_CANONICAL_FIELDS: Tuple[FieldSpec, ...] = (
    # Core
    FieldSpec(name="email", description="Primary email address (unique per profile)."),
    FieldSpec(name="first_name", description="Given name."),
    FieldSpec(name="last_name", description="Family name."),
    FieldSpec(name="display_name", description="Name shown in directories."),
    FieldSpec(name="phone_number", description="Office phone.", aliases=("phone",)),
    FieldSpec(name="mobile_number", description="Mobile phone.", aliases=("mobile",)),
    FieldSpec(name="job_title", description="Job title.", aliases=("title",)),
    FieldSpec(name="biography", description="Long-form biography.", aliases=("bio",)),
    FieldSpec(
        name="person_type",
        description="Profile type (loan_officer, realtor_partner, staff, ...).",
        aliases=("select_person_type",),
    ),
    # Licensing
    FieldSpec(name="nmls", description="NMLS identifier.", aliases=("nmls_number", "nmls_id")),
    FieldSpec(name="license_number", description="State license number."),
    FieldSpec(name="dre_license", description="DRE license number.", aliases=("dre",)),
    # Location
    FieldSpec(name="office", description="Office name or address."),
    FieldSpec(name="city_state", description="City and state.", aliases=("location",)),
    FieldSpec(name="region", description="Sales region."),
    # Social
    FieldSpec(name="facebook_url", description="Facebook profile URL.", aliases=("facebook",)),
    FieldSpec(name="instagram_url", description="Instagram profile URL.", aliases=("instagram",)),
    FieldSpec(name="linkedin_url", description="LinkedIn profile URL.", aliases=("linkedin",)),
    FieldSpec(name="twitter_url", description="Twitter profile URL.", aliases=("twitter",)),
    FieldSpec(name="youtube_url", description="YouTube channel URL.", aliases=("youtube",)),
    FieldSpec(name="tiktok_url", description="TikTok profile URL.", aliases=("tiktok",)),
    # Profile page
    FieldSpec(name="profile_slug", description="Public profile slug.", aliases=("slug",)),
    FieldSpec(
        name="headshot_url",
        description="Remote headshot image URL (downloaded when image import is enabled).",
        aliases=("headshot", "photo", "photo_url", "image", "image_url"),
    ),
    # Lists (pipe or comma separated)
    FieldSpec(
        name="service_areas",
        description="Licensed states or service areas.",
        aliases=("states", "licensed_states"),
        is_array=True,
    ),
    FieldSpec(name="specialties_lo", description="Loan officer specialties.", aliases=("specialties",), is_array=True),
    FieldSpec(name="languages", description="Spoken languages.", is_array=True),
    FieldSpec(name="awards", description="Awards and recognitions.", is_array=True),
    FieldSpec(name="nar_designations", description="NAR designations.", is_array=True),
    FieldSpec(name="namb_certifications", description="NAMB certifications.", is_array=True),
    FieldSpec(
        name="company_roles",
        description="Company roles.",
        aliases=("company_role", "role", "type"),
        is_array=True,
    ),
    # Tools
    FieldSpec(name="arrive", description="Loan application link.", aliases=("arrive_url", "apply_url")),
)

# Realtor-side specialties share the list parsing but have no alias of their own
EXTRA_ARRAY_FIELDS: Tuple[str, ...] = ("specialties",)


def get_profile_alias_map() -> Mapping[str, str]:
    """Map normalized header tokens to canonical names (includes aliases)."""

    mapping: dict[str, str] = {}
    for field in PROFILE_CANONICAL_FIELDS:
        for header in field.headers():
            mapping[normalize_header(header)] = field.name
    return mapping


def get_array_field_names() -> Tuple[str, ...]:
    """Canonical fields whose cells hold delimited lists."""

    names = [field.name for field in PROFILE_CANONICAL_FIELDS if field.is_array]
    names.extend(name for name in EXTRA_ARRAY_FIELDS if name not in names)
    return tuple(names)


def normalize_header(header: str | None) -> str:
    """Normalize a CSV header: lower-case, trim, and replace anything outside [a-z0-9_] with '_'."""

    token = (header or "").lstrip("\ufeff").strip().lower()
    return _NON_HEADER_CHARS.sub("_", token)
