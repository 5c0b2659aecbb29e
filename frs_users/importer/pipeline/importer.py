"""
Smart CSV import: parse, map, match, decide, then preview or persist.

``ProfileImporter.preview`` is side-effect free. ``ProfileImporter.process``
commits each row on its own so that a failing row is rolled back, counted
under ``errors``, and the run carries on with the next row.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import IO, Any, Literal, Mapping

from flask import current_app
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from frs_users.importer.adapters import CSVAdapterError, ProfileCSVAdapter
from frs_users.importer.mapping import map_csv_fields
from frs_users.importer.media import BlobImporter, HeadshotImporter
from frs_users.importer.pipeline.matching import (
    MatchMode,
    ProfileMatch,
    build_candidate_index,
    find_matching_profile,
    validate_match_mode,
)
from frs_users.importer.pipeline.similarity import FUZZY_MATCH_THRESHOLD
from frs_users.importer.stores import AccountLinker, ProfileStore, SQLAlchemyAccountLinker, SQLAlchemyProfileStore
from frs_users.importer.utils import (
    build_placeholder_email,
    generate_unique_username,
    resolve_media_directory,
    sanitize_username,
    slugify,
)
from frs_users.models import ACCOUNT_ROLES, ARRAY_FIELDS, SCALAR_FIELDS, db
from frs_users.utils.importer import get_importer_settings

ImportMode = Literal["update", "update_only", "create_only"]
ImportAction = Literal["new", "update", "skip"]

IMPORT_MODES: tuple[str, ...] = ("update", "update_only", "create_only")
DEFAULT_PLACEHOLDER_DOMAIN = "placeholder.frs"
DEFAULT_ARRIVE_URL_TEMPLATE = "https://21stcenturylending.my1003app.com/{nmls}/register"

# Row fields copied onto a profile; email is only written when creating.
_PATCHABLE_FIELDS = tuple(name for name in SCALAR_FIELDS if name != "email") + ARRAY_FIELDS


class ImportFileError(Exception):
    """Raised when the uploaded file cannot be opened or has no header row."""


def validate_import_mode(value: str | None) -> ImportMode:
    token = (value or "update").strip().lower()
    if token not in IMPORT_MODES:
        raise ValueError(f"Unsupported import mode '{value}'. Expected one of: {', '.join(IMPORT_MODES)}.")
    return token  # type: ignore[return-value]


def _is_blank(value: object | None) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _clean(value: object | None) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _row_error_message(exc: Exception) -> str:
    """Short reason for the admin log; drops the SQL statement and parameters."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


@dataclass(frozen=True)
class ImportRow:
    """A mapped CSV row with its matching outcome and planned action."""

    sequence_number: int
    source_line: int
    fields: dict[str, Any]
    action: ImportAction
    match: ProfileMatch | None = None
    match_info: str = ""

    @property
    def match_id(self) -> int | None:
        return self.match.profile_id if self.match else None

    @property
    def match_method(self) -> str | None:
        return self.match.method if self.match else None

    @property
    def match_score(self) -> float | None:
        return self.match.score if self.match else None

    @property
    def name(self) -> str:
        first = _clean(self.fields.get("first_name")) or ""
        last = _clean(self.fields.get("last_name")) or ""
        return f"{first} {last}".strip() or str(self.fields.get("email") or f"row {self.sequence_number}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "row": self.sequence_number,
            "line": self.source_line,
            "fields": dict(self.fields),
            "action": self.action,
            "match_id": self.match_id,
            "match_name": self.match.name if self.match else None,
            "match_method": self.match_method,
            "match_score": self.match_score,
            "match_info": self.match_info,
        }


@dataclass(frozen=True)
class ImportPreview:
    """Dry-run view of an import."""

    columns: tuple[str, ...]
    rows: tuple[ImportRow, ...]
    summary: dict[str, int]

    def as_dict(self) -> dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": [row.as_dict() for row in self.rows],
            "summary": dict(self.summary),
        }


@dataclass
class ImportResult:
    """Counters and log lines for a processed import."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    log: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Created: {self.created}, Updated: {self.updated}, "
            f"Skipped: {self.skipped}, Errors: {self.errors}"
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "log": list(self.log),
        }


def decide_action(match: ProfileMatch | None, import_mode: ImportMode) -> tuple[ImportAction, str]:
    """
    Apply the import decision table.

    =========  ==============  ========
    match      import_mode     action
    =========  ==============  ========
    yes        create_only     skip
    yes        other           update
    no         update_only     skip
    no         other           new
    =========  ==============  ========
    """

    if match is not None:
        if import_mode == "create_only":
            return "skip", f"Already exists: {match.name}"
        return "update", f"Match: {match.describe()}"
    if import_mode == "update_only":
        return "skip", "No match found"
    return "new", ""


class ProfileImporter:
    """Coordinates a single CSV import against the profile and account stores."""

    def __init__(
        self,
        profile_store: ProfileStore,
        account_linker: AccountLinker,
        blob_importer: BlobImporter | None = None,
        *,
        session: Session | None = None,
        fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD,
        placeholder_domain: str = DEFAULT_PLACEHOLDER_DOMAIN,
        arrive_url_template: str | None = DEFAULT_ARRIVE_URL_TEMPLATE,
    ):
        self.profile_store = profile_store
        self.account_linker = account_linker
        self.blob_importer = blob_importer
        self.session = session or db.session
        self.fuzzy_threshold = fuzzy_threshold
        self.placeholder_domain = placeholder_domain
        self.arrive_url_template = arrive_url_template

    # ------------------------------------------------------------------
    # Parsing

    def _plan(
        self,
        handle: IO[str],
        match_mode: str | None,
        import_mode: str | None,
    ) -> tuple[tuple[str, ...], list[ImportRow]]:
        mode: MatchMode = validate_match_mode(match_mode)
        import_mode_value = validate_import_mode(import_mode)

        adapter = ProfileCSVAdapter(handle)
        candidates = build_candidate_index(self.profile_store.list_active())
        planned: list[ImportRow] = []
        try:
            for csv_row in adapter.iter_rows():
                fields = map_csv_fields(csv_row.values)
                match = find_matching_profile(fields, candidates, mode, threshold=self.fuzzy_threshold)
                action, match_info = decide_action(match, import_mode_value)
                planned.append(
                    ImportRow(
                        sequence_number=csv_row.sequence_number,
                        source_line=csv_row.source_line,
                        fields=fields,
                        action=action,
                        match=match,
                        match_info=match_info,
                    )
                )
        except (CSVAdapterError, OSError, UnicodeDecodeError) as exc:
            raise ImportFileError(str(exc)) from exc

        if adapter.statistics.rows_skipped_malformed:
            current_app.logger.info(
                "Profile import dropped %s malformed row(s)",
                adapter.statistics.rows_skipped_malformed,
                extra={"importer_rows_malformed": adapter.statistics.rows_skipped_malformed},
            )
        return adapter.header or (), planned

    def preview(
        self,
        handle: IO[str],
        match_mode: str | None = "email",
        import_mode: str | None = "update",
    ) -> ImportPreview:
        columns, rows = self._plan(handle, match_mode, import_mode)
        summary = {"new": 0, "update": 0, "skip": 0}
        for row in rows:
            summary[row.action] += 1
        return ImportPreview(columns=columns, rows=tuple(rows), summary=summary)

    # ------------------------------------------------------------------
    # Processing

    def process(
        self,
        handle: IO[str],
        match_mode: str | None = "email",
        import_mode: str | None = "update",
        *,
        import_images: bool = False,
        default_role: str = "loan_officer",
    ) -> ImportResult:
        if default_role not in ACCOUNT_ROLES:
            raise ValueError(f"Unsupported account role '{default_role}'. Expected one of: {', '.join(ACCOUNT_ROLES)}.")

        _, rows = self._plan(handle, match_mode, import_mode)
        result = ImportResult()

        for row in rows:
            if row.action == "skip":
                result.skipped += 1
                result.log.append(f"Skipped: {row.name}")
                continue

            try:
                if row.action == "update":
                    self._update_profile(row, import_images=import_images)
                    self.session.commit()
                    result.updated += 1
                    result.log.append(f"Updated: {row.name}")
                else:
                    profile_id = self._create_profile(row, default_role=default_role, import_images=import_images)
                    if profile_id is None:
                        self.session.rollback()
                        result.skipped += 1
                        result.log.append(f"Skipped: {row.name} (account already exists)")
                        continue
                    self.session.commit()
                    result.created += 1
                    result.log.append(f"Created: {row.name}")
            except Exception as exc:
                self.session.rollback()
                result.errors += 1
                result.log.append(f"Error: {row.name} - {_row_error_message(exc)}")
                current_app.logger.warning(
                    "Profile import row %s failed: %s",
                    row.sequence_number,
                    exc,
                    extra={"importer_row": row.sequence_number, "importer_action": row.action},
                )

        current_app.logger.info(
            "Profile import finished. %s",
            result.message,
            extra={
                "importer_created": result.created,
                "importer_updated": result.updated,
                "importer_skipped": result.skipped,
                "importer_errors": result.errors,
            },
        )
        return result

    def _patch(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        patch: dict[str, Any] = {}
        for name in _PATCHABLE_FIELDS:
            value = fields.get(name)
            if _is_blank(value):
                continue
            patch[name] = list(value) if name in ARRAY_FIELDS else _clean(value)
        return patch

    def _create_profile(self, row: ImportRow, *, default_role: str, import_images: bool) -> int | None:
        fields = row.fields
        first_name = _clean(fields.get("first_name")) or None
        last_name = _clean(fields.get("last_name")) or None

        email = _clean(fields.get("email")) or build_placeholder_email(first_name, last_name, self.placeholder_domain)
        email = email.lower()
        if self.account_linker.account_exists(email):
            return None

        base_login = sanitize_username(email.split("@", 1)[0])
        login = generate_unique_username(base_login, self.account_linker.account_exists)
        account_id = self.account_linker.create_account(
            login,
            email,
            secrets.token_urlsafe(16),
            default_role,
            first_name,
            last_name,
        )

        payload = self._patch(fields)
        payload["email"] = email
        payload["user_id"] = account_id
        payload.setdefault("display_name", " ".join(part for part in (first_name, last_name) if part) or None)

        nmls = payload.get("nmls")
        if nmls and not payload.get("arrive") and self.arrive_url_template:
            payload["arrive"] = self.arrive_url_template.format(nmls=nmls)
        if not payload.get("profile_slug"):
            payload["profile_slug"] = self._slug_for(first_name, last_name) or None

        profile_id = self.profile_store.create(payload)
        if import_images:
            self._attach_headshot(profile_id, fields, row.name)
        return profile_id

    def _update_profile(self, row: ImportRow, *, import_images: bool) -> None:
        profile_id = row.match_id
        profile = self.profile_store.find_by_id(profile_id) if profile_id is not None else None
        if profile is None:
            raise LookupError(f"Matched profile {profile_id} no longer exists")

        patch = self._patch(row.fields)
        if not patch.get("profile_slug") and not getattr(profile, "profile_slug", None):
            slug = self._slug_for(
                patch.get("first_name") or profile.first_name,
                patch.get("last_name") or profile.last_name,
            )
            if slug:
                patch["profile_slug"] = slug
        if patch:
            self.profile_store.update(profile_id, patch)

        account_id = getattr(profile, "user_id", None)
        if account_id:
            first_name = patch.get("first_name")
            last_name = patch.get("last_name")
            display_name = patch.get("display_name")
            if not display_name and (first_name or last_name):
                display_name = " ".join(
                    part for part in (first_name or profile.first_name, last_name or profile.last_name) if part
                )
            self.account_linker.update_account(
                account_id,
                first_name=first_name,
                last_name=last_name,
                display_name=display_name,
            )

        if import_images:
            self._attach_headshot(profile_id, row.fields, row.name)

    @staticmethod
    def _slug_for(first_name: str | None, last_name: str | None) -> str:
        return slugify(" ".join(part for part in (first_name, last_name) if part))

    def _attach_headshot(self, profile_id: int, fields: Mapping[str, Any], title: str) -> None:
        url = _clean(fields.get("headshot_url"))
        if not url or self.blob_importer is None:
            return
        media_id = self.blob_importer.fetch_and_store(url, title=title)
        if media_id is None:
            current_app.logger.warning(
                "Headshot not imported for profile %s",
                profile_id,
                extra={"importer_profile_id": profile_id},
            )
            return
        self.profile_store.update(profile_id, {"headshot_id": media_id})


def create_profile_importer(app=None, *, session: Session | None = None) -> ProfileImporter:
    """Build a :class:`ProfileImporter` wired to the SQLAlchemy stores and app config."""

    app = app or current_app
    settings = get_importer_settings(app)
    blob_importer = HeadshotImporter(
        resolve_media_directory(app),
        timeout=settings.image_timeout,
        max_bytes=settings.image_max_bytes,
        session=session,
    )
    return ProfileImporter(
        SQLAlchemyProfileStore(session),
        SQLAlchemyAccountLinker(session),
        blob_importer,
        session=session,
        fuzzy_threshold=settings.fuzzy_threshold,
        placeholder_domain=settings.placeholder_domain,
        arrive_url_template=settings.arrive_url_template,
    )


__all__ = [
    "IMPORT_MODES",
    "ImportFileError",
    "ImportMode",
    "ImportPreview",
    "ImportResult",
    "ImportRow",
    "ProfileImporter",
    "create_profile_importer",
    "decide_action",
    "validate_import_mode",
]
