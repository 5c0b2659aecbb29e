"""
CLI commands for profile import, export, and merge.

Registered on the Flask CLI as ``flask profiles ...``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
from flask import current_app
from flask.cli import AppGroup

from frs_users.importer.pipeline import (
    IMPORT_MODES,
    MATCH_MODES,
    ImportFileError,
    ImportPreview,
    ImportResult,
    create_profile_importer,
    export_profiles,
)
from frs_users.models import ACCOUNT_ROLES, PERSON_TYPES
from frs_users.services import MergeError, ProfileMergeService
from frs_users.utils.importer import get_importer_settings, is_importer_enabled

profiles_cli = AppGroup("profiles", help="Profile import, export, and merge commands.")


def _ensure_importer_enabled() -> None:
    if not is_importer_enabled(current_app):
        raise click.ClickException("Importer is disabled; enable it via IMPORTER_ENABLED before running.")


def _format_preview(preview: ImportPreview) -> str:
    lines = [
        f"Preview: {len(preview.rows)} row(s); "
        f"new={preview.summary['new']} update={preview.summary['update']} skip={preview.summary['skip']}",
        f"  headers: {', '.join(preview.columns) if preview.columns else 'n/a'}",
    ]
    for row in preview.rows:
        info = f" ({row.match_info})" if row.match_info else ""
        lines.append(f"  [{row.action.upper():6}] {row.name}{info}")
    return "\n".join(lines)


def _format_result(result: ImportResult) -> str:
    lines = [result.message]
    lines.extend(f"  {line}" for line in result.log)
    return "\n".join(lines)


@profiles_cli.command("import")
@click.argument("file_path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option(
    "--match-mode",
    type=click.Choice(MATCH_MODES),
    default="email",
    show_default=True,
    help="How rows are matched to existing profiles.",
)
@click.option(
    "--import-mode",
    type=click.Choice(IMPORT_MODES),
    default="update",
    show_default=True,
    help="update: create or update; update_only: never create; create_only: never update.",
)
@click.option("--preview", is_flag=True, help="Show the planned actions without writing anything.")
@click.option("--import-images", is_flag=True, help="Download headshots from the headshot_url column.")
@click.option(
    "--default-role",
    type=click.Choice(ACCOUNT_ROLES),
    default=None,
    help="Account role for created profiles (defaults to FRS_DEFAULT_ROLE).",
)
@click.option("--summary-json", is_flag=True, help="Emit a machine-readable summary payload after completion.")
def profiles_import(
    file_path: Path,
    match_mode: str,
    import_mode: str,
    preview: bool,
    import_images: bool,
    default_role: Optional[str],
    summary_json: bool,
):
    """Import profiles from a CSV file."""
    _ensure_importer_enabled()
    importer = create_profile_importer(current_app)
    role = default_role or get_importer_settings(current_app).default_role

    try:
        with file_path.open("r", encoding="utf-8", newline="") as handle:
            if preview:
                outcome = importer.preview(handle, match_mode, import_mode)
            else:
                outcome = importer.process(
                    handle,
                    match_mode,
                    import_mode,
                    import_images=import_images,
                    default_role=role,
                )
    except (ImportFileError, ValueError, OSError) as exc:
        raise click.ClickException(f"Import of {file_path} failed: {exc}") from exc

    if isinstance(outcome, ImportPreview):
        click.echo(_format_preview(outcome))
    else:
        current_app.logger.info(
            "Profile import completed via CLI",
            extra={"importer_file": str(file_path), "importer_match_mode": match_mode},
        )
        click.echo(_format_result(outcome))
    if summary_json:
        click.echo(json.dumps(outcome.as_dict(), indent=2, sort_keys=True, default=str))


@profiles_cli.command("export")
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False, writable=True),
    default=None,
    help="Write the CSV to this file instead of stdout.",
)
@click.option("--type", "person_type", type=click.Choice(PERSON_TYPES), default=None, help="Only export this person type.")
@click.option("--include-images/--no-include-images", default=True, show_default=True)
@click.option("--include-social/--no-include-social", default=True, show_default=True)
@click.option("--include-arrays/--no-include-arrays", default=True, show_default=True)
def profiles_export(
    output_path: Optional[Path],
    person_type: Optional[str],
    include_images: bool,
    include_social: bool,
    include_arrays: bool,
):
    """Export profiles as CSV."""
    _ensure_importer_enabled()
    options = {
        "person_type": person_type,
        "include_images": include_images,
        "include_social": include_social,
        "include_arrays": include_arrays,
    }
    if output_path is None:
        export_profiles(click.get_text_stream("stdout"), **options)
        return

    try:
        with output_path.open("w", encoding="utf-8", newline="") as stream:
            count = export_profiles(stream, **options)
    except OSError as exc:
        raise click.ClickException(f"Could not write {output_path}: {exc}") from exc
    click.echo(f"Exported {count} profile(s) to {output_path}")


def _parse_field_selection(value: str) -> tuple[str, int]:
    name, sep, raw_id = value.partition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"Expected name=profile_id, got '{value}'.", param_hint="--field")
    try:
        return name.strip(), int(raw_id)
    except ValueError as exc:
        raise click.BadParameter(f"Profile id must be an integer in '{value}'.", param_hint="--field") from exc


@profiles_cli.command("merge")
@click.argument("profile_ids", nargs=-1, type=int, required=True)
@click.option(
    "--field",
    "fields",
    multiple=True,
    required=True,
    help="Field selection as name=profile_id; repeat for each field to keep.",
)
def profiles_merge(profile_ids: tuple[int, ...], fields: tuple[str, ...]):
    """Merge PROFILE_IDS into one new profile."""
    selections = dict(_parse_field_selection(value) for value in fields)
    try:
        merged = ProfileMergeService().merge(profile_ids, selections)
    except MergeError as exc:
        raise click.ClickException(str(exc)) from exc
    merged_ids = ", ".join(str(profile_id) for profile_id in sorted(set(profile_ids)))
    click.echo(f"Merged profiles {merged_ids} into profile {merged.id} ({merged.email})")


__all__ = ["profiles_cli"]
