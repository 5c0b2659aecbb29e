"""
Admin endpoints for CSV import preview, import processing, and export.
"""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from http import HTTPStatus
from pathlib import Path

from flask import Blueprint, Response, current_app, jsonify, request
from flask_login import current_user

from frs_users.forms import ImportForm
from frs_users.importer.pipeline import ImportFileError, create_profile_importer, export_profiles
from frs_users.importer.utils import cleanup_upload, persist_upload
from frs_users.models import PERSON_TYPES, AdminLog
from frs_users.utils.importer import get_importer_settings, is_importer_enabled
from frs_users.utils.permissions import MANAGE_PROFILES, permission_required

importer_blueprint = Blueprint("profile_importer", __name__, url_prefix="/admin/profiles")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


def _ensure_importer_enabled_api():
    if not is_importer_enabled(current_app):
        return _json_error("Importer is disabled.", HTTPStatus.NOT_FOUND)
    return None


def _validate_upload_size(file_storage) -> None:
    max_bytes = get_importer_settings(current_app).max_upload_bytes
    content_length = getattr(file_storage, "content_length", None) or request.content_length
    if content_length and content_length > max_bytes:
        raise OverflowError("Upload exceeds maximum size limit.")

    if not content_length:
        position = file_storage.stream.tell()
        file_storage.stream.seek(0, 2)
        size_bytes = file_storage.stream.tell()
        file_storage.stream.seek(position)
        if size_bytes > max_bytes:
            raise OverflowError("Upload exceeds maximum size limit.")


def _load_import_form():
    """Validate the multipart request; return ``(form, None)`` or ``(None, error_response)``."""
    form = ImportForm()
    if not form.validate():
        return None, _json_error(form.first_error() or "Invalid import request.", HTTPStatus.BAD_REQUEST)
    try:
        _validate_upload_size(form.csv_file.data)
    except OverflowError as exc:
        return None, _json_error(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    return form, None


def _run_import(form: ImportForm, *, preview: bool):
    stored_path: Path | None = None
    try:
        stored_path = persist_upload(form.csv_file.data, current_app)
        importer = create_profile_importer(current_app)
        with stored_path.open("r", encoding="utf-8", newline="") as handle:
            if preview:
                return importer.preview(handle, form.match_mode.data, form.import_mode.data)
            return importer.process(
                handle,
                form.match_mode.data,
                form.import_mode.data,
                import_images=form.import_images.data,
                default_role=form.default_role.data or get_importer_settings(current_app).default_role,
            )
    finally:
        if stored_path is not None:
            cleanup_upload(stored_path)


@importer_blueprint.post("/import/preview")
@permission_required(MANAGE_PROFILES)
def import_preview():
    """Parse an uploaded CSV and report the planned action per row without writing."""
    disabled = _ensure_importer_enabled_api()
    if disabled:
        return disabled

    form, error = _load_import_form()
    if error:
        return error

    try:
        preview = _run_import(form, preview=True)
    except (ImportFileError, ValueError) as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    return jsonify(preview.as_dict()), HTTPStatus.OK


@importer_blueprint.post("/import/process")
@permission_required(MANAGE_PROFILES)
def import_process():
    """Create, update, or skip profiles for every row of an uploaded CSV."""
    disabled = _ensure_importer_enabled_api()
    if disabled:
        return disabled

    form, error = _load_import_form()
    if error:
        return error

    try:
        result = _run_import(form, preview=False)
    except (ImportFileError, ValueError) as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    AdminLog.log_action(
        admin_user_id=current_user.id,
        action="IMPORT_PROCESSED",
        details=json.dumps(
            {
                "filename": form.csv_file.data.filename,
                "match_mode": form.match_mode.data,
                "import_mode": form.import_mode.data,
                "import_images": form.import_images.data,
                "created": result.created,
                "updated": result.updated,
                "skipped": result.skipped,
                "errors": result.errors,
            }
        ),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    current_app.logger.info(
        "Profile import processed",
        extra={
            "importer_created": result.created,
            "importer_updated": result.updated,
            "importer_skipped": result.skipped,
            "importer_errors": result.errors,
            "triggered_by_user_id": current_user.id,
        },
    )
    return jsonify(result.as_dict()), HTTPStatus.OK


def _flag(name: str, default: bool = True) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@importer_blueprint.get("/export")
@permission_required(MANAGE_PROFILES)
def export_csv():
    """Download profiles as a CSV attachment."""
    disabled = _ensure_importer_enabled_api()
    if disabled:
        return disabled

    person_type = (request.args.get("type") or "").strip() or None
    if person_type and person_type not in PERSON_TYPES:
        return _json_error(f"Unknown profile type '{person_type}'.", HTTPStatus.BAD_REQUEST)

    buffer = io.StringIO()
    count = export_profiles(
        buffer,
        person_type=person_type,
        include_images=_flag("include_images"),
        include_social=_flag("include_social"),
        include_arrays=_flag("include_arrays"),
    )
    filename = f"frs-profiles-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.csv"
    current_app.logger.info("Exported %s profile(s)", count, extra={"importer_export_count": count})
    return Response(
        buffer.getvalue(),
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


__all__ = ["importer_blueprint"]
