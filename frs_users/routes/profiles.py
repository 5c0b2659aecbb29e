# frs_users/routes/profiles.py

"""
JSON API for profile CRUD and merging
"""

import json
from http import HTTPStatus

from flask import current_app, jsonify, request
from flask_login import current_user

from frs_users.importer.mapping import parse_array_value
from frs_users.models import ARRAY_FIELDS, PERSON_TYPES, SCALAR_FIELDS, AdminLog, Profile, User, db
from frs_users.services import MergeError, ProfileMergeService
from frs_users.utils.permissions import MANAGE_PROFILES, permission_required

# Fields accepted in create/update payloads
WRITABLE_FIELDS = SCALAR_FIELDS + ARRAY_FIELDS + ("user_id", "is_active")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _json_error(message, status):
    return jsonify({"error": message}), status


def _coerce_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_payload(data, *, require_email):
    """Validate a JSON body; return (fields, error_message)"""
    if not isinstance(data, dict):
        return None, "Request body must be a JSON object."

    unknown = sorted(key for key in data if key not in WRITABLE_FIELDS)
    if unknown:
        return None, f"Unknown profile field(s): {', '.join(unknown)}"

    fields = {}
    for name, value in data.items():
        if name in ARRAY_FIELDS:
            fields[name] = parse_array_value(value)
        elif name == "is_active":
            fields[name] = _coerce_bool(value)
        elif name == "user_id":
            if value in (None, ""):
                fields[name] = None
                continue
            try:
                fields[name] = int(value)
            except (TypeError, ValueError):
                return None, "user_id must be an integer."
            if db.session.get(User, fields[name]) is None:
                return None, f"User {fields[name]} not found."
        elif value is None:
            fields[name] = None
        else:
            fields[name] = str(value).strip()

    if "email" in fields or require_email:
        if not fields.get("email"):
            return None, "Email is required."
    if fields.get("person_type") and fields["person_type"] not in PERSON_TYPES:
        return None, f"Unknown profile type '{fields['person_type']}'."
    return fields, None


def register_profile_routes(app):
    """Register profile API routes"""

    @app.route("/api/profiles", methods=["GET"])
    @permission_required(MANAGE_PROFILES)
    def api_list_profiles():
        """List profiles ordered by name, optionally filtered by type"""
        person_type = (request.args.get("type") or "").strip() or None
        include_inactive = _coerce_bool(request.args.get("include_inactive", "0"))
        profiles = Profile.get_all(person_type=person_type, include_inactive=include_inactive)
        current_app.logger.debug(f"Returning {len(profiles)} profiles (type={person_type})")
        return jsonify({"profiles": [profile.to_dict() for profile in profiles], "total": len(profiles)})

    @app.route("/api/profiles", methods=["POST"])
    @permission_required(MANAGE_PROFILES)
    def api_create_profile():
        """Create a profile from a JSON body"""
        fields, error = _parse_payload(request.get_json(silent=True), require_email=True)
        if error:
            return _json_error(error, HTTPStatus.BAD_REQUEST)

        if Profile.find_by_email(fields["email"], include_inactive=False) is not None:
            return _json_error(f"A profile with email {fields['email']} already exists.", HTTPStatus.CONFLICT)

        profile, error = Profile.safe_create(**fields)
        if error:
            return _json_error("Failed to create profile.", HTTPStatus.INTERNAL_SERVER_ERROR)

        current_app.logger.info(f"Profile {profile.id} created by user {current_user.username}")
        return jsonify(profile.to_dict()), HTTPStatus.CREATED

    @app.route("/api/profiles/<int:profile_id>", methods=["GET"])
    @permission_required(MANAGE_PROFILES)
    def api_get_profile(profile_id):
        profile = Profile.find_by_id(profile_id)
        if profile is None:
            return _json_error(f"Profile {profile_id} not found.", HTTPStatus.NOT_FOUND)
        return jsonify(profile.to_dict())

    @app.route("/api/profiles/<int:profile_id>", methods=["PATCH"])
    @permission_required(MANAGE_PROFILES)
    def api_update_profile(profile_id):
        """Apply a partial update"""
        profile = Profile.find_by_id(profile_id)
        if profile is None:
            return _json_error(f"Profile {profile_id} not found.", HTTPStatus.NOT_FOUND)

        fields, error = _parse_payload(request.get_json(silent=True), require_email=False)
        if error:
            return _json_error(error, HTTPStatus.BAD_REQUEST)

        will_be_active = fields.get("is_active", profile.is_active)
        if will_be_active and ("email" in fields or not profile.is_active):
            email = fields.get("email", profile.email)
            existing = Profile.find_by_email(email, include_inactive=False)
            if existing is not None and existing.id != profile.id:
                return _json_error(f"A profile with email {email} already exists.", HTTPStatus.CONFLICT)

        success, error = profile.safe_update(**fields)
        if not success:
            return _json_error("Failed to update profile.", HTTPStatus.INTERNAL_SERVER_ERROR)

        current_app.logger.info(f"Profile {profile.id} updated by user {current_user.username}")
        return jsonify(profile.to_dict())

    @app.route("/api/profiles/<int:profile_id>", methods=["DELETE"])
    @permission_required(MANAGE_PROFILES)
    def api_delete_profile(profile_id):
        """Deactivate a profile, or remove it entirely with ?hard=1"""
        profile = Profile.find_by_id(profile_id)
        if profile is None:
            return _json_error(f"Profile {profile_id} not found.", HTTPStatus.NOT_FOUND)

        hard = _coerce_bool(request.args.get("hard", "0"))
        email = profile.email
        if hard:
            success, error = profile.safe_delete()
        else:
            success, error = profile.safe_update(is_active=False)
        if not success:
            return _json_error("Failed to delete profile.", HTTPStatus.INTERNAL_SERVER_ERROR)

        AdminLog.log_action(
            admin_user_id=current_user.id,
            action="PROFILE_DELETED",
            target_profile_id=profile_id,
            details=json.dumps({"email": email, "hard": hard}),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        current_app.logger.info(f"Profile {profile_id} {'deleted' if hard else 'deactivated'} by user {current_user.username}")
        return jsonify({"success": True, "id": profile_id, "hard": hard})

    @app.route("/api/profiles/merge", methods=["POST"])
    @permission_required(MANAGE_PROFILES)
    def api_merge_profiles():
        """
        Merge two or more profiles.

        Body: ``{"profile_ids": [1, 2], "fields": {"email": 1, "first_name": 2}}``
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _json_error("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)

        profile_ids = data.get("profile_ids") or []
        selections = data.get("fields") or {}
        if not isinstance(profile_ids, list) or not isinstance(selections, dict):
            return _json_error("profile_ids must be a list and fields an object.", HTTPStatus.BAD_REQUEST)

        try:
            merged = ProfileMergeService().merge(profile_ids, selections)
        except MergeError as exc:
            return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

        AdminLog.log_action(
            admin_user_id=current_user.id,
            action="PROFILES_MERGED",
            target_profile_id=merged.id,
            details=json.dumps({"source_profile_ids": profile_ids, "fields": selections}),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"profile": merged.to_dict(), "merged_count": len(set(profile_ids))}), HTTPStatus.CREATED
