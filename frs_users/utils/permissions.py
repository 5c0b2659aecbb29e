# frs_users/utils/permissions.py

from functools import wraps
from http import HTTPStatus

from flask import jsonify
from flask_login import current_user

MANAGE_PROFILES = "manage_profiles"


def has_permission(user, permission_name):
    """Check if user has a specific permission"""
    if not user or not user.is_authenticated:
        return False

    # Super admins have all permissions
    if user.is_super_admin:
        return True

    if permission_name == MANAGE_PROFILES:
        return user.can_manage_profiles

    return False


def permission_required(permission_name):
    """
    Decorator for JSON endpoints requiring a specific permission.

    Anonymous callers get 401 and authenticated callers lacking the
    permission get 403, both as ``{"error": ...}`` bodies.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"error": "Authentication required."}), HTTPStatus.UNAUTHORIZED

            if not has_permission(current_user, permission_name):
                return jsonify({"error": "You do not have permission to perform this action."}), HTTPStatus.FORBIDDEN

            return f(*args, **kwargs)

        return decorated_function

    return decorator
