# config/validation.py

"""
Start-up validation of the environment for production deployments.

Each check reads one concern from ``os.environ`` and returns the problems it
found; ``validate_and_exit`` prints them and stops the process.
"""

import os
import sys
from typing import Callable, List, Tuple
from urllib.parse import urlparse

KNOWN_ACCOUNT_ROLES = ("loan_officer", "realtor_partner", "staff", "admin")
PLACEHOLDER_SECRET_KEYS = {"", "your-secret-key", "your_secret_key", "dev-secret-key-change-in-production"}


def _check_secret_key() -> List[str]:
    if os.environ.get("SECRET_KEY", "") in PLACEHOLDER_SECRET_KEYS:
        return [
            "SECRET_KEY is required in production and must not be a placeholder value. "
            'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
        ]
    return []


def _check_database_url() -> List[str]:
    if not os.environ.get("DATABASE_URL"):
        return ["DATABASE_URL is required in production (the profiles database connection string)."]
    return []


def _check_default_role() -> List[str]:
    role = os.environ.get("FRS_DEFAULT_ROLE")
    if role and role not in KNOWN_ACCOUNT_ROLES:
        return [f"FRS_DEFAULT_ROLE must be one of: {', '.join(KNOWN_ACCOUNT_ROLES)}"]
    return []


def _check_arrive_template() -> List[str]:
    template = os.environ.get("FRS_ARRIVE_URL_TEMPLATE")
    if not template:
        return []
    if "{nmls}" not in template:
        return ["FRS_ARRIVE_URL_TEMPLATE must contain the {nmls} placeholder"]
    if urlparse(template).scheme not in ("http", "https"):
        return ["FRS_ARRIVE_URL_TEMPLATE must be an http(s) URL"]
    return []


def _check_media_prefix() -> List[str]:
    prefix = os.environ.get("FRS_MEDIA_URL_PREFIX")
    if prefix and not prefix.startswith("/"):
        return ["FRS_MEDIA_URL_PREFIX must start with '/'"]
    return []


PRODUCTION_CHECKS: Tuple[Callable[[], List[str]], ...] = (
    _check_secret_key,
    _check_database_url,
    _check_default_role,
    _check_arrive_template,
    _check_media_prefix,
)


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Run the production checks.

    Args:
        flask_env: Flask environment name; read from ``FLASK_ENV`` when None.
            Only ``production`` is validated.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    if flask_env is None:
        flask_env = os.environ.get("FLASK_ENV", "development")
    if flask_env != "production":
        return True, []

    errors = [message for check in PRODUCTION_CHECKS for message in check()]
    return not errors, errors


def validate_and_exit(flask_env: str = None) -> None:
    """Validate the environment and exit with status 1 listing every problem."""
    is_valid, errors = validate_environment(flask_env)
    if is_valid:
        return

    banner = "=" * 80
    lines = [banner, "ENVIRONMENT VALIDATION FAILED", banner, ""]
    lines.extend(f"{index}. {error}" for index, error in enumerate(errors, 1))
    lines.extend(["", "Check your .env file or environment variables.", banner])
    print("\n".join(lines), file=sys.stderr)
    sys.exit(1)
