# frs_users/models/__init__.py
"""
Database models package
"""

from .admin import AdminLog
from .base import BaseModel, db
from .media import MediaAsset
from .profile import ARRAY_FIELDS, PERSON_TYPES, PROFILE_FIELDS, SCALAR_FIELDS, SOCIAL_FIELDS, Profile
from .user import ACCOUNT_ROLES, User

__all__ = [
    "db",
    "BaseModel",
    "User",
    "AdminLog",
    "MediaAsset",
    "Profile",
    # Field declarations
    "ACCOUNT_ROLES",
    "ARRAY_FIELDS",
    "PERSON_TYPES",
    "PROFILE_FIELDS",
    "SCALAR_FIELDS",
    "SOCIAL_FIELDS",
]
