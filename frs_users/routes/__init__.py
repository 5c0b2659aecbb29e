# frs_users/routes/__init__.py
"""
Application routes package
"""

from .media import register_media_routes
from .profiles import register_profile_routes


def init_routes(app):
    """Initialize all application routes"""
    register_profile_routes(app)
    register_media_routes(app)
