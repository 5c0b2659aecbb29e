# frs_users/routes/media.py

"""
Serving of stored headshot images
"""

from flask import send_from_directory

from frs_users.importer.utils import resolve_media_directory


def register_media_routes(app):
    """Register media routes"""

    url_prefix = app.config.get("FRS_MEDIA_URL_PREFIX", "/media").rstrip("/") or "/media"

    @app.route(f"{url_prefix}/<path:filename>", methods=["GET"], endpoint="media_file")
    def media_file(filename):
        """Serve a stored headshot; unknown names give 404"""
        return send_from_directory(resolve_media_directory(app), filename)
