# frs_users/models/media.py

from flask import current_app

from .base import BaseModel, db


class MediaAsset(BaseModel):
    """A stored image downloaded for a profile (headshots)"""

    __tablename__ = "media_assets"

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(255), unique=True, nullable=False)
    original_name = db.Column(db.String(255), nullable=True)
    source_url = db.Column(db.String(1000), nullable=True)
    content_type = db.Column(db.String(100), nullable=True)
    size_bytes = db.Column(db.Integer, nullable=True)
    title = db.Column(db.String(255), nullable=True)

    def __repr__(self):
        return f"<MediaAsset {self.filename}>"

    @property
    def public_url(self):
        prefix = current_app.config.get("FRS_MEDIA_URL_PREFIX", "/media").rstrip("/")
        return f"{prefix}/{self.filename}"
