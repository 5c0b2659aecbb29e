# frs_users/models/profile.py
"""
Profile model for loan officers, realtor partners, and staff.

A profile is independent of, but optionally linked to, a platform user
account. Array-valued fields are stored as JSON lists.
"""

from flask import current_app
from sqlalchemy import Index, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import validates

from .base import BaseModel, db

PERSON_TYPES = ("loan_officer", "realtor_partner", "staff", "leadership", "assistant")

SOCIAL_FIELDS = (
    "facebook_url",
    "instagram_url",
    "linkedin_url",
    "twitter_url",
    "youtube_url",
    "tiktok_url",
)

ARRAY_FIELDS = (
    "service_areas",
    "specialties_lo",
    "specialties",
    "languages",
    "awards",
    "nar_designations",
    "namb_certifications",
    "company_roles",
)

SCALAR_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "display_name",
    "phone_number",
    "mobile_number",
    "job_title",
    "biography",
    "person_type",
    "nmls",
    "license_number",
    "dre_license",
    "office",
    "city_state",
    "region",
    *SOCIAL_FIELDS,
    "arrive",
    "profile_slug",
)

# Every field that can be read or written by name
PROFILE_FIELDS = SCALAR_FIELDS + ARRAY_FIELDS + ("user_id", "headshot_id", "is_active")


class Profile(BaseModel):
    """Directory profile record"""

    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Contact information
    email = db.Column(db.String(255), nullable=False, index=True)
    first_name = db.Column(db.String(255), nullable=True, index=True)
    last_name = db.Column(db.String(255), nullable=True, index=True)
    display_name = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(50), nullable=True)
    mobile_number = db.Column(db.String(50), nullable=True)
    office = db.Column(db.String(255), nullable=True)

    # Profile
    headshot_id = db.Column(db.Integer, db.ForeignKey("media_assets.id"), nullable=True)
    job_title = db.Column(db.String(255), nullable=True)
    biography = db.Column(db.Text, nullable=True)
    person_type = db.Column(db.String(50), nullable=True, index=True)

    # Professional details
    nmls = db.Column(db.String(50), nullable=True, index=True)
    license_number = db.Column(db.String(50), nullable=True)
    dre_license = db.Column(db.String(50), nullable=True)
    service_areas = db.Column(db.JSON, nullable=True)
    specialties_lo = db.Column(db.JSON, nullable=True)
    specialties = db.Column(db.JSON, nullable=True)
    languages = db.Column(db.JSON, nullable=True)
    awards = db.Column(db.JSON, nullable=True)
    nar_designations = db.Column(db.JSON, nullable=True)
    namb_certifications = db.Column(db.JSON, nullable=True)
    company_roles = db.Column(db.JSON, nullable=True)

    # Location
    city_state = db.Column(db.String(255), nullable=True)
    region = db.Column(db.String(255), nullable=True)

    # Social media
    facebook_url = db.Column(db.String(500), nullable=True)
    instagram_url = db.Column(db.String(500), nullable=True)
    linkedin_url = db.Column(db.String(500), nullable=True)
    twitter_url = db.Column(db.String(500), nullable=True)
    youtube_url = db.Column(db.String(500), nullable=True)
    tiktok_url = db.Column(db.String(500), nullable=True)

    # Tools
    arrive = db.Column(db.String(500), nullable=True)
    profile_slug = db.Column(db.String(255), nullable=True, index=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    user = db.relationship("User", back_populates="profiles")
    headshot = db.relationship("MediaAsset", foreign_keys=[headshot_id])

    __table_args__ = (
        Index("idx_profile_name", "last_name", "first_name"),
        # Soft-deleted profiles release their email
        Index(
            "uq_profile_active_email",
            "email",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self):
        return f"<Profile {self.get_full_name()} ({self.email})>"

    @validates("email")
    def validate_email(self, key, value):
        """Store emails trimmed and lower-cased"""
        if value is None:
            return value
        return str(value).strip().lower()

    @validates(*ARRAY_FIELDS)
    def validate_array_field(self, key, value):
        if value is None:
            return None
        if isinstance(value, str):
            return [value] if value.strip() else []
        return [str(item) for item in value]

    def get_full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    def get_field(self, name):
        """Read a declared profile field by name"""
        if name not in PROFILE_FIELDS:
            raise KeyError(f"Unknown profile field: {name}")
        value = getattr(self, name)
        if name in ARRAY_FIELDS and value is None:
            return []
        return value

    def set_field(self, name, value):
        """Write a declared profile field by name"""
        if name not in PROFILE_FIELDS:
            raise KeyError(f"Unknown profile field: {name}")
        setattr(self, name, value)

    @property
    def headshot_url(self):
        return self.headshot.public_url if self.headshot else None

    def to_dict(self):
        payload = {"id": self.id}
        for name in PROFILE_FIELDS:
            payload[name] = self.get_field(name)
        payload["full_name"] = self.get_full_name()
        payload["headshot_url"] = self.headshot_url
        payload["created_at"] = self.created_at.isoformat() if self.created_at else None
        payload["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return payload

    @staticmethod
    def get_all(*, person_type=None, include_inactive=False):
        """Return profiles ordered by last name, optionally filtered by type"""
        query = Profile.query
        if not include_inactive:
            query = query.filter(Profile.is_active.is_(True))
        if person_type:
            query = query.filter(Profile.person_type == person_type)
        return query.order_by(Profile.last_name.asc(), Profile.first_name.asc(), Profile.id.asc()).all()

    @staticmethod
    def find_by_id(profile_id):
        try:
            return db.session.get(Profile, profile_id)
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding profile by id {profile_id}: {str(e)}")
            return None

    @staticmethod
    def find_by_email(email, include_inactive=True):
        """Find a profile by email; pass include_inactive=False to ignore soft-deleted rows"""
        if not email:
            return None
        query = Profile.query.filter(func.lower(Profile.email) == str(email).strip().lower())
        if not include_inactive:
            query = query.filter(Profile.is_active.is_(True))
        try:
            return query.order_by(Profile.is_active.desc(), Profile.id.asc()).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding profile by email {email}: {str(e)}")
            return None
