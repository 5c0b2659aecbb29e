# frs_users/models/user.py

from flask_login import UserMixin
from werkzeug.security import check_password_hash

from .base import BaseModel, db

# Account roles an import or the API may assign
ACCOUNT_ROLES = ("loan_officer", "realtor_partner", "staff", "admin")


class User(BaseModel, UserMixin):
    """Platform account that a profile may be linked to"""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(255), nullable=True)
    last_name = db.Column(db.String(255), nullable=True)
    display_name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(50), default="loan_officer", nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_super_admin = db.Column(db.Boolean, default=False, nullable=False)

    profiles = db.relationship("Profile", back_populates="user")

    def __repr__(self):
        return f"<User {self.username}>"

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def can_manage_profiles(self):
        return bool(self.is_super_admin or self.role == "admin")
