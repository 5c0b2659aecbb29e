"""
Persistence collaborators used by the profile importer.

The importer only talks to the :class:`ProfileStore` and
:class:`AccountLinker` protocols; the SQLAlchemy implementations below back
them with the ``profiles`` and ``users`` tables. Store methods flush but do
not commit so that the caller controls the transaction boundary.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from frs_users.models import ACCOUNT_ROLES, PROFILE_FIELDS, Profile, User, db


class AccountCreationError(Exception):
    """Raised when a platform account cannot be created."""


class ProfileStore(Protocol):
    def list_active(self) -> Sequence[Profile]: ...

    def find_by_id(self, profile_id: int) -> Profile | None: ...

    def create(self, fields: Mapping[str, Any]) -> int: ...

    def update(self, profile_id: int, fields: Mapping[str, Any]) -> bool: ...

    def delete(self, profile_id: int) -> bool: ...


class AccountLinker(Protocol):
    def create_account(
        self,
        login: str,
        email: str,
        password: str,
        role: str,
        first_name: str | None,
        last_name: str | None,
    ) -> int: ...

    def account_exists(self, login_or_email: str) -> bool: ...

    def update_account(
        self,
        account_id: int,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        display_name: str | None = None,
    ) -> bool: ...


def _profile_columns(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(fields) - set(PROFILE_FIELDS))
    if unknown:
        raise KeyError(f"Unknown profile field(s): {', '.join(unknown)}")
    return dict(fields)


class SQLAlchemyProfileStore:
    """Profile store backed by the ``profiles`` table."""

    def __init__(self, session: Session | None = None):
        self.session = session or db.session

    def list_active(self) -> list[Profile]:
        return (
            self.session.query(Profile)
            .filter(Profile.is_active.is_(True))
            .order_by(Profile.last_name.asc(), Profile.first_name.asc(), Profile.id.asc())
            .all()
        )

    def find_by_id(self, profile_id: int) -> Profile | None:
        return self.session.get(Profile, profile_id)

    def create(self, fields: Mapping[str, Any]) -> int:
        profile = Profile(**_profile_columns(fields))
        self.session.add(profile)
        self.session.flush()
        return profile.id

    def update(self, profile_id: int, fields: Mapping[str, Any]) -> bool:
        profile = self.find_by_id(profile_id)
        if profile is None:
            return False
        for name, value in _profile_columns(fields).items():
            profile.set_field(name, value)
        self.session.flush()
        return True

    def delete(self, profile_id: int) -> bool:
        profile = self.find_by_id(profile_id)
        if profile is None:
            return False
        self.session.delete(profile)
        self.session.flush()
        return True


class SQLAlchemyAccountLinker:
    """Account linker creating :class:`~frs_users.models.User` rows."""

    def __init__(self, session: Session | None = None):
        self.session = session or db.session

    def account_exists(self, login_or_email: str) -> bool:
        if not login_or_email:
            return False
        token = login_or_email.strip().lower()
        match = (
            self.session.query(User.id)
            .filter(db.or_(func.lower(User.username) == token, func.lower(User.email) == token))
            .first()
        )
        return match is not None

    def create_account(
        self,
        login: str,
        email: str,
        password: str,
        role: str,
        first_name: str | None,
        last_name: str | None,
    ) -> int:
        if role not in ACCOUNT_ROLES:
            raise AccountCreationError(f"Unknown account role '{role}'.")
        if self.account_exists(login):
            raise AccountCreationError(f"Sorry, that username already exists: {login}")
        if self.account_exists(email):
            raise AccountCreationError(f"Sorry, that email address is already used: {email}")

        display_name = " ".join(part for part in (first_name, last_name) if part).strip() or login
        user = User(
            username=login,
            email=email.strip().lower(),
            password_hash=generate_password_hash(password),
            first_name=first_name or None,
            last_name=last_name or None,
            display_name=display_name,
            role=role,
            is_active=True,
        )
        self.session.add(user)
        self.session.flush()
        return user.id

    def update_account(
        self,
        account_id: int,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        display_name: str | None = None,
    ) -> bool:
        user = self.session.get(User, account_id)
        if user is None:
            return False
        changes = {
            "first_name": first_name,
            "last_name": last_name,
            "display_name": display_name,
        }
        changed = False
        for name, value in changes.items():
            if value:
                setattr(user, name, value)
                changed = True
        if changed:
            self.session.flush()
        return changed


__all__ = [
    "AccountCreationError",
    "AccountLinker",
    "ProfileStore",
    "SQLAlchemyAccountLinker",
    "SQLAlchemyProfileStore",
]
