# conftest.py

import io
import os

import pytest
from werkzeug.security import generate_password_hash

# Set testing environment BEFORE importing app so app.py picks TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from frs_users.models import Profile, User, db  # noqa: E402


@pytest.fixture(scope="function")
def app(tmp_path):
    """Create and configure a test Flask application with clean tables"""
    upload_dir = tmp_path / "uploads"
    media_dir = tmp_path / "media"
    flask_app.config.update(
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "IMPORTER_ENABLED": True,
            "IMPORTER_UPLOAD_DIR": str(upload_dir),
            "IMPORTER_MAX_UPLOAD_MB": 25,
            "FRS_MEDIA_DIR": str(media_dir),
            "FRS_MEDIA_URL_PREFIX": "/media",
            "FRS_PLACEHOLDER_EMAIL_DOMAIN": "placeholder.frs",
            "FRS_DEFAULT_ROLE": "loan_officer",
            "FUZZY_MATCH_THRESHOLD": 0.85,
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": True,
            "LOG_LEVEL": "DEBUG",
        }
    )

    # Re-initialize logging with updated config to pick up LOG_LEVEL=DEBUG
    from frs_users.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def test_user(app):
    """Persisted account without profile management rights"""
    user = User(
        username="testuser",
        email="test@example.com",
        password_hash=generate_password_hash("testpass123"),
        first_name="Test",
        last_name="User",
        role="loan_officer",
        is_active=True,
        is_super_admin=False,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app):
    """Persisted admin account"""
    user = User(
        username="admin",
        email="admin@example.com",
        password_hash=generate_password_hash("adminpass123"),
        first_name="Admin",
        last_name="User",
        role="admin",
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def _login(client, user):
    with client.session_transaction() as sess:
        sess["_user_id"] = str(user.id)
        sess["_fresh"] = True


@pytest.fixture
def logged_in_admin(client, admin_user):
    """Client with an authenticated admin session"""
    _login(client, admin_user)
    return client, admin_user


@pytest.fixture
def logged_in_user(client, test_user):
    """Client with an authenticated session lacking manage_profiles"""
    _login(client, test_user)
    return client, test_user


@pytest.fixture
def profile_factory(app):
    """Create and commit profiles with sensible defaults"""
    counter = {"value": 0}

    def _factory(**overrides):
        counter["value"] += 1
        index = counter["value"]
        fields = {
            "email": f"profile{index}@example.com",
            "first_name": f"First{index}",
            "last_name": f"Last{index}",
            "person_type": "loan_officer",
            "is_active": True,
        }
        fields.update(overrides)
        profile = Profile(**fields)
        db.session.add(profile)
        db.session.commit()
        return profile

    return _factory


@pytest.fixture
def csv_file():
    """Build an in-memory CSV text handle from rows of cells"""

    def _build(*lines):
        return io.StringIO("\n".join(lines) + "\n")

    return _build
