import pytest

from config.base import _coerce_bool, _coerce_float, _coerce_int
from config.validation import validate_environment
from frs_users.utils.importer import get_importer_settings


class TestCoercion:
    """Test environment value coercion helpers"""

    @pytest.mark.parametrize(
        "value,expected",
        [("1", True), ("Yes", True), (" on ", True), ("0", False), ("off", False), ("maybe", None), (None, None)],
    )
    def test_coerce_bool(self, value, expected):
        default = object()
        result = _coerce_bool(value, default)
        assert result is (default if expected is None else expected)

    def test_coerce_int_falls_back_on_bad_values(self):
        assert _coerce_int("12", 25) == 12
        assert _coerce_int("abc", 25) == 25
        assert _coerce_int("0", 25, minimum=1) == 25

    def test_coerce_float_respects_bounds(self):
        assert _coerce_float("0.9", 0.85, minimum=0.0, maximum=2.0) == 0.9
        assert _coerce_float("3", 0.85, minimum=0.0, maximum=2.0) == 0.85
        assert _coerce_float(None, 0.85) == 0.85


class TestEnvironmentValidation:
    """Test production environment validation"""

    @pytest.fixture
    def production_env(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "a-real-secret")
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/frs")
        for name in ("FRS_DEFAULT_ROLE", "FRS_ARRIVE_URL_TEMPLATE", "FRS_MEDIA_URL_PREFIX"):
            monkeypatch.delenv(name, raising=False)
        return monkeypatch

    def test_non_production_is_not_validated(self, monkeypatch):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        assert validate_environment("development") == (True, [])

    def test_valid_production_environment(self, production_env):
        assert validate_environment("production") == (True, [])

    def test_missing_secret_and_database(self, production_env):
        production_env.setenv("SECRET_KEY", "your-secret-key")
        production_env.delenv("DATABASE_URL")

        is_valid, errors = validate_environment("production")

        assert is_valid is False
        assert len(errors) == 2

    @pytest.mark.parametrize(
        "name,value,fragment",
        [
            ("FRS_DEFAULT_ROLE", "emperor", "FRS_DEFAULT_ROLE"),
            ("FRS_ARRIVE_URL_TEMPLATE", "https://apply.example.com/register", "{nmls}"),
            ("FRS_ARRIVE_URL_TEMPLATE", "apply.example.com/{nmls}", "http(s)"),
            ("FRS_MEDIA_URL_PREFIX", "media", "start with '/'"),
        ],
    )
    def test_invalid_importer_settings(self, production_env, name, value, fragment):
        production_env.setenv(name, value)

        is_valid, errors = validate_environment("production")

        assert is_valid is False
        assert fragment in errors[0]


class TestImporterSettings:
    """Test importer settings derived from app config"""

    def test_defaults_from_testing_config(self, app):
        settings = get_importer_settings(app)

        assert settings.enabled is True
        assert settings.max_upload_bytes == 25 * 1024 * 1024
        assert settings.fuzzy_threshold == 0.85
        assert settings.placeholder_domain == "placeholder.frs"
        assert "{nmls}" in settings.arrive_url_template

    def test_bad_values_fall_back(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "IMPORTER_MAX_UPLOAD_MB", "lots")
        monkeypatch.setitem(app.config, "FRS_IMAGE_MAX_MB", None)
        monkeypatch.setitem(app.config, "FRS_ARRIVE_URL_TEMPLATE", "")

        settings = get_importer_settings(app)

        assert settings.max_upload_bytes == 25 * 1024 * 1024
        assert settings.image_max_bytes == 10 * 1024 * 1024
        assert settings.arrive_url_template is None
