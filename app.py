# app.py

import logging
import os
from http import HTTPStatus

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify
from flask_login import LoginManager
from sqlalchemy import event

# Load environment variables from .env file first
load_dotenv()

# Module imports after load_dotenv() - E402 is intentional
from config import DevelopmentConfig, ProductionConfig, TestingConfig  # noqa: E402
from config.validation import validate_and_exit  # noqa: E402
from frs_users.importer import init_importer  # noqa: E402
from frs_users.models import User, db  # noqa: E402
from frs_users.routes import init_routes  # noqa: E402
from frs_users.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)

CONFIG_BY_ENV = {
    "production": ProductionConfig,
    "testing": TestingConfig,
    "development": DevelopmentConfig,
}

app = Flask(__name__)

flask_env = os.environ.get("FLASK_ENV", "development")
if flask_env == "production":
    validate_and_exit(flask_env)
app.config.from_object(CONFIG_BY_ENV.get(flask_env, DevelopmentConfig))

db.init_app(app)
login_manager = LoginManager()
login_manager.init_app(app)
app.extensions["login_manager"] = login_manager

setup_logging(app)


def _sqlite_pragma_hook(foreign_keys: bool):
    """Build a ``connect`` listener enabling WAL and, outside tests, foreign keys."""
    pragmas = ["PRAGMA journal_mode=WAL", "PRAGMA synchronous=NORMAL", "PRAGMA busy_timeout=5000"]
    if foreign_keys:
        pragmas.append("PRAGMA foreign_keys=ON")

    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover - instrumentation
        cursor = dbapi_connection.cursor()
        try:
            for pragma in pragmas:
                cursor.execute(pragma)
        except Exception as exc:
            logger.warning("Failed to apply SQLite PRAGMAs: %s", exc)
        finally:
            cursor.close()

    return _on_connect


with app.app_context():
    if db.engine.url.drivername.startswith("sqlite"):
        event.listen(db.engine, "connect", _sqlite_pragma_hook(foreign_keys=not app.config.get("TESTING", False)))
    # Tests create and drop tables per test themselves
    if not app.config.get("TESTING", False):
        db.create_all()


@login_manager.user_loader
def load_user(user_id):
    """Return the active account for a session, or None"""
    try:
        user = db.session.get(User, int(user_id))
    except (ValueError, TypeError):
        return None
    except Exception as e:
        current_app.logger.error(f"Error loading user {user_id}: {str(e)}")
        return None
    if user is None or not user.is_active:
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required."}), HTTPStatus.UNAUTHORIZED


init_routes(app)
init_importer(app)


def _json_error_handler(status: HTTPStatus, message: str):
    def _handler(error):
        if status == HTTPStatus.INTERNAL_SERVER_ERROR:
            db.session.rollback()
        return jsonify({"error": message}), status

    return _handler


for _status, _message in (
    (HTTPStatus.NOT_FOUND, "Not found."),
    (HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed."),
    (HTTPStatus.REQUEST_ENTITY_TOO_LARGE, "Upload exceeds maximum size limit."),
    (HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error."),
):
    app.register_error_handler(int(_status), _json_error_handler(_status, _message))


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port)
