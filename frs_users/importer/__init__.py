"""
Profile importer package.

Provides conditional blueprint and CLI registration for CSV import and
export while remaining inert when the importer is disabled.
"""

from __future__ import annotations

from flask import Flask

from frs_users.utils.importer import is_importer_enabled

from .cli import profiles_cli
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "IMPORTER_EXTENSION_KEY",
    "init_importer",
]


def _set_cli(app: Flask) -> None:
    # Avoid duplicate registrations when running tests
    command_name = profiles_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)
    app.cli.add_command(profiles_cli)


def init_importer(app: Flask) -> None:
    """
    Mount the importer blueprint and ``flask profiles`` CLI group.

    The CLI group is always registered because ``merge`` does not depend on
    the importer; ``import`` and ``export`` refuse to run while
    ``IMPORTER_ENABLED`` is false, and the HTTP endpoints answer 404.
    Records importer state inside ``app.extensions['importer']``.
    """
    enabled = is_importer_enabled(app)
    app.extensions[IMPORTER_EXTENSION_KEY] = {"enabled": enabled}

    if importer_blueprint.name not in app.blueprints:
        app.register_blueprint(importer_blueprint)
    _set_cli(app)

    if not enabled:
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; import endpoints will return 404.")
        return

    app.logger.info(
        "Profile importer initialized.",
        extra={"importer_enabled": True},
    )
