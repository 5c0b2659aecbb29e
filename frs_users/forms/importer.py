"""
Forms for the profile CSV import endpoints
"""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import BooleanField, SelectField
from wtforms.validators import Optional

from frs_users.importer.pipeline.importer import IMPORT_MODES
from frs_users.importer.pipeline.matching import MATCH_MODES
from frs_users.models import ACCOUNT_ROLES


def format_choice_display(value):
    """Format a choice value for display (e.g., 'update_only' -> 'Update Only')"""
    return value.replace("_", " ").title()


class ImportForm(FlaskForm):
    """Multipart upload form shared by import preview and processing"""

    class Meta:
        # Posted by API clients rather than a rendered page.
        csrf = False

    csv_file = FileField(
        "CSV File",
        validators=[
            FileRequired(message="No file uploaded."),
            FileAllowed(["csv"], message="Unsupported file type; only CSV is allowed."),
        ],
    )
    match_mode = SelectField(
        "Match Mode",
        choices=[(mode, format_choice_display(mode)) for mode in MATCH_MODES],
        default="email",
        validators=[Optional()],
    )
    import_mode = SelectField(
        "Import Mode",
        choices=[(mode, format_choice_display(mode)) for mode in IMPORT_MODES],
        default="update",
        validators=[Optional()],
    )
    default_role = SelectField(
        "Default Role",
        choices=[(role, format_choice_display(role)) for role in ACCOUNT_ROLES],
        default=None,
        validators=[Optional()],
    )
    import_images = BooleanField("Import Headshots", default=False, false_values=("false", "", "0", "off", "no"))

    def first_error(self):
        """Return the first validation message, or None"""
        for errors in self.errors.values():
            if errors:
                return errors[0]
        return None
