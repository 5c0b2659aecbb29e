from __future__ import annotations

import json

from frs_users.importer.pipeline.export import UTF8_BOM
from frs_users.models import Profile, User, db


def test_profiles_import_cli_creates_profiles(runner, write_csv):
    csv_path = write_csv(
        "First Name,Last Name,Email,NMLS",
        "Jane,Doe,jane@x.com,111",
        "John,Smith,john@x.com,222",
    )

    result = runner.invoke(args=["profiles", "import", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Created: 2, Updated: 0, Skipped: 0, Errors: 0" in result.output
    assert "Created: Jane Doe" in result.output
    assert Profile.query.count() == 2
    assert User.query.filter_by(email="jane@x.com").one().role == "loan_officer"


def test_profiles_import_cli_preview_writes_nothing(runner, write_csv, profile_factory):
    profile_factory(email="jane@x.com", first_name="Jane", last_name="Doe")
    csv_path = write_csv(
        "email,first_name,last_name",
        "jane@x.com,Jane,Doe",
        "new@x.com,New,Person",
    )

    result = runner.invoke(args=["profiles", "import", str(csv_path), "--preview", "--summary-json"])

    assert result.exit_code == 0, result.output
    assert "new=1 update=1 skip=0" in result.output
    assert "[UPDATE] Jane Doe (Match: jane doe (email))" in result.output
    payload = json.loads(result.output[result.output.index("{"):])
    assert payload["summary"] == {"new": 1, "update": 1, "skip": 0}
    assert Profile.query.count() == 1


def test_profiles_import_cli_summary_json(runner, write_csv):
    csv_path = write_csv("email,first_name", "jane@x.com,Jane")

    result = runner.invoke(
        args=[
            "profiles",
            "import",
            str(csv_path),
            "--import-mode",
            "create_only",
            "--default-role",
            "staff",
            "--summary-json",
        ]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output[result.output.index("{"):])
    assert payload["created"] == 1
    assert payload["errors"] == 0
    assert User.query.filter_by(email="jane@x.com").one().role == "staff"


def test_profiles_import_cli_rejects_unknown_match_mode(runner, write_csv):
    csv_path = write_csv("email", "jane@x.com")

    result = runner.invoke(args=["profiles", "import", str(csv_path), "--match-mode", "telepathy"])

    assert result.exit_code != 0
    assert "telepathy" in result.output


def test_profiles_import_cli_reports_bad_file(runner, write_csv):
    csv_path = write_csv("", name="empty.csv")

    result = runner.invoke(args=["profiles", "import", str(csv_path)])

    assert result.exit_code != 0
    assert "Import of" in result.output


def test_profiles_import_cli_refuses_when_disabled(app, runner, write_csv):
    app.config["IMPORTER_ENABLED"] = False
    csv_path = write_csv("email", "jane@x.com")

    result = runner.invoke(args=["profiles", "import", str(csv_path)])

    assert result.exit_code != 0
    assert "Importer is disabled" in result.output
    assert Profile.query.count() == 0


def test_profiles_export_cli_writes_file(runner, tmp_path, profile_factory):
    profile_factory(email="jane@x.com", service_areas=["TX", "OK"])
    output = tmp_path / "out.csv"

    result = runner.invoke(args=["profiles", "export", "--output", str(output), "--no-include-social"])

    assert result.exit_code == 0, result.output
    assert "Exported 1 profile(s)" in result.output
    text = output.read_text(encoding="utf-8")
    assert text.startswith(UTF8_BOM)
    assert "facebook_url" not in text
    assert "TX|OK" in text


def test_profiles_export_cli_to_stdout(runner, profile_factory):
    profile_factory(email="jane@x.com")

    result = runner.invoke(args=["profiles", "export", "--type", "loan_officer"])

    assert result.exit_code == 0, result.output
    assert "jane@x.com" in result.output


def test_profiles_merge_cli(runner, profile_factory):
    first = profile_factory(email="a@x.com", first_name="Ann", nmls="111")
    second = profile_factory(email="b@x.com", first_name="Anne", job_title="Manager")
    first_id, second_id = first.id, second.id

    result = runner.invoke(
        args=[
            "profiles",
            "merge",
            str(first_id),
            str(second_id),
            "--field",
            f"email={first_id}",
            "--field",
            f"first_name={second_id}",
            "--field",
            f"job_title={second_id}",
        ]
    )

    assert result.exit_code == 0, result.output
    assert f"Merged profiles {first_id}, {second_id} into profile" in result.output
    merged = Profile.query.one()
    assert (merged.email, merged.first_name, merged.job_title, merged.nmls) == ("a@x.com", "Anne", "Manager", None)


def test_profiles_merge_cli_rejects_bad_selection(runner, profile_factory):
    first = profile_factory()

    result = runner.invoke(args=["profiles", "merge", str(first.id), "--field", "email"])

    assert result.exit_code != 0
    assert "name=profile_id" in result.output
