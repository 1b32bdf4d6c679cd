"""Test the command line interface."""
from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from cli import app
from core.exceptions import TwilioError


runner = CliRunner()

RUN_ARGS = [
    "run",
    "--require-campaign",
    "--max-numbers", "1",
    "--exclusions", "no",
    "--message-volume", "1,000",
    "--opt-in-type", "WEB_FORM",
    "--use-case", "ACCOUNT_NOTIFICATIONS",
    "--opt-in-image-url", "https://example.com/opt-in.png",
]


def test_classify():
    result = runner.invoke(app, ["classify", "+18002345678", "(201) 555-0123", "12345"])

    assert result.exit_code == 0
    assert "+18002345678: toll_free" in result.output
    assert "(201) 555-0123: long_code" in result.output
    assert "12345: short_code" in result.output


def test_info_masks_token():
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    assert "Error Window: 7 days" in result.output
    assert "parent-token" not in result.output
    assert "********oken" in result.output


def test_run_rejects_invalid_url():
    args = RUN_ARGS[:-1] + ["not a url"]

    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert "opt_in_image_url" in result.output


def test_run_rejects_missing_exclusion_file(tmp_path):
    args = list(RUN_ARGS)
    args[args.index("--exclusions") + 1] = str(tmp_path / "missing.csv")

    result = runner.invoke(app, args)

    assert result.exit_code == 1


def test_run_prompts_for_missing_answers(parent_provider):
    answers = "\n".join([
        "n",
        "unlimited",
        "no",
        "1,000",
        "WEB_FORM",
        "ACCOUNT_NOTIFICATIONS",
        "https://example.com/opt-in.png",
    ]) + "\n"

    with patch("cli.get_twilio_provider", return_value=parent_provider):
        result = runner.invoke(app, ["run", "--dry-run"], input=answers)

    assert result.exit_code == 0, result.output
    assert "maximum number of toll-free numbers" in result.output
    assert "Migration summary (DRY RUN)" in result.output


def test_run_dry_run_reports_candidates(parent_provider, sub_provider):
    with patch("cli.get_twilio_provider", return_value=parent_provider):
        result = runner.invoke(app, RUN_ARGS + ["--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Would migrate: 1" in result.output
    sub_provider.remove_number.assert_not_called()


def test_run_json_report(parent_provider):
    with patch("cli.get_twilio_provider", return_value=parent_provider):
        result = runner.invoke(app, RUN_ARGS + ["--dry-run", "--json"])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    report = json.loads("\n".join(lines[lines.index("{"):]))
    assert report["dry_run"] is True
    assert report["dry_run_candidates"] == 1


def test_run_fails_when_subaccounts_unavailable(parent_provider):
    parent_provider.list_subaccounts.side_effect = TwilioError("Authenticate", code=20003, status=401)

    with patch("cli.get_twilio_provider", return_value=parent_provider):
        result = runner.invoke(app, RUN_ARGS + ["--dry-run"])

    assert result.exit_code == 1
    assert "Error fetching subaccounts" in result.output


def test_run_requires_credentials(parent_provider):
    parent_provider.is_configured.return_value = False

    with patch("cli.get_twilio_provider", return_value=parent_provider):
        result = runner.invoke(app, RUN_ARGS + ["--dry-run"])

    assert result.exit_code == 1
    parent_provider.list_subaccounts.assert_not_called()
