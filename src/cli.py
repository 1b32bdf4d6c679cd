#!/usr/bin/env python3
"""Command Line Interface for the toll-free migration tool.

Usage:
    tfn-migrate run                 # Interactive migration (dry-run by default)
    tfn-migrate run --live ...      # Actually swap numbers
    tfn-migrate classify +18002345678 +14155551234
    tfn-migrate info                # Show configuration
"""
from __future__ import annotations

import json
from typing import List, Optional

import typer

from compliance.verification import MessageVolume, OptInType, UseCaseCategory
from core.config import get_settings
from core.exceptions import ConfigurationError, TwilioError
from core.logging_config import get_logger, setup_logging
from core.utils import mask_secret
from migration.exclusions import load_exclusions
from migration.options import UNLIMITED, build_options
from migration.orchestrator import MigrationReport, MigrationService
from telephony.phone import classify_number, normalize_phone_e164
from telephony.twilio_client import get_twilio_provider

LOGGER = get_logger(__name__)
SETTINGS = get_settings()

app = typer.Typer(help="Migrate failing long codes to toll-free numbers")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Toll-free migration for Twilio sub-accounts."""
    log_level = "DEBUG" if verbose else SETTINGS.log_level
    setup_logging(
        level=log_level,
        log_file=SETTINGS.log_file,
        json_format=SETTINGS.log_format == "json",
        secrets=[SETTINGS.twilio_auth_token],
    )


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def _prompt_missing(
    only_pending: Optional[bool],
    max_numbers: Optional[str],
    exclusions: Optional[str],
    message_volume: Optional[str],
    opt_in_type: Optional[str],
    use_case: Optional[str],
    opt_in_image_url: Optional[str],
) -> dict:
    """Ask the operator for every answer not given on the command line."""
    if only_pending is None:
        only_pending = typer.confirm(
            "Do you want to swap numbers on all accounts without a successful campaign "
            "(TFN verification on messaging services with failed campaigns or no campaign "
            "will NOT be sent, you will need to verify those numbers outside of this tool)?"
        )
    if max_numbers is None:
        max_numbers = typer.prompt(
            "What is the maximum number of toll-free numbers you are willing to purchase? "
            f'(Enter "{UNLIMITED}" for no limit)'
        )
    if exclusions is None:
        exclusions = typer.prompt(
            "Would you like to include an exclusion .csv for account SIDs? "
            '(Enter path to CSV or "no" for none)',
            default="no",
        )
    if message_volume is None:
        message_volume = typer.prompt(
            f"Enter your Monthly Expected Message Volume for Toll Free Verification "
            f"({_choices(MessageVolume)})"
        )
    if opt_in_type is None:
        opt_in_type = typer.prompt(f"Select your OptInType ({_choices(OptInType)})")
    if use_case is None:
        use_case = typer.prompt(f"Select your UseCaseCategory ({_choices(UseCaseCategory)})")
    if opt_in_image_url is None:
        opt_in_image_url = typer.prompt("Please enter your OptInImageUrls (must be a valid URL)")

    return {
        "only_pending": only_pending,
        "max_toll_free_numbers": max_numbers,
        "exclusion_file": None if exclusions.strip().lower() in {"", "no"} else exclusions.strip(),
        "message_volume": message_volume,
        "opt_in_type": opt_in_type,
        "use_case_category": use_case,
        "opt_in_image_url": opt_in_image_url,
    }


def _print_summary(report: MigrationReport) -> None:
    mode = "DRY RUN" if report.dry_run else "LIVE"
    typer.echo(f"Migration summary ({mode}):")
    typer.echo(
        f"  Sub-accounts: processed={report.subaccounts_processed}, "
        f"skipped={report.subaccounts_skipped}, failed={report.subaccounts_failed}"
    )
    typer.echo(
        f"  Services: evaluated={report.services_evaluated}, skipped={report.services_skipped}, "
        f"halted={report.services_halted}, failed={report.services_failed}"
    )
    typer.echo(
        f"  Numbers: checked={report.numbers_checked}, left={report.numbers_left_in_place}, "
        f"migrated={report.numbers_migrated} (reused={report.numbers_reused}, "
        f"purchased={report.numbers_purchased}, unreplaced={report.numbers_unreplaced})"
    )
    if report.dry_run:
        typer.echo(f"  Would migrate: {report.dry_run_candidates}")
    typer.echo(
        f"  Verifications: submitted={report.verifications_submitted}, "
        f"failed={report.verifications_failed}"
    )
    for error in report.errors:
        typer.secho(f"  ✗ {error}", fg="yellow")


@app.command("run")
def run_migration(
    only_pending: Optional[bool] = typer.Option(
        None,
        "--only-pending/--require-campaign",
        help="Also migrate services that have no campaign at all",
    ),
    max_numbers: Optional[str] = typer.Option(
        None, "--max-numbers", help=f'Purchase cap, or "{UNLIMITED}"'
    ),
    exclusions: Optional[str] = typer.Option(
        None, "--exclusions", help='Exclusion CSV path, or "no"'
    ),
    message_volume: Optional[str] = typer.Option(None, "--message-volume"),
    opt_in_type: Optional[str] = typer.Option(None, "--opt-in-type"),
    use_case: Optional[str] = typer.Option(None, "--use-case"),
    opt_in_image_url: Optional[str] = typer.Option(None, "--opt-in-image-url"),
    dry_run: Optional[bool] = typer.Option(
        None, "--dry-run/--live", help="Override DRY_RUN from the environment"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
) -> None:
    """Replace long codes with recent delivery errors by toll-free numbers."""
    answers = _prompt_missing(
        only_pending, max_numbers, exclusions, message_volume, opt_in_type, use_case, opt_in_image_url
    )

    try:
        options = build_options(**answers)
        excluded = load_exclusions(options.exclusion_file)
    except ConfigurationError as e:
        typer.secho(f"✗ {e}", fg="red")
        raise typer.Exit(1)

    provider = get_twilio_provider()
    if not provider.is_configured():
        typer.secho("✗ TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN must be set", fg="red")
        raise typer.Exit(1)

    effective_dry_run = SETTINGS.dry_run if dry_run is None else dry_run
    if not effective_dry_run:
        typer.secho("!!! LIVE RUN !!! Numbers will be removed, purchased and assigned", fg="yellow")

    service = MigrationService(
        provider,
        options,
        exclusions=excluded,
        dry_run=effective_dry_run,
    )
    try:
        report = service.run()
    except TwilioError as e:
        typer.secho(f"✗ Error fetching subaccounts: {e}", fg="red")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        _print_summary(report)


@app.command("classify")
def classify(
    numbers: List[str] = typer.Argument(..., help="Phone numbers to classify"),
) -> None:
    """Show how each number would be treated by the migration."""
    for raw in numbers:
        normalized = normalize_phone_e164(raw) or raw
        typer.echo(f"{raw}: {classify_number(normalized).value}")


@app.command("info")
def show_info() -> None:
    """Show application configuration info."""
    typer.echo("Toll-Free Migration Configuration:")
    typer.echo(f"  Environment: {SETTINGS.environment}")
    typer.echo(f"  Dry Run: {SETTINGS.dry_run}")
    typer.echo(f"  Log Level: {SETTINGS.log_level}")
    typer.echo(f"  Account SID: {SETTINGS.twilio_account_sid or '<not set>'}")
    typer.echo(f"  Auth Token: {mask_secret(SETTINGS.twilio_auth_token)}")
    typer.echo(f"  Request Timeout: {SETTINGS.twilio_timeout_seconds}s")
    typer.echo(f"  Error Window: {SETTINGS.error_window_days} days")
    typer.echo(f"  Error Codes: {', '.join(str(c) for c in SETTINGS.delivery_error_codes)}")
    typer.echo(f"  Toll-Free Country: {SETTINGS.toll_free_country}")


if __name__ == "__main__":
    app()
