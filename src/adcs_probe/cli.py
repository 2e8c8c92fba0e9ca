"""
ADCS Expiry Probe - Command Line

Entry point for PRTG "EXE/Script Advanced" sensors.  Prints exactly one
PRTG JSON object to stdout.  The exit status is non-zero only when the
probe could not run (bad parameters, CA unreachable); an empty result is
reported through the sentinel record with exit status 0.

Usage::

    adcs-probe --ca "ca01.corp.local\\Corp Issuing CA" \\
        --warning-days 30 --error-days 7 --exclude-templates "User;EFS"
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from adcs_probe.errors import ProbeError
from adcs_probe.probe.parameters import build_parameters
from adcs_probe.probe.prtg import error_payload
from adcs_probe.probe.runner import probe_payload
from adcs_probe.settings import settings
from adcs_probe.util.logging import setup_logging

logger = logging.getLogger("adcs_probe.cli")

_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]

app = typer.Typer(
    help="Report ADCS certificates about to expire as a PRTG sensor.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


@app.command()
def probe(
    ca: Optional[str] = typer.Option(
        None,
        "--ca",
        "-c",
        help="CA config string 'host\\CA Name' (defaults to ADCS_PROBE_CA_CONFIG).",
    ),
    start_date: Optional[datetime] = typer.Option(
        None,
        "--start-date",
        formats=_DATE_FORMATS,
        help="Start of the expiration window (default: now).",
    ),
    end_date: Optional[datetime] = typer.Option(
        None,
        "--end-date",
        formats=_DATE_FORMATS,
        help="End of the expiration window (default: now + 12 months).",
    ),
    exclude_templates: str = typer.Option(
        "",
        "--exclude-templates",
        "-x",
        help="Semicolon-separated template names to ignore.",
    ),
    exclude_autoenroll: bool = typer.Option(
        False,
        "--exclude-autoenroll/--include-autoenroll",
        help="Ignore certificates issued from autoenrollment templates.",
    ),
    warning_days: Optional[int] = typer.Option(
        None,
        "--warning-days",
        "-w",
        help="Warning limit in days (required).",
    ),
    error_days: Optional[int] = typer.Option(
        None,
        "--error-days",
        "-e",
        help="Error limit in days (required).",
    ),
    max_results: int = typer.Option(
        10,
        "--max-results",
        "-n",
        help="Maximum number of certificates to consider.",
    ),
    return_index: int = typer.Option(
        0,
        "--return-index",
        "-i",
        help="Zero-based position of the certificate to report.",
    ),
    from_csv: Optional[Path] = typer.Option(
        None,
        "--from-csv",
        dir_okay=False,
        help="Read a 'certutil -view ... csv' export instead of querying the CA.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level for stderr (defaults to ADCS_PROBE_LOG_LEVEL).",
    ),
) -> None:
    """Print the PRTG sensor payload for one expiring certificate."""
    setup_logging(log_level or settings.LOG_LEVEL)

    try:
        params = build_parameters(
            ca_config=ca or settings.CA_CONFIG or None,
            csv_path=from_csv,
            start=start_date,
            end=end_date,
            exclude_templates=exclude_templates,
            exclude_autoenroll=exclude_autoenroll,
            warning_days=warning_days,
            error_days=error_days,
            max_results=max_results,
            return_index=return_index,
        )
        payload = probe_payload(params)
    except ProbeError as exc:
        logger.error("%s", exc)
        typer.echo(error_payload(str(exc)).render())
        raise typer.Exit(code=exc.exit_code)

    typer.echo(payload.render())


def run() -> None:
    """Entry point for the ``adcs-probe`` console script."""
    app()


if __name__ == "__main__":
    run()
