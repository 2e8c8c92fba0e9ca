"""
ADCS Expiry Probe - Issued Certificate Enumeration

Executes certutil against a Certificate Authority to enumerate issued
certificates whose expiration date falls inside a window, and parses the
CSV output into ``IssuedCertificate`` records sorted by expiration.  The
same parser reads a previously exported certutil CSV file, which lets the
probe run on hosts without RPC access to the CA.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import subprocess
from collections.abc import Iterator, Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path

from adcs_probe.adcs.models import IssuedCertificate
from adcs_probe.errors import EnumerationError
from adcs_probe.settings import settings

logger = logging.getLogger("adcs_probe.adcs.issued")

# -------------------------------------------------------------------------
# certutil CSV column mapping
# -------------------------------------------------------------------------

# Fields requested with -out, in order.  certutil localises the header
# row, so columns are mapped by position rather than by name.
_CERTUTIL_FIELDS = "RequestID,CommonName,NotAfter,CertificateTemplate"

_CERTUTIL_COLUMNS = [
    "request_id",
    "common_name",
    "not_after",
    "template",
]

# Disposition 20 = issued
_DISPOSITION_ISSUED = 20

_OID_RE = re.compile(r"^\d+(\.\d+)+$")

# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------


def run_certutil_view(ca_config: str, start: datetime, end: datetime) -> str:
    """
    Run ``certutil -view`` against *ca_config* for certificates expiring
    between *start* and *end*.

    Args:
        ca_config: CA config string, e.g. ``ca01.corp.local\\Corp Issuing CA``.
        start: Lower bound of the NotAfter window.
        end: Upper bound of the NotAfter window.

    Returns:
        Raw CSV text from certutil stdout.

    Raises:
        EnumerationError: certutil is missing, timed out or exited with a
            non-zero return code.
    """
    restrict = (
        f"NotAfter>={_format_restrict_date(start)},"
        f"NotAfter<={_format_restrict_date(_ceil_minute(end))},"
        f"Disposition={_DISPOSITION_ISSUED}"
    )
    cmd = [
        settings.CERTUTIL_PATH,
        "-config",
        ca_config,
        "-view",
        "-restrict",
        restrict,
        "-out",
        _CERTUTIL_FIELDS,
        "csv",
    ]

    logger.info("Running: %s", " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=settings.CERTUTIL_TIMEOUT,
        )
    except FileNotFoundError as exc:
        raise EnumerationError(
            f"certutil not found at {settings.CERTUTIL_PATH!r}"
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise EnumerationError(
            f"certutil timed out after {settings.CERTUTIL_TIMEOUT}s "
            f"querying {ca_config}"
        ) from exc

    if result.returncode != 0:
        stderr = (result.stderr or result.stdout).strip()
        logger.warning("certutil exited %d: %s", result.returncode, stderr)
        raise EnumerationError(
            f"certutil failed for {ca_config} (exit {result.returncode}): {stderr}"
        )

    logger.info("certutil produced %d bytes of output", len(result.stdout))
    return result.stdout


def read_certutil_export(path: str | Path) -> str:
    """Read a ``certutil -view ... csv`` export from disk."""
    try:
        # certutil writes a BOM when redirected by PowerShell
        return Path(path).read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise EnumerationError(f"Cannot read certificate export {path}: {exc}") from exc


def parse_certutil_view(csv_text: str) -> list[IssuedCertificate]:
    """
    Parse CSV text produced by ``certutil -view -out <fields> csv``.

    certutil emits a header row followed by data rows.  Rows that are too
    short or whose expiration date cannot be parsed are skipped with a
    warning.  ``EMPTY`` cells (certutil's marker for a missing value) are
    treated as blank.

    Args:
        csv_text: Raw CSV text from certutil stdout or an export file.

    Returns:
        List of certificates in the order certutil reported them.
    """
    records: list[IssuedCertificate] = []
    reader = csv.reader(io.StringIO(csv_text))

    # The first row is the header; we skip it and use our own mapping.
    header = next(reader, None)
    if header is None:
        return records

    for row_num, row in enumerate(reader, start=2):
        if not row or len(row) < len(_CERTUTIL_COLUMNS):
            continue

        raw: dict[str, str] = {}
        for idx, col_name in enumerate(_CERTUTIL_COLUMNS):
            value = row[idx].strip().strip('"')
            raw[col_name] = "" if value == "EMPTY" else value

        not_after = parse_certutil_date(raw["not_after"])
        if not_after is None:
            logger.warning(
                "Skipping row %d: unparsable expiration date %r",
                row_num,
                raw["not_after"],
            )
            continue

        template, display_hint = _split_template_column(raw["template"])
        records.append(
            IssuedCertificate(
                request_id=raw["request_id"],
                common_name=raw["common_name"],
                not_after=not_after,
                template=template,
                template_display_name=display_hint,
            )
        )

    logger.debug("Parsed %d issued certificates", len(records))
    return records


def enumerate_issued(
    start: datetime,
    end: datetime,
    ca_config: str | None = None,
    csv_path: str | Path | None = None,
    display_names: Mapping[str, str] | None = None,
) -> Iterator[IssuedCertificate]:
    """
    Yield issued certificates expiring in ``[start, end]``, earliest first.

    Exactly one source is used: the export file at *csv_path* when given,
    otherwise a live ``certutil -view`` against *ca_config*.  When
    *display_names* maps a template OID or name to its display name, the
    yielded records carry that name.

    Raises:
        EnumerationError: the source could not be read.
    """
    if csv_path is not None:
        csv_text = read_certutil_export(csv_path)
    elif ca_config:
        csv_text = run_certutil_view(ca_config, start, end)
    else:
        raise EnumerationError("No CA config or certificate export given")

    in_window = [
        cert
        for cert in parse_certutil_view(csv_text)
        if start <= cert.not_after <= end
    ]
    in_window.sort(key=lambda cert: cert.not_after)
    logger.info(
        "%d issued certificates expire between %s and %s",
        len(in_window),
        start.isoformat(),
        end.isoformat(),
    )

    for cert in in_window:
        if display_names and cert.template in display_names:
            yield cert.model_copy(
                update={"template_display_name": display_names[cert.template]}
            )
        else:
            yield cert


def parse_certutil_date(date_str: str) -> datetime | None:
    """
    Parse a date string from certutil output into an aware UTC datetime.

    certutil uses the system locale for dates and reports local time.
    Common formats:
      - ``1/15/2025 3:30 PM``  (US locale)
      - ``2025-01-15 15:30``   (ISO-ish)

    ISO-8601 strings with an explicit offset or ``Z`` suffix are honoured
    as-is.  Returns ``None`` if parsing fails.
    """
    date_str = date_str.strip()
    if not date_str:
        return None

    try:
        dt = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        dt = None

    if dt is None:
        formats = [
            "%m/%d/%Y %I:%M %p",
            "%m/%d/%Y %I:%M:%S %p",
            "%Y-%m-%d %H:%M:%S",
            "%Y-%m-%d %H:%M",
            "%d/%m/%Y %H:%M:%S",
            "%d/%m/%Y %H:%M",
            "%d.%m.%Y %H:%M:%S",
            "%d.%m.%Y %H:%M",
        ]
        for fmt in formats:
            try:
                dt = datetime.strptime(date_str, fmt)
                break
            except ValueError:
                continue
        else:
            return None

    # Naive values are CA-local time
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc)


# -------------------------------------------------------------------------
# Private helpers
# -------------------------------------------------------------------------


def _format_restrict_date(value: datetime) -> str:
    """Render *value* in local time the way certutil -restrict expects."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%m/%d/%Y %H:%M")


def _ceil_minute(value: datetime) -> datetime:
    """Round *value* up to a whole minute, the -restrict resolution."""
    if value.second or value.microsecond:
        return value.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return value


def _split_template_column(value: str) -> tuple[str, str | None]:
    """
    Split a CertificateTemplate cell into ``(identifier, display_hint)``.

    Version 2+ templates are reported as ``<OID> <name>`` on some certutil
    builds and as a bare OID on others; version 1 templates are reported
    by name only.
    """
    head, _, rest = value.partition(" ")
    if _OID_RE.match(head):
        return head, (rest.strip() or None)
    return value, None
