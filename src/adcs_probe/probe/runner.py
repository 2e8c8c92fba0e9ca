"""
ADCS Expiry Probe - Runner

Orchestrates one probe run:
  1. Resolve the expiration window
  2. Look up certificate templates (display names, autoenrollment)
  3. Enumerate issued certificates from the CA or an export file
  4. Select the requested record and build the PRTG payload
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from adcs_probe.adcs.issued import enumerate_issued
from adcs_probe.adcs.models import CertificateTemplate
from adcs_probe.adcs.templates import (
    autoenrollment_template_oids,
    display_name_lookup,
    list_templates,
)
from adcs_probe.errors import EnumerationError
from adcs_probe.probe.parameters import ProbeParameters
from adcs_probe.probe.prtg import PrtgPayload, SensorRecord, sensor_payload
from adcs_probe.probe.selector import CertificateExpirySelector
from adcs_probe.settings import settings

logger = logging.getLogger("adcs_probe.probe.runner")


def run_probe(params: ProbeParameters, now: datetime | None = None) -> SensorRecord:
    """
    Run the probe and return the selected sensor record.

    Args:
        params: Validated invocation parameters.
        now: Reference instant for every "days remaining" value.  Taken
            once per run; defaults to the current UTC time.

    Raises:
        ConfigurationError: the expiration window is invalid.
        EnumerationError: the CA or the template directory could not be
            queried.
    """
    now = now or datetime.now(timezone.utc)
    start, end = params.window(now, settings.WINDOW_MONTHS)

    templates = _load_templates(params)
    autoenroll_oids = (
        autoenrollment_template_oids(templates) if params.exclude_autoenroll else frozenset()
    )

    certificates = enumerate_issued(
        start,
        end,
        ca_config=params.ca_config,
        csv_path=params.csv_path,
        display_names=display_name_lookup(templates),
    )

    selector = CertificateExpirySelector(
        warning_days=params.warning_days,
        error_days=params.error_days,
        exclude_names=params.exclude_templates,
        autoenroll_oids=autoenroll_oids,
        max_results=params.max_results,
    )
    record = selector.select(certificates, now, params.return_index)
    logger.info("Selected: %s", record.text)
    return record


def probe_payload(params: ProbeParameters, now: datetime | None = None) -> PrtgPayload:
    """Run the probe and wrap the selected record for PRTG."""
    return sensor_payload(run_probe(params, now))


# -------------------------------------------------------------------------
# Private helpers
# -------------------------------------------------------------------------


def _load_templates(params: ProbeParameters) -> list[CertificateTemplate]:
    """
    Fetch template metadata when the run needs it.

    Autoenrollment exclusion cannot work without it, so a lookup failure
    is fatal then.  Display names alone are cosmetic: the records fall
    back to template OIDs.
    """
    if params.exclude_autoenroll:
        return list_templates()

    if not settings.RESOLVE_TEMPLATE_NAMES or params.csv_path is not None:
        return []

    try:
        return list_templates()
    except EnumerationError as exc:
        logger.warning("Template names unavailable, reporting OIDs: %s", exc)
        return []
