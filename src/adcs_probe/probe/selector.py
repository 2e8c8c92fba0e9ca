"""
Certificate expiry selection.

Turns an expiration-ordered stream of issued certificates into sensor
records, skipping excluded templates, and picks the one record a sensor
reports.  Absence of data is never an error here: an empty result or an
out-of-range index yields the sentinel record instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from itertools import islice

from adcs_probe.adcs.models import IssuedCertificate
from adcs_probe.probe.prtg import SensorRecord

logger = logging.getLogger("adcs_probe.probe.selector")

# Value reported when there is nothing to report at the requested index
SENTINEL_DAYS = 99999

_ONE_DAY = timedelta(days=1)


def template_display_name(cert: IssuedCertificate) -> str:
    """Return the template's display name, falling back to its OID."""
    return cert.template_display_name or cert.template


def days_remaining(not_after: datetime, now: datetime) -> int:
    """Whole days from *now* until *not_after*, truncated toward zero."""
    return int((not_after - now) / _ONE_DAY)


def is_excluded(
    cert: IssuedCertificate,
    exclude_names: frozenset[str],
    autoenroll_oids: frozenset[str],
) -> bool:
    """Return True if *cert* was issued from an excluded template.

    A template is excluded when its OID is in *autoenroll_oids*, or when
    its display name is in *exclude_names*.  Names are matched against the
    display name only, never the raw OID.
    """
    if cert.template in autoenroll_oids:
        return True
    name = template_display_name(cert)
    return bool(name) and name in exclude_names


def expiry_record(
    cert: IssuedCertificate,
    now: datetime,
    warning_days: int,
    error_days: int,
) -> SensorRecord:
    days = days_remaining(cert.not_after, now)
    return SensorRecord(
        days_remaining=days,
        warning_days=warning_days,
        error_days=error_days,
        text=f"{cert.common_name} ({template_display_name(cert)}) expires in {days} Days",
    )


def out_of_range_record(return_index: int, available: int) -> SensorRecord:
    return SensorRecord(
        days_remaining=SENTINEL_DAYS,
        warning_days=0,
        error_days=0,
        text=(
            f"ReturnIndex {return_index} out of range - "
            f"Result only contains {available} elements"
        ),
    )


class CertificateExpirySelector:
    """Filter, bound and select expiring certificates for one sensor.

    Parameters
    ----------
    warning_days, error_days:
        Lower warning/error limits, in days, attached to each record.
    exclude_names:
        Template display names whose certificates are ignored.
    autoenroll_oids:
        OIDs of autoenrollment templates to ignore.  Empty unless the
        caller asked for autoenrollment templates to be excluded.
    max_results:
        Upper bound on the number of records built.
    """

    def __init__(
        self,
        warning_days: int,
        error_days: int,
        exclude_names: Iterable[str] = (),
        autoenroll_oids: Iterable[str] = (),
        max_results: int = 10,
    ) -> None:
        self.warning_days = warning_days
        self.error_days = error_days
        self.exclude_names = frozenset(exclude_names)
        self.autoenroll_oids = frozenset(autoenroll_oids)
        self.max_results = max_results

    def records(
        self,
        certificates: Iterable[IssuedCertificate],
        now: datetime,
    ) -> list[SensorRecord]:
        """Build up to ``max_results`` records, in input order.

        *certificates* is consumed lazily and no further than needed to
        fill the result.
        """
        return list(islice(self._iter_records(certificates, now), self.max_results))

    def select(
        self,
        certificates: Iterable[IssuedCertificate],
        now: datetime,
        return_index: int = 0,
    ) -> SensorRecord:
        """Return the record at *return_index*, or the sentinel record."""
        records = self.records(certificates, now)
        if return_index >= len(records):
            logger.info(
                "Return index %d out of range (%d records)",
                return_index,
                len(records),
            )
            return out_of_range_record(return_index, len(records))
        return records[return_index]

    def _iter_records(
        self,
        certificates: Iterable[IssuedCertificate],
        now: datetime,
    ) -> Iterator[SensorRecord]:
        for cert in certificates:
            if is_excluded(cert, self.exclude_names, self.autoenroll_oids):
                logger.debug(
                    "Skipping %s: template %s excluded",
                    cert.common_name,
                    template_display_name(cert),
                )
                continue
            yield expiry_record(cert, now, self.warning_days, self.error_days)
