"""Shared pytest fixtures for the probe tests.

Certificates are built relative to a fixed reference instant so that
"days remaining" values are deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from adcs_probe.adcs.models import IssuedCertificate
from adcs_probe.settings import settings

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

WEB_SERVER_OID = "1.3.6.1.4.1.311.21.8.1111.2222.3333.4444.5555.101"
AUTOENROLL_OID = "1.3.6.1.4.1.311.21.8.1111.2222.3333.4444.5555.102"

DSTEMPLATE_OUTPUT = f"""\
[Version]
Signature = "$Windows NT$"

[User]
    objectClass = "top", "pKICertificateTemplate"
    cn = "User"
    displayName = "User"
    flags = "66106" ; 0x1023a
    msPKI-Enrollment-Flag = "41" ; 0x29

[CorpWebServer]
    cn = "CorpWebServer"
    displayName = "Corp Web Server"
    msPKI-Enrollment-Flag = "0"
    msPKI-Cert-Template-OID = "{WEB_SERVER_OID}" Corp Web Server

[CorpWorkstation]
    cn = "CorpWorkstation"
    displayName = "Corp Workstation"
    msPKI-Enrollment-Flag = "32" ; 0x20
    msPKI-Cert-Template-OID = "{AUTOENROLL_OID}" Corp Workstation
"""


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_cert() -> Callable[..., IssuedCertificate]:
    """Return a factory for certificates expiring *days* after ``NOW``."""

    def _make(
        days: float,
        common_name: str = "web01.corp.local",
        template: str = WEB_SERVER_OID,
        display_name: str | None = "Corp Web Server",
        request_id: str = "1",
    ) -> IssuedCertificate:
        return IssuedCertificate(
            request_id=request_id,
            common_name=common_name,
            not_after=NOW + timedelta(days=days),
            template=template,
            template_display_name=display_name,
        )

    return _make


@pytest.fixture()
def certutil_csv() -> Callable[..., str]:
    """Return a builder for certutil CSV exports relative to a base instant."""

    def _build(rows: list[tuple[str, str, float, str]], base: datetime = NOW) -> str:
        lines = ['"Request ID","Issued Common Name","Certificate Expiration Date","Certificate Template"']
        for request_id, cn, days, template in rows:
            expires = (base + timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")
            lines.append(f'"{request_id}","{cn}","{expires}","{template}"')
        return "\n".join(lines) + "\n"

    return _build


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep tests independent of the host's ADCS_PROBE_* environment."""
    monkeypatch.setattr(settings, "CA_CONFIG", "")
    monkeypatch.setattr(settings, "CERTUTIL_PATH", "certutil.exe")
    monkeypatch.setattr(settings, "CERTUTIL_TIMEOUT", 300)
    monkeypatch.setattr(settings, "WINDOW_MONTHS", 12)
    monkeypatch.setattr(settings, "RESOLVE_TEMPLATE_NAMES", True)
    monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")
