"""
ADCS Expiry Probe - Certificate Template Metadata

Reads certificate template definitions from Active Directory with
``certutil -dstemplate`` and derives the two lookups the probe needs:
template display names by OID / name, and the OIDs of templates that
allow autoenrollment.
"""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Iterable

from adcs_probe.adcs.models import CertificateTemplate
from adcs_probe.errors import EnumerationError
from adcs_probe.settings import settings

logger = logging.getLogger("adcs_probe.adcs.templates")

_SECTION_RE = re.compile(r"^\[(?P<name>[^\]]+)\]\s*$")
_QUOTED_RE = re.compile(r'"([^"]*)"')

# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------


def run_certutil_dstemplate() -> str:
    """
    Run ``certutil -dstemplate`` and return its INF-style output.

    Raises:
        EnumerationError: certutil is missing, timed out or failed.
    """
    cmd = [settings.CERTUTIL_PATH, "-dstemplate"]
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
            f"certutil -dstemplate timed out after {settings.CERTUTIL_TIMEOUT}s"
        ) from exc

    if result.returncode != 0:
        stderr = (result.stderr or result.stdout).strip()
        logger.warning("certutil -dstemplate exited %d: %s", result.returncode, stderr)
        raise EnumerationError(
            f"certutil -dstemplate failed (exit {result.returncode}): {stderr}"
        )

    return result.stdout


def parse_dstemplate(text: str) -> list[CertificateTemplate]:
    """
    Parse ``certutil -dstemplate`` output into templates.

    The output is one INF section per template::

        [WebServer]
            cn = "WebServer"
            displayName = "Web Server"
            msPKI-Enrollment-Flag = "0"
            msPKI-Cert-Template-OID = "1.3.6.1.4.1.311.21.8.1.2.3" Web Server

    The ``[Version]`` section and sections without a ``cn`` are ignored.
    """
    sections: list[dict[str, str]] = []
    attrs: dict[str, str] | None = None

    for line in text.splitlines():
        stripped = line.strip()
        if _SECTION_RE.match(stripped):
            attrs = {}
            sections.append(attrs)
            continue

        if attrs is None or "=" not in stripped:
            continue

        key, _, value = stripped.partition("=")
        attrs[key.strip().lower()] = _attribute_value(value)

    templates = [
        template
        for template in (_build_template(section) for section in sections)
        if template is not None
    ]
    logger.debug("Parsed %d certificate templates", len(templates))
    return templates


def list_templates() -> list[CertificateTemplate]:
    """Return all certificate templates published in the forest."""
    return parse_dstemplate(run_certutil_dstemplate())


def display_name_lookup(templates: Iterable[CertificateTemplate]) -> dict[str, str]:
    """
    Map template OIDs and names to display names.

    Issued certificates reference version 2+ templates by OID and
    version 1 templates by name, so both keys are registered.
    """
    lookup: dict[str, str] = {}
    for template in templates:
        if not template.display_name:
            continue
        lookup[template.name] = template.display_name
        if template.oid:
            lookup[template.oid] = template.display_name
    return lookup


def autoenrollment_template_oids(templates: Iterable[CertificateTemplate]) -> frozenset[str]:
    """Return the OIDs of templates with autoenrollment enabled."""
    oids = frozenset(
        template.oid
        for template in templates
        if template.autoenrollment_enabled and template.oid
    )
    logger.info("%d templates allow autoenrollment", len(oids))
    return oids


# -------------------------------------------------------------------------
# Private helpers
# -------------------------------------------------------------------------


def _attribute_value(raw: str) -> str:
    """Return the first quoted value of an INF line, else the bare token."""
    match = _QUOTED_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.split(";", 1)[0].strip()


def _parse_flag(value: str) -> int:
    try:
        return int(value, 0)
    except ValueError:
        return 0


def _build_template(attrs: dict[str, str]) -> CertificateTemplate | None:
    name = attrs.get("cn")
    if not name:
        return None
    return CertificateTemplate(
        name=name,
        display_name=attrs.get("displayname", ""),
        oid=attrs.get("mspki-cert-template-oid") or None,
        enrollment_flag=_parse_flag(attrs.get("mspki-enrollment-flag", "0")),
    )
