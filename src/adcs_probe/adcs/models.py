"""
Typed records for data read from the certification authority.

certutil output is converted into these models as soon as it is parsed
so the selection logic never depends on certutil's column layout.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

# msPKI-Enrollment-Flag bit marking a template as enabled for autoenrollment
CT_FLAG_AUTO_ENROLLMENT = 0x00000020


class IssuedCertificate(BaseModel):
    """An issued certificate as reported by ``certutil -view``.

    ``template`` holds the raw CertificateTemplate column: the template
    OID for version 2+ templates, the template name for version 1.
    """

    model_config = ConfigDict(frozen=True)

    request_id: str = ""
    common_name: str = ""
    not_after: datetime
    template: str = ""
    template_display_name: str | None = None


class CertificateTemplate(BaseModel):
    """A certificate template published in Active Directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str = ""
    oid: str | None = None
    enrollment_flag: int = 0

    @property
    def autoenrollment_enabled(self) -> bool:
        return bool(self.enrollment_flag & CT_FLAG_AUTO_ENROLLMENT)
