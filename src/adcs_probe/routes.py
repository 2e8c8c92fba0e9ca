"""
ADCS Expiry Probe - API Routes

Exposes the probe to PRTG "REST Custom" sensors.  The response body is
the same JSON the command line prints.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, Response

from adcs_probe.errors import ConfigurationError, ProbeError
from adcs_probe.probe.parameters import build_parameters
from adcs_probe.probe.prtg import error_payload
from adcs_probe.probe.runner import probe_payload
from adcs_probe.settings import settings

logger = logging.getLogger("adcs_probe.routes")

router = APIRouter(prefix="/prtg/v1", tags=["prtg"])


# ---------------------------------------------------------------------------
# Route: Expiring certificate sensor
# ---------------------------------------------------------------------------


@router.get("/expiring")
def expiring_certificate(
    warning_days: int = Query(..., ge=0),
    error_days: int = Query(..., ge=0),
    ca: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    exclude_templates: str = "",
    exclude_autoenroll: bool = False,
    max_results: int = Query(10, ge=1),
    return_index: int = Query(0, ge=0),
):
    """
    Return the PRTG payload for one expiring certificate.

    Parameter problems are reported as HTTP 422.  A CA that cannot be
    queried still returns HTTP 200 with a PRTG error payload, since the
    sensor only evaluates the body.
    """
    try:
        params = build_parameters(
            ca_config=ca or settings.CA_CONFIG or None,
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
    except ConfigurationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ProbeError as exc:
        logger.error("Probe failed: %s", exc)
        payload = error_payload(str(exc))

    return Response(content=payload.render(), media_type="application/json")
