"""
ADCS Expiry Probe - FastAPI Application

A small HTTP service for PRTG "REST Custom" sensors.  It runs on a host
that can reach the Certificate Authority and answers each poll with a
fresh certutil query.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from adcs_probe import __version__
from adcs_probe.routes import router
from adcs_probe.settings import settings
from adcs_probe.util.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("adcs_probe")
    logger.info("ADCS expiry probe service starting up")
    logger.info("Default CA: %s", settings.CA_CONFIG or "(not configured)")

    yield

    logger.info("ADCS expiry probe service shutting down")


app = FastAPI(
    title="ADCS Expiry Probe",
    description=(
        "Reports certificates about to expire on an ADCS Certification "
        "Authority in the PRTG custom sensor format."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adcs-expiry-probe",
        "version": __version__,
        "ca_config": settings.CA_CONFIG or None,
    }


def run() -> None:
    """Entry point for the ``adcs-probe-server`` console script."""
    uvicorn.run(
        "adcs_probe.main:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
