"""Application lifespan: startup and shutdown.

Only wiring of infrastructure here: logging, the Firestore client and the
repositories built on it, telemetry.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from beatcrest.core.config import get_settings
from beatcrest.infrastructure.firebase import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from beatcrest.infrastructure.firebase.repositories import build_repositories
from beatcrest.shared.telemetry import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, Firestore client and repositories (left None
    when no credentials are configured), telemetry (if enabled).
    Shutdown order: telemetry, Firestore HTTP pool.
    """
    settings = get_settings()

    # ---- Startup ----
    setup_logging()

    app.state.repositories = None
    if init_firebase():
        app.state.repositories = build_repositories(
            get_firestore_client(), license_prefix=settings.license_prefix
        )
    elif settings.firestore_configured:
        logger.error("Firestore credentials set but client failed to initialize")
    else:
        logger.warning("Firestore not configured; repositories unavailable")

    if settings.telemetry_enabled:
        from beatcrest.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        telemetry.instrument_logging()
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    from beatcrest.shared.telemetry.telemetry import get_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        logger.info("Telemetry shutdown complete")

    app.state.repositories = None
    await close_firebase()
