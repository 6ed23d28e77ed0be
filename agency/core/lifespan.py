"""Startup and shutdown wiring for the FastAPI app."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from agency.core.config import Settings, get_settings
from agency.infrastructure.memory import InMemoryStore
from agency.shared.telemetry.logging import setup_logging
from agency.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


def _start_tracing(app: FastAPI, settings: Settings) -> None:
    telemetry = TelemetryConfig(
        service_name=settings.app_name,
        service_version=settings.app_version,
        environment=settings.telemetry_environment,
        store_backend=settings.database_backend,
    )
    telemetry.setup_telemetry(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    )
    engine = None
    if settings.database_backend == "postgres":
        from agency.infrastructure.persistence.database import get_engine

        engine = get_engine()
    telemetry.instrument(app, engine)
    set_telemetry(telemetry)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Logging first, then the store, then tracing. Teardown runs in reverse."""
    settings = get_settings()
    setup_logging()

    # Tests inject their own store before the app starts.
    if settings.database_backend == "memory" and getattr(app.state, "store", None) is None:
        app.state.store = InMemoryStore()
    logger.info("Starting %s %s (backend=%s)", settings.app_name, settings.app_version, settings.database_backend)

    if settings.telemetry_enabled:
        _start_tracing(app, settings)

    yield

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)

    from agency.infrastructure.persistence import database

    if getattr(database, "engine", None) is not None:
        await database.dispose_engine()
        logger.info("Database engine disposed")
