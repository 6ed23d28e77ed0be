"""OpenTelemetry tracing for the engine.

Spans come from three places: the ``@traced`` use cases, FastAPI request
instrumentation and (Postgres backend only) SQLAlchemy statement
instrumentation. Exporters: console, otlp (gRPC collector) or none.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Probes hit these constantly; tracing them only adds noise.
UNTRACED_URLS = "/api/v1/health,/docs,/openapi.json"


class TelemetryConfig:
    """Tracer provider plus the instrumentations hung off it."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        enabled: bool = True,
        environment: str = "development",
        store_backend: str = "memory",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.enabled = enabled
        self.environment = environment
        self.store_backend = store_backend
        self.tracer_provider: TracerProvider | None = None

    @property
    def active(self) -> bool:
        return self.enabled and self.tracer_provider is not None

    def _exporter(self, exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
        match exporter_type:
            case "none":
                return None
            case "otlp" if otlp_endpoint:
                return OTLPSpanExporter(
                    endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
                )
            case "otlp":
                logger.warning("OTLP exporter selected without an endpoint, using console")
            case "console":
                pass
            case _:
                logger.warning("Unknown exporter type '%s', using console", exporter_type)
        return ConsoleSpanExporter()

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Install the global tracer provider.

        Sampling is parent-based so a trace started by an upstream gateway is
        kept or dropped as a whole. Returns None when disabled or when the SDK
        refuses the configuration; the service keeps running untraced.
        """
        if not self.enabled:
            logger.info("Telemetry disabled")
            return None
        resource = Resource.create(
            {
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.service_version,
                "deployment.environment": self.environment,
                "agency.store_backend": self.store_backend,
            }
        )
        try:
            provider = TracerProvider(
                resource=resource, sampler=ParentBased(TraceIdRatioBased(sample_rate))
            )
            exporter = self._exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Failed to initialize telemetry")
            return None
        self.tracer_provider = provider
        logger.info(
            "Tracing on: service=%s backend=%s exporter=%s sample_rate=%s",
            self.service_name,
            self.store_backend,
            exporter_type,
            sample_rate,
        )
        return provider

    def instrument(self, app: FastAPI, engine: AsyncEngine | None = None) -> None:
        """Attach request, log-record and (when given an engine) SQL instrumentation."""
        if not self.active:
            return
        steps = [
            (
                "fastapi",
                lambda: FastAPIInstrumentor.instrument_app(
                    app, tracer_provider=self.tracer_provider, excluded_urls=UNTRACED_URLS
                ),
            ),
            (
                "logging",
                lambda: LoggingInstrumentor().instrument(
                    tracer_provider=self.tracer_provider, set_logging_format=False
                ),
            ),
        ]
        if engine is not None:
            steps.append(
                (
                    "sqlalchemy",
                    lambda: SQLAlchemyInstrumentor().instrument(
                        engine=engine.sync_engine, tracer_provider=self.tracer_provider
                    ),
                )
            )
        for name, apply in steps:
            try:
                apply()
            except Exception:
                logger.exception("Failed to instrument %s", name)
            else:
                logger.debug("%s instrumentation enabled", name)

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception:
            logger.exception("Error during telemetry shutdown")
        self.tracer_provider = None


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
