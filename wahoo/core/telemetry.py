"""OpenTelemetry telemetry setup for distributed tracing."""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from wahoo import __version__
from wahoo.config import Settings

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def setup_telemetry(app: "FastAPI", settings: Settings) -> bool:
    """Configure OpenTelemetry tracing for the FastAPI application.

    This sets up:
    - TracerProvider with service name resource
    - OTLP exporter to send traces to a collector
    - FastAPI instrumentation for automatic request tracing

    Returns True when tracing was enabled.
    """
    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        logger.info("Telemetry disabled: OTEL_EXPORTER_OTLP_ENDPOINT not configured")
        return False

    try:
        resource = Resource.create(
            {
                "service.name": settings.OTEL_SERVICE_NAME,
                "service.version": __version__,
                "deployment.environment": "development" if settings.DEBUG else "production",
            }
        )

        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)

        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True,
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        # /api/status is polled every few seconds by the UI
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=tracer_provider,
            excluded_urls="health,api/status",
        )

        logger.info(f"Telemetry enabled: exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
        return True

    except Exception as e:
        logger.warning(f"Failed to setup telemetry: {e}")
        return False


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for manual span creation.

    Without a configured provider this returns a no-op tracer, so callers
    can always open spans.
    """
    return trace.get_tracer(name)


def instrument_httpx() -> None:
    """Instrument httpx for outbound HTTP tracing."""
    try:
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

        HTTPXClientInstrumentor().instrument()
        logger.info("httpx instrumentation enabled")
    except ImportError:
        logger.debug("httpx instrumentation not available")


def instrument_sqlalchemy(engine: "AsyncEngine") -> None:
    """Instrument the store engine for database tracing."""
    try:
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
        logger.info("SQLAlchemy instrumentation enabled")
    except ImportError:
        logger.debug("SQLAlchemy instrumentation not available")


def setup_all_instrumentation(
    app: "FastAPI", settings: Settings, engine: "AsyncEngine | None" = None
) -> None:
    """Setup telemetry with all available instrumentations."""
    if not setup_telemetry(app, settings):
        return

    instrument_httpx()
    if engine is not None:
        instrument_sqlalchemy(engine)
