"""OpenTelemetry tracing for the portfolio ledger.

Only traces are exported. Without :func:`setup_telemetry` the OpenTelemetry
API hands out no-op tracers, so library users pay nothing for the spans
opened by the ledger services.
"""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import LedgerSettings

logger = logging.getLogger(__name__)

TRACER_NAME = "portfolio_ledger"

_tracer_provider: TracerProvider | None = None


def _build_resource(settings: LedgerSettings) -> Resource:
    return Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
            ResourceAttributes.SERVICE_NAMESPACE: "portfolio-ledger",
        }
    )


def _exporter_options(settings: LedgerSettings) -> dict[str, Any]:
    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return options


def setup_telemetry(settings: LedgerSettings, engine: AsyncEngine | None = None) -> bool:
    """Install the OTLP span exporter once for the process.

    ``engine`` gets SQLAlchemy statement spans when given. Returns ``True``
    when tracing is active after the call.
    """

    global _tracer_provider  # noqa: PLW0603

    if _tracer_provider is not None:
        return True
    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False

    provider = TracerProvider(
        resource=_build_resource(settings),
        sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio)),
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**_exporter_options(settings))))
    trace.set_tracer_provider(provider)

    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)

    _tracer_provider = provider
    logger.info(
        "Telemetry initialised (endpoint=%s, sample_ratio=%s)",
        settings.telemetry_otlp_endpoint or "default",
        settings.telemetry_sample_ratio,
    )
    return True


def shutdown_telemetry() -> None:
    """Flush buffered spans; short-lived processes call this before exiting."""

    global _tracer_provider  # noqa: PLW0603

    if _tracer_provider is None:
        return
    _tracer_provider.shutdown()
    _tracer_provider = None


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


__all__ = ["TRACER_NAME", "setup_telemetry", "shutdown_telemetry", "get_tracer"]
