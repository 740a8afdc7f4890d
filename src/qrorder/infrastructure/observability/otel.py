from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

_OTEL_CONFIGURED = False
# Health checks and metric scrapes stay out of the traces.
_EXCLUDED_URLS = "health/live,health/ready,metrics"

logger = logging.getLogger(__name__)


def current_trace_ids() -> tuple[str | None, str | None]:
    """Hex trace and span ids of the active span, or ``(None, None)`` outside a span."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None, None
    return (
        format(span_context.trace_id, "032x"),
        format(span_context.span_id, "016x"),
    )


def current_trace_id() -> str | None:
    return current_trace_ids()[0]


def _span_exporter(endpoint: str) -> OTLPSpanExporter | None:
    try:
        return OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
    except Exception:
        logger.exception("otel_exporter_setup_failed", extra={"endpoint": endpoint})
        return None


def configure_otel(app: FastAPI) -> None:
    global _OTEL_CONFIGURED
    if _OTEL_CONFIGURED:
        return

    resource = Resource.create(
        {
            SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", "qrorder-backend"),
            DEPLOYMENT_ENVIRONMENT: os.getenv("APP_ENV", "dev").lower(),
        }
    )
    provider = TracerProvider(resource=resource)

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        exporter = _span_exporter(endpoint)
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider,
        excluded_urls=_EXCLUDED_URLS,
    )
    _OTEL_CONFIGURED = True
