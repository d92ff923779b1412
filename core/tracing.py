import os

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

log = structlog.get_logger(__name__)

_initialized = False


def init_tracer(app_name: str = "stripe-gateway"):
    """Initialize OpenTelemetry tracer with OTLP exporter"""
    global _initialized
    # The global tracer provider can only be set once per process
    if _initialized:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": app_name}))

    # Allow disabling tracing via environment variable (useful in tests)
    if os.getenv("DISABLE_TRACING", "").lower() in {"1", "true", "yes"}:
        exporter = ConsoleSpanExporter()
    else:
        try:
            exporter = OTLPSpanExporter()
        except Exception as exc:  # pragma: no cover – only hit when collector absent
            log.warning("OTLP exporter unavailable, tracing disabled", error=str(exc))
            exporter = ConsoleSpanExporter()  # writes spans to stdout

    provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _initialized = True


def get_tracer(name: str):
    return trace.get_tracer(name)
