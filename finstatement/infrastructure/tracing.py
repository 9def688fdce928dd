"""
OpenTelemetry spans for pipeline stages.

Tracing is off unless `tracing.enabled` is set. Without an installed provider
the OpenTelemetry API hands out no-op spans, so `trace_operation` is always
safe to use.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from .config import TracingSettings, get_settings
from .logger import get_correlation_id, get_logger

logger = get_logger("finstatement.infrastructure.tracing")

TRACER_NAME = "finstatement"

_initialized = False


def init_tracing(config: Optional[TracingSettings] = None) -> bool:
    """
    Install a tracer provider that exports spans over OTLP/gRPC.

    Args:
        config: Tracing settings; the `tracing` section of the current settings by default.

    Returns:
        True when spans will be exported.
    """
    global _initialized
    config = config or get_settings().tracing

    if not config.enabled:
        logger.debug("Tracing disabled")
        return False
    if _initialized:
        return True

    try:
        provider = TracerProvider(resource=Resource.create({SERVICE_NAME: config.service_name}))
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=True))
        )
        trace.set_tracer_provider(provider)
    except Exception as e:
        # Spans fall back to no-ops; extraction itself is unaffected
        logger.error(f"Failed to initialize tracing: {e}")
        return False

    _initialized = True
    logger.info(f"Tracing to {config.otlp_endpoint} as {config.service_name}")
    return True


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def trace_operation(operation_name: str, attributes: Optional[Mapping[str, Any]] = None) -> Iterator[Span]:
    """
    Run the enclosed block inside a span.

    The span is tagged with the run's correlation id. Errors are recorded on
    the span and re-raised unchanged, cancellation included.

    Usage:
        with trace_operation("pipeline.retrieve", {"top_k": 5}):
            ...
    """
    with get_tracer().start_as_current_span(
        operation_name, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, str(value))
        if cid := get_correlation_id():
            span.set_attribute("correlation_id", cid)

        try:
            yield span
        except BaseException as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise
        span.set_status(Status(StatusCode.OK))
