"""OpenTelemetry tracing for reconciliations and Azure calls.

Spans are always created through the OpenTelemetry API. Until
``initialize_tracing`` installs an SDK provider they are non-recording, so
instrumented code needs no "is tracing on" checks.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from . import __version__
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "sas-operator"


def _build_provider(endpoint: str, service_name: str) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name, "service.version": __version__})
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    return provider


def initialize_tracing() -> bool:
    """Export spans over OTLP when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set.

    ``OTEL_TRACES_ENABLED=false`` turns tracing off even with an endpoint;
    ``OTEL_SERVICE_NAME`` overrides the service name. Returns whether an
    exporter was installed. A broken exporter setup is logged, never fatal.
    """
    if os.getenv("OTEL_TRACES_ENABLED", "true").lower() == "false":
        return False
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return False

    try:
        provider = _build_provider(endpoint, os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME))
    except Exception as e:
        logger.warning(f"Failed to initialize tracing: {e}")
        return False
    trace.set_tracer_provider(provider)
    logger.info(f"Exporting traces to {endpoint}")
    return True


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Run the block inside a span; exceptions mark it as failed and propagate.

    The recorded error description is sanitized, since Azure error text can
    echo SAS query parameters.
    """
    attrs = dict(attributes or {})
    if kind:
        attrs["resource.kind"] = kind

    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name, attributes=attrs, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.set_attribute("error.type", type(e).__name__)
                span.set_status(Status(StatusCode.ERROR, sanitize_exception(e)))
            raise
