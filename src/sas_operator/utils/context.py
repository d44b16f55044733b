"""Per-reconcile log context: correlation IDs and active trace identifiers."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "sas_operator_correlation_id", default=None
)


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


def current_correlation_id() -> str | None:
    return _correlation_id.get()


@contextmanager
def with_correlation_id(corr_id: str | None = None) -> Iterator[str]:
    """Tag everything logged inside the block with one correlation ID.

    A fresh ID is generated when none is given. The previous value is
    restored on exit, so nested passes do not leak into each other.
    """
    token = _correlation_id.set(corr_id or new_correlation_id())
    try:
        yield _correlation_id.get()
    finally:
        _correlation_id.reset(token)


def current_trace_ids() -> dict[str, str]:
    """Trace and span IDs of the recording span, if any."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


def log_context(fields: dict[str, Any] | None = None) -> dict[str, Any]:
    """Merge the ambient identifiers with ``fields`` for a structured log line."""
    ctx: dict[str, Any] = {}
    corr_id = current_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id
    ctx.update(current_trace_ids())
    ctx.update(fields or {})
    return ctx
