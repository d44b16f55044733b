"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_SECRET_CREATED,
    EVENT_REASON_SECRET_UPDATED,
    EVENT_REASON_TOKEN_ISSUED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Involved object (apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_token_issued(body: dict[str, Any], expiry: str) -> None:
    """Emit token issued event."""
    emit_event(body, EVENT_REASON_TOKEN_ISSUED, f"SAS token issued, expires {expiry}")


def emit_secret_published(body: dict[str, Any], secret_name: str, operation: str) -> None:
    """Emit secret created/updated event."""
    if operation == "created":
        emit_event(body, EVENT_REASON_SECRET_CREATED, f"Secret {secret_name} created")
    else:
        emit_event(body, EVENT_REASON_SECRET_UPDATED, f"Secret {secret_name} updated")
