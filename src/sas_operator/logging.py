"""Structured logging configuration for the SAS Operator."""

import json
import logging
import os
import sys
from typing import Any

from .constants import CONTROLLER_NAME
from .utils.context import log_context

REDACTED_FIELDS = frozenset({"token", "sas_token", "signature", "password"})


def setup_structured_logging() -> None:
    """Configure JSON-per-line logging on stdout; ``LOG_LEVEL`` overrides INFO."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    kind: str,
    meta: dict[str, Any],
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log one JSON line describing something that happened to a resource."""
    record = log_context({
        "controller": CONTROLLER_NAME,
        "resource": kind,
        "namespace": meta.get("namespace", "default"),
        "name": meta.get("name", "unknown"),
        "uid": meta.get("uid", "unknown"),
        "event": event,
        "reason": reason,
        "message": message,
    })
    record.update(sanitize_secrets(fields))
    logger.log(level, json.dumps(record, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Replace the values of token-bearing fields."""
    return {
        key: "***REDACTED***" if key in REDACTED_FIELDS else value
        for key, value in log_data.items()
    }
