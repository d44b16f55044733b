"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
from typing import Any

from ..logging import log_resource_event
from ..utils.errors import sanitize_exception


class BaseHandler:
    """Structured, per-resource logging shared by the CRD handlers.

    Every line carries the resource kind, namespace, name and uid taken from
    ``meta``, plus the active correlation ID.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str | None = None,
        reason: str | None = None,
        **fields: Any,
    ) -> None:
        # event/reason default to the level: "warning"/"Warning" etc.
        level_name = logging.getLevelName(level).lower()
        log_resource_event(
            self.logger,
            self.kind,
            meta,
            event=event or level_name,
            reason=reason or level_name.capitalize(),
            message=message,
            level=level,
            **fields,
        )

    def log_info(self, meta: dict[str, Any], message: str, **fields: Any) -> None:
        self._log(logging.INFO, meta, message, **fields)

    def log_warning(self, meta: dict[str, Any], message: str, **fields: Any) -> None:
        self._log(logging.WARNING, meta, message, **fields)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        **fields: Any,
    ) -> None:
        """Log at ERROR, describing ``error`` without leaking credentials.

        The error text is sanitized; its type and the type of its wrapped
        cause are logged separately so failures can be grouped.
        """
        if error is not None:
            fields["error"] = sanitize_exception(error)
            fields["error_type"] = type(error).__name__
            cause = getattr(error, "cause", None)
            if cause is not None:
                fields["cause_type"] = type(cause).__name__
        self._log(logging.ERROR, meta, message, **fields)
