"""Operator configuration and the shared reconciliation context."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .constants import DEFAULT_SAS_RENEWAL_HOURS, DEFAULT_SAS_TTL_HOURS
from .services.sas.base import TokenIssuer

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def env_or_default(key: str, default: _T, parse: Callable[[str], _T]) -> _T:
    """Read an environment variable and parse it.

    Returns ``default`` if the variable is unset or fails to parse.
    """
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return parse(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {key}: {raw!r}; using {default!r}")
        return default


def _parse_positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{value} is not a positive integer")
    return value


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


@dataclass(frozen=True)
class OperatorConfig:
    """Controller-wide settings, read once at startup."""

    sas_renewal_hours: int = DEFAULT_SAS_RENEWAL_HOURS
    sas_ttl_hours: int = DEFAULT_SAS_TTL_HOURS
    fail_fast_on_auth: bool = False
    metrics_port: int = 8080
    max_workers: int = 4
    watch_namespace: str | None = None

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Build the configuration from environment variables."""
        return cls(
            sas_renewal_hours=env_or_default("SAS_RENEWAL_HOURS", DEFAULT_SAS_RENEWAL_HOURS, _parse_positive_int),
            sas_ttl_hours=env_or_default("SAS_TTL_HOURS", DEFAULT_SAS_TTL_HOURS, _parse_positive_int),
            fail_fast_on_auth=env_or_default("SAS_ISSUE_FAIL_FAST_ON_AUTH", False, _parse_bool),
            metrics_port=env_or_default("METRICS_PORT", 8080, int),
            max_workers=env_or_default("MAX_WORKERS", 4, _parse_positive_int),
            watch_namespace=os.getenv("WATCH_NAMESPACE") or None,
        )


@dataclass(frozen=True)
class ControllerContext:
    """Immutable handles shared by every reconciliation.

    Built once in the startup handler and stored in kopf's memo. The
    kubernetes API objects and the issuer are safe for concurrent use.
    """

    core_api: Any
    custom_api: Any
    issuer: TokenIssuer
    sas_renewal_hours: int = DEFAULT_SAS_RENEWAL_HOURS
    sas_ttl_hours: int = DEFAULT_SAS_TTL_HOURS
