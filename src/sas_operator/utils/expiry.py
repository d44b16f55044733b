"""Decides when a SasGenerator's token is due for renewal."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..models import SasGeneratorStatus
from .timefmt import parse_rfc3339

logger = logging.getLogger(__name__)


def renewal_due_at(status: SasGeneratorStatus | None, renewal_hours: int) -> datetime | None:
    """Return the moment renewal becomes due.

    Returns None when there is no expiry to compute from.

    Raises:
        ValueError: If the recorded expiry is not a valid timestamp
    """
    if status is None or not status.expiry:
        return None
    return parse_rfc3339(status.expiry) - timedelta(hours=renewal_hours)


def should_regenerate(
    now: datetime,
    status: SasGeneratorStatus | None,
    renewal_hours: int,
) -> bool:
    """Return True if a new token must be issued.

    A missing status or expiry means nothing was issued yet. An expiry that
    cannot be parsed is treated as due so that an unverifiable token is never
    served silently.
    """
    try:
        due_at = renewal_due_at(status, renewal_hours)
    except ValueError as e:
        logger.warning(f"Failed to parse expiry {status.expiry!r}; will regenerate SAS token: {e}")
        return True

    if due_at is None:
        return True
    return now >= due_at
