"""Base token issuer interface."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ...models import TokenInfo


class TokenIssuer(Protocol):
    """Protocol for services that mint container-scoped access tokens."""

    def issue(self, account: str, container: str, ttl_hours: int, now: datetime) -> TokenInfo:
        """Issue a token valid from just before ``now`` until ``now + ttl_hours``.

        Raises:
            IssuanceError: If no token could be produced
        """
        ...
