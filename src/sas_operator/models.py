"""Data models for SasGenerator resources and issued tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .constants import API_GROUP_VERSION, KIND_SAS_GENERATOR, SECRET_NAME_PREFIX
from .utils.errors import ValidationError

logger = logging.getLogger(__name__)


def _optional_positive_int(spec: dict[str, Any], key: str) -> int | None:
    value = spec.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"spec.{key} must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class SasGeneratorSpec:
    """User-authored intent. Never written by the controller."""

    storage_account: str
    container_name: str
    secret_name: str | None = None
    sas_ttl_hours: int | None = None
    sas_renewal_hours: int | None = None

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> SasGeneratorSpec:
        """Parse and validate a camelCase spec.

        Raises:
            ValidationError: If required fields are missing or overrides are invalid
        """
        storage_account = spec.get("storageAccount")
        container_name = spec.get("containerName")
        if not storage_account or not container_name:
            raise ValidationError("spec.storageAccount and spec.containerName are required")

        return cls(
            storage_account=storage_account,
            container_name=container_name,
            secret_name=spec.get("secretName") or None,
            sas_ttl_hours=_optional_positive_int(spec, "sasTtlHours"),
            sas_renewal_hours=_optional_positive_int(spec, "sasRenewalHours"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "storageAccount": self.storage_account,
            "containerName": self.container_name,
        }
        if self.secret_name is not None:
            data["secretName"] = self.secret_name
        if self.sas_ttl_hours is not None:
            data["sasTtlHours"] = self.sas_ttl_hours
        if self.sas_renewal_hours is not None:
            data["sasRenewalHours"] = self.sas_renewal_hours
        return data


@dataclass(frozen=True)
class SasGeneratorStatus:
    """Controller-owned state. Timestamps are RFC 3339 strings."""

    token: str | None = None
    target_secret: str | None = None
    generated: str | None = None
    expiry: str | None = None

    @classmethod
    def from_dict(cls, status: dict[str, Any] | None) -> SasGeneratorStatus | None:
        """Parse a camelCase status; returns None for an absent or empty status."""
        if not status:
            return None
        return cls(
            token=status.get("token"),
            target_secret=status.get("targetSecret"),
            generated=status.get("generated"),
            expiry=status.get("expiry"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "targetSecret": self.target_secret,
            "generated": self.generated,
            "expiry": self.expiry,
        }


@dataclass(frozen=True)
class TokenInfo:
    """Result of one successful issuance."""

    token: str
    generated: datetime
    expiry: datetime

    def __repr__(self) -> str:
        return f"TokenInfo(token='***', generated={self.generated!r}, expiry={self.expiry!r})"


@dataclass(frozen=True)
class CredentialResource:
    """A loaded SasGenerator: identity, spec and (optional) status."""

    namespace: str
    name: str
    uid: str
    spec: SasGeneratorSpec
    status: SasGeneratorStatus | None = None
    generation: int = 0
    meta: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> CredentialResource:
        """Build a resource from a raw custom object body.

        Raises:
            ValidationError: If the spec is invalid
        """
        meta = body.get("metadata", {}) or {}
        return cls(
            namespace=meta.get("namespace", "default"),
            name=meta.get("name", "unknown"),
            uid=meta.get("uid", ""),
            spec=SasGeneratorSpec.from_dict(body.get("spec", {}) or {}),
            status=SasGeneratorStatus.from_dict(body.get("status")),
            generation=meta.get("generation", 0),
            meta=meta,
        )

    def default_secret_name(self) -> str:
        return f"{SECRET_NAME_PREFIX}-{self.spec.storage_account}-{self.spec.container_name}"

    def target_secret_name(self) -> str:
        """Resolve the output Secret name.

        A name already recorded in status is pinned: changing it would orphan
        the published Secret. Otherwise the spec override wins over the
        derived default.
        """
        pinned = self.status.target_secret if self.status else None
        if pinned:
            if self.spec.secret_name and self.spec.secret_name != pinned:
                logger.warning(
                    f"{self.namespace}/{self.name}: spec.secretName {self.spec.secret_name!r} "
                    f"ignored; output Secret is pinned to {pinned!r}"
                )
            return pinned
        return self.spec.secret_name or self.default_secret_name()

    def owner_reference(self) -> dict[str, Any]:
        """Controller owner reference so the Secret is garbage-collected with us."""
        return {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_SAS_GENERATOR,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
