"""Builders for the derived Secret and the resource status."""

from __future__ import annotations

from ..constants import (
    ANNOTATION_EXPIRES,
    ANNOTATION_GENERATED,
    CONTROLLER_NAME,
    LABEL_CONTAINER,
    LABEL_MANAGED_BY,
    LABEL_STORAGE_ACCOUNT,
    SECRET_KEY_ACCOUNT,
    SECRET_KEY_CONTAINER,
    SECRET_KEY_TOKEN,
)
from ..models import CredentialResource, SasGeneratorStatus, TokenInfo
from ..utils.timefmt import format_rfc3339


def build_secret_labels(resource: CredentialResource) -> dict[str, str]:
    """Provenance labels for the Secret."""
    return {
        LABEL_MANAGED_BY: CONTROLLER_NAME,
        LABEL_STORAGE_ACCOUNT: resource.spec.storage_account,
        LABEL_CONTAINER: resource.spec.container_name,
    }


def build_secret_annotations(token_info: TokenInfo) -> dict[str, str]:
    return {
        ANNOTATION_GENERATED: format_rfc3339(token_info.generated),
        ANNOTATION_EXPIRES: format_rfc3339(token_info.expiry),
    }


def build_secret_data(resource: CredentialResource, token_info: TokenInfo) -> dict[str, str]:
    return {
        SECRET_KEY_TOKEN: token_info.token,
        SECRET_KEY_ACCOUNT: resource.spec.storage_account,
        SECRET_KEY_CONTAINER: resource.spec.container_name,
    }


def build_status(token_info: TokenInfo, secret_name: str) -> SasGeneratorStatus:
    return SasGeneratorStatus(
        token=token_info.token,
        target_secret=secret_name,
        generated=format_rfc3339(token_info.generated),
        expiry=format_rfc3339(token_info.expiry),
    )
