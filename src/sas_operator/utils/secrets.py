"""Utilities for managing the derived Kubernetes Secret."""

from __future__ import annotations

import base64
import logging
import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..constants import FIELD_MANAGER
from .errors import ApplyError, sanitize_exception

logger = logging.getLogger(__name__)

APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


def encode_secret_data(data: dict[str, str]) -> dict[str, str]:
    """Base64-encode string values for a Secret's ``data`` field."""
    return {k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()}


def build_secret_body(
    name: str,
    namespace: str,
    labels: dict[str, str],
    annotations: dict[str, str],
    data: dict[str, str],
    owner_references: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Full desired state of the Secret, usable for both create and apply."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(labels),
            "annotations": dict(annotations),
            "ownerReferences": list(owner_references or []),
        },
        "type": "Opaque",
        "data": encode_secret_data(data),
    }


def _record(operation: str, result: str, started: float) -> None:
    metrics.secret_operations_total.labels(operation=operation, result=result).inc()
    metrics.api_call_total.labels(api_type="k8s", operation=f"{operation}_secret", result=result).inc()
    metrics.api_call_duration_seconds.labels(api_type="k8s", operation=f"{operation}_secret").observe(
        time.time() - started
    )


def ensure_secret(
    api: client.CoreV1Api,
    name: str,
    namespace: str,
    labels: dict[str, str],
    annotations: dict[str, str],
    data: dict[str, str],
    owner_references: list[dict[str, Any]] | None = None,
) -> str:
    """Create the Secret if absent, otherwise force-apply the full desired state.

    The apply patch is idempotent: repeating it with the same desired state
    changes nothing.

    Args:
        api: Kubernetes CoreV1Api client
        name: Secret name
        namespace: Secret namespace
        labels: Secret labels
        annotations: Secret annotations
        data: Secret data (plain strings, base64-encoded here)
        owner_references: Owner back-references for garbage collection

    Returns:
        "created" or "patched"

    Raises:
        ApplyError: If reading, creating or patching the Secret failed
    """
    body = build_secret_body(name, namespace, labels, annotations, data, owner_references)

    started = time.time()
    try:
        api.read_namespaced_secret(name=name, namespace=namespace)
        exists = True
    except client.exceptions.ApiException as e:
        if e.status != 404:
            _record("read", "error", started)
            logger.warning(f"Failed to read Secret {namespace}/{name}: {sanitize_exception(e)}")
            raise ApplyError(f"Failed to read Secret {namespace}/{name}", target="secret", cause=e) from e
        exists = False
    except Exception as e:
        _record("read", "error", started)
        raise ApplyError(f"Failed to read Secret {namespace}/{name}", target="secret", cause=e) from e

    started = time.time()
    if not exists:
        logger.info(f"Secret {namespace}/{name} not found; creating new one")
        try:
            api.create_namespaced_secret(namespace=namespace, body=body, field_manager=FIELD_MANAGER)
        except Exception as e:
            _record("create", "error", started)
            raise ApplyError(f"Failed to create Secret {namespace}/{name}", target="secret", cause=e) from e
        _record("create", "success", started)
        logger.info(f"Secret {namespace}/{name} created successfully")
        return "created"

    logger.debug(f"Secret {namespace}/{name} exists; applying patch")
    try:
        api.patch_namespaced_secret(
            name=name,
            namespace=namespace,
            body=body,
            field_manager=FIELD_MANAGER,
            force=True,
            _content_type=APPLY_PATCH_CONTENT_TYPE,
        )
    except Exception as e:
        _record("patch", "error", started)
        raise ApplyError(f"Failed to apply Secret {namespace}/{name}", target="secret", cause=e) from e
    _record("patch", "success", started)
    logger.info(f"Secret {namespace}/{name} updated successfully")
    return "patched"

