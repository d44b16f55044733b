"""Patching the status sub-resource of SasGenerator objects."""

from __future__ import annotations

import logging
import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_SAS_GENERATOR
from ..models import CredentialResource, SasGeneratorStatus
from .errors import ApplyError, ResourceStoreError

logger = logging.getLogger(__name__)


def get_sas_generator(api: client.CustomObjectsApi, namespace: str, name: str) -> dict[str, Any]:
    """Fetch the current SasGenerator body.

    Raises:
        ResourceStoreError: If the object could not be read
    """
    started = time.time()
    try:
        body = api.get_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_SAS_GENERATOR,
            name=name,
        )
    except Exception as e:
        metrics.api_call_total.labels(api_type="k8s", operation="get_sasgenerator", result="error").inc()
        raise ResourceStoreError(f"Failed to read SasGenerator {namespace}/{name}", cause=e) from e
    finally:
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="get_sasgenerator").observe(
            time.time() - started
        )
    metrics.api_call_total.labels(api_type="k8s", operation="get_sasgenerator", result="success").inc()
    return body


def update_status(
    api: client.CustomObjectsApi,
    resource: CredentialResource,
    status: SasGeneratorStatus,
) -> None:
    """Merge-patch the status sub-resource; spec is never part of the body.

    Raises:
        ApplyError: If the patch was rejected (e.g. the object was deleted)
    """
    started = time.time()
    try:
        api.patch_namespaced_custom_object_status(
            group=API_GROUP,
            version=API_VERSION,
            namespace=resource.namespace,
            plural=PLURAL_SAS_GENERATOR,
            name=resource.name,
            body={"status": status.to_dict()},
            field_manager=FIELD_MANAGER,
        )
    except Exception as e:
        metrics.api_call_total.labels(api_type="k8s", operation="patch_status", result="error").inc()
        raise ApplyError(
            f"Failed to patch status of SasGenerator {resource.namespace}/{resource.name}",
            target="status",
            cause=e,
        ) from e
    finally:
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="patch_status").observe(
            time.time() - started
        )
    metrics.api_call_total.labels(api_type="k8s", operation="patch_status", result="success").inc()
    logger.debug(f"Status of SasGenerator {resource.namespace}/{resource.name} updated")
