"""CustomResourceDefinition for SasGenerator."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .constants import (
    API_GROUP,
    API_VERSION,
    KIND_SAS_GENERATOR,
    PLURAL_SAS_GENERATOR,
    SINGULAR_SAS_GENERATOR,
)


def _nullable(schema: dict[str, Any]) -> dict[str, Any]:
    return {**schema, "nullable": True}


def build_crd() -> dict[str, Any]:
    """Build the SasGenerator CRD manifest."""
    spec_schema = {
        "type": "object",
        "required": ["storageAccount", "containerName"],
        "properties": {
            "storageAccount": {"type": "string"},
            "containerName": {"type": "string"},
            "secretName": _nullable({"type": "string"}),
            "sasTtlHours": _nullable({"type": "integer", "format": "int64", "minimum": 1}),
            "sasRenewalHours": _nullable({"type": "integer", "format": "int64", "minimum": 1}),
        },
    }
    status_schema = _nullable({
        "type": "object",
        "properties": {
            "token": _nullable({"type": "string"}),
            "targetSecret": _nullable({"type": "string"}),
            "generated": _nullable({"type": "string"}),
            "expiry": _nullable({"type": "string"}),
        },
    })

    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{PLURAL_SAS_GENERATOR}.{API_GROUP}"},
        "spec": {
            "group": API_GROUP,
            "names": {
                "categories": [],
                "kind": KIND_SAS_GENERATOR,
                "plural": PLURAL_SAS_GENERATOR,
                "shortNames": [],
                "singular": SINGULAR_SAS_GENERATOR,
            },
            "scope": "Namespaced",
            "versions": [
                {
                    "name": API_VERSION,
                    "served": True,
                    "storage": True,
                    "subresources": {"status": {}},
                    "additionalPrinterColumns": [
                        {"name": "Account", "type": "string", "jsonPath": ".spec.storageAccount"},
                        {"name": "Container", "type": "string", "jsonPath": ".spec.containerName"},
                        {"name": "Secret", "type": "string", "jsonPath": ".status.targetSecret"},
                        {"name": "Expiry", "type": "string", "jsonPath": ".status.expiry"},
                    ],
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "title": KIND_SAS_GENERATOR,
                            "required": ["spec"],
                            "properties": {
                                "spec": spec_schema,
                                "status": status_schema,
                            },
                        }
                    },
                }
            ],
        },
    }


def write_crd_yaml(path: str | Path = "crd.yaml") -> Path:
    """Write the CRD manifest as YAML and return the path written."""
    path = Path(path)
    path.write_text(yaml.safe_dump(build_crd(), sort_keys=False))
    return path
