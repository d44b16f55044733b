"""Tests for reading SasGenerators and patching their status."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from kubernetes import client

from sas_operator.models import CredentialResource, SasGeneratorStatus
from sas_operator.utils.errors import ApplyError, ResourceStoreError
from sas_operator.utils.status import get_sas_generator, update_status

BODY = {
    "apiVersion": "sas.example.com/v1",
    "kind": "SasGenerator",
    "metadata": {"name": "demo", "namespace": "apps", "uid": "uid-123"},
    "spec": {"storageAccount": "acct", "containerName": "backups"},
}

STATUS = SasGeneratorStatus(
    token="sv=2022&sig=abc",
    target_secret="volsync-acct-backups",
    generated="2024-05-01T12:00:00Z",
    expiry="2024-05-03T12:00:00Z",
)


class TestGetSasGenerator:
    """Test cases for get_sas_generator."""

    def test_success(self):
        """Test fetching the current object."""
        api = Mock()
        api.get_namespaced_custom_object.return_value = BODY

        assert get_sas_generator(api, "apps", "demo") is BODY
        api.get_namespaced_custom_object.assert_called_once_with(
            group="sas.example.com",
            version="v1",
            namespace="apps",
            plural="sasgenerators",
            name="demo",
        )

    def test_error(self):
        """Test that read failures surface as ResourceStoreError."""
        api = Mock()
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(ResourceStoreError) as exc_info:
            get_sas_generator(api, "apps", "demo")

        assert isinstance(exc_info.value.cause, client.exceptions.ApiException)


class TestUpdateStatus:
    """Test cases for update_status."""

    def test_patches_status_only(self):
        """Test that only the status sub-resource is patched."""
        api = Mock()
        resource = CredentialResource.from_body(BODY)

        update_status(api, resource, STATUS)

        api.patch_namespaced_custom_object_status.assert_called_once()
        kwargs = api.patch_namespaced_custom_object_status.call_args.kwargs
        assert kwargs["namespace"] == "apps"
        assert kwargs["name"] == "demo"
        assert kwargs["plural"] == "sasgenerators"
        assert kwargs["field_manager"] == "sas-operator"
        assert kwargs["body"] == {
            "status": {
                "token": "sv=2022&sig=abc",
                "targetSecret": "volsync-acct-backups",
                "generated": "2024-05-01T12:00:00Z",
                "expiry": "2024-05-03T12:00:00Z",
            }
        }
        assert "spec" not in kwargs["body"]
        api.patch_namespaced_custom_object.assert_not_called()

    def test_patch_failure(self):
        """Test that a rejected patch surfaces as ApplyError."""
        api = Mock()
        api.patch_namespaced_custom_object_status.side_effect = client.exceptions.ApiException(status=409)

        with pytest.raises(ApplyError) as exc_info:
            update_status(api, CredentialResource.from_body(BODY), STATUS)

        assert exc_info.value.target == "status"
