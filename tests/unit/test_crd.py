"""Tests for the SasGenerator CRD manifest."""

from __future__ import annotations

import yaml

from sas_operator.crd import build_crd, write_crd_yaml


class TestBuildCrd:
    """Test cases for build_crd."""

    def test_identity(self):
        """Test group, names and scope."""
        crd = build_crd()

        assert crd["metadata"]["name"] == "sasgenerators.sas.example.com"
        assert crd["spec"]["group"] == "sas.example.com"
        assert crd["spec"]["names"]["kind"] == "SasGenerator"
        assert crd["spec"]["names"]["plural"] == "sasgenerators"
        assert crd["spec"]["scope"] == "Namespaced"

    def test_status_subresource(self):
        """Test that status is a subresource so spec edits don't clobber it."""
        version = build_crd()["spec"]["versions"][0]

        assert version["name"] == "v1"
        assert version["subresources"] == {"status": {}}

    def test_spec_schema(self):
        """Test required and optional spec fields."""
        schema = build_crd()["spec"]["versions"][0]["schema"]["openAPIV3Schema"]
        spec = schema["properties"]["spec"]

        assert spec["required"] == ["storageAccount", "containerName"]
        assert spec["properties"]["sasTtlHours"]["type"] == "integer"
        assert spec["properties"]["sasTtlHours"]["minimum"] == 1
        assert spec["properties"]["secretName"]["nullable"] is True

    def test_status_schema(self):
        """Test status fields."""
        schema = build_crd()["spec"]["versions"][0]["schema"]["openAPIV3Schema"]
        status = schema["properties"]["status"]

        assert set(status["properties"]) == {"token", "targetSecret", "generated", "expiry"}


class TestWriteCrdYaml:
    """Test cases for write_crd_yaml."""

    def test_writes_parseable_yaml(self, tmp_path):
        """Test that the written file round-trips through YAML."""
        path = write_crd_yaml(tmp_path / "crd.yaml")

        assert path.exists()
        assert yaml.safe_load(path.read_text()) == build_crd()
