"""Tests for the operator entry point and the kopf adapter."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import kopf
import pytest

from sas_operator import main as operator_main
from sas_operator.config import OperatorConfig
from sas_operator.handlers.sas_generator import Requeue
from sas_operator.utils.errors import IssuanceError

BODY = {
    "apiVersion": "sas.example.com/v1",
    "kind": "SasGenerator",
    "metadata": {"name": "demo", "namespace": "apps", "uid": "uid-123"},
}


def call_timer(memo: MagicMock | None = None) -> None:
    operator_main.reconcile_sas_generator(
        body=BODY,
        name="demo",
        namespace="apps",
        memo=memo or MagicMock(),
    )


class TestParseArgs:
    """Test cases for command-line parsing."""

    def test_no_args(self):
        """Test that the operator runs by default."""
        assert operator_main.parse_args([]).crd is None

    def test_crd_default_path(self):
        """Test that a bare --crd writes crd.yaml."""
        assert operator_main.parse_args(["--crd"]).crd == "crd.yaml"

    def test_crd_explicit_path(self):
        """Test --crd with a path."""
        assert operator_main.parse_args(["--crd", "out/sas.yaml"]).crd == "out/sas.yaml"


class TestMain:
    """Test cases for main."""

    def test_crd_written_and_exits(self, tmp_path, capsys):
        """Test that --crd writes the manifest without starting the operator."""
        target = tmp_path / "sas-crd.yaml"

        with patch("sas_operator.main.kopf.run") as mock_run:
            assert operator_main.main(["--crd", str(target)]) == 0

        assert target.exists()
        assert "CRD YAML generated at" in capsys.readouterr().out
        mock_run.assert_not_called()

    def test_runs_clusterwide(self, monkeypatch):
        """Test that the operator watches all namespaces by default."""
        monkeypatch.delenv("WATCH_NAMESPACE", raising=False)

        with patch("sas_operator.main.kopf.run") as mock_run:
            assert operator_main.main([]) == 0

        mock_run.assert_called_once_with(clusterwide=True)

    def test_runs_single_namespace(self, monkeypatch):
        """Test that WATCH_NAMESPACE restricts the watch."""
        monkeypatch.setenv("WATCH_NAMESPACE", "apps")

        with patch("sas_operator.main.kopf.run") as mock_run:
            operator_main.main([])

        mock_run.assert_called_once_with(namespaces=["apps"])

    def test_keyboard_interrupt(self, monkeypatch):
        """Test that an interrupt shuts down cleanly."""
        monkeypatch.delenv("WATCH_NAMESPACE", raising=False)

        with patch("sas_operator.main.kopf.run", side_effect=KeyboardInterrupt):
            assert operator_main.main([]) == 0


class TestReconcileTimer:
    """Test cases for the kopf timer adapter."""

    @patch("sas_operator.main.emit_secret_published")
    @patch("sas_operator.main.emit_token_issued")
    def test_noop_pass(self, mock_issued, mock_published):
        """Test that a pass without renewal emits nothing."""
        with patch.object(operator_main.sas_generator_handler, "reconcile", return_value=Requeue(15)):
            call_timer()

        mock_issued.assert_not_called()
        mock_published.assert_not_called()

    @patch("sas_operator.main.emit_secret_published")
    @patch("sas_operator.main.emit_token_issued")
    def test_regeneration_emits_events(self, mock_issued, mock_published):
        """Test that a renewal emits token and secret events."""
        result = Requeue(
            15,
            secret_name="volsync-acct-backups",
            secret_operation="created",
            expiry="2024-05-03T12:00:00Z",
        )
        with patch.object(operator_main.sas_generator_handler, "reconcile", return_value=result):
            call_timer()

        mock_issued.assert_called_once_with(BODY, "2024-05-03T12:00:00Z")
        mock_published.assert_called_once_with(BODY, "volsync-acct-backups", "created")

    @patch("sas_operator.main.emit_token_issued")
    def test_failure_raises_temporary_error(self, mock_issued):
        """Test that a failed pass is retried after the error cool-down."""
        error = IssuanceError("issuance failed", cause=TimeoutError("timed out"))
        with patch.object(
            operator_main.sas_generator_handler,
            "reconcile",
            return_value=Requeue(300, error=error),
        ):
            with pytest.raises(kopf.TemporaryError) as exc_info:
                call_timer()

        assert exc_info.value.delay == 300
        mock_issued.assert_not_called()

    def test_passes_context_from_memo(self):
        """Test that the shared context from memo is handed to the handler."""
        memo = MagicMock()
        with patch.object(
            operator_main.sas_generator_handler, "reconcile", return_value=Requeue(15)
        ) as mock_reconcile:
            call_timer(memo)

        mock_reconcile.assert_called_once_with(memo.context, "apps", "demo")


class TestBuildContext:
    """Test cases for build_context."""

    @patch("sas_operator.main.load_kube_config")
    @patch("sas_operator.main.client")
    def test_context_from_config(self, mock_client, mock_load):
        """Test that config values flow into the context."""
        ctx = operator_main.build_context(OperatorConfig(sas_renewal_hours=6, sas_ttl_hours=12))

        mock_load.assert_called_once()
        assert ctx.core_api is mock_client.CoreV1Api.return_value
        assert ctx.custom_api is mock_client.CustomObjectsApi.return_value
        assert ctx.sas_renewal_hours == 6
        assert ctx.sas_ttl_hours == 12


class TestConfigure:
    """Test cases for the startup handler."""

    @patch("sas_operator.main.health.start_metrics_server")
    @patch("sas_operator.main.build_context")
    @patch("sas_operator.main.initialize_tracing")
    @patch("sas_operator.main.structured_logging.setup_structured_logging")
    def test_settings_and_memo(self, mock_logging, mock_tracing, mock_build, mock_server, monkeypatch):
        """Test operator settings, the shared context and the metrics server."""
        monkeypatch.setenv("MAX_WORKERS", "8")
        monkeypatch.setenv("METRICS_PORT", "9100")
        settings = kopf.OperatorSettings()
        memo = kopf.Memo()

        operator_main.configure(settings=settings, memo=memo)

        # Routine INFO handler messages must not turn into Events every pass
        assert settings.posting.level == logging.WARNING
        assert settings.execution.max_workers == 8
        assert memo.context is mock_build.return_value
        mock_server.assert_called_once_with(9100)


class TestForgetOnDelete:
    """Test cases for the delete handler."""

    @patch("sas_operator.main.metrics.forget_token_expiry")
    def test_forgets_expiry_series(self, mock_forget):
        """Test that deleting a SasGenerator drops its expiry series."""
        operator_main.forget_sas_generator(name="demo", namespace="apps")

        mock_forget.assert_called_once_with("apps", "demo")
