"""Main entry point for the SAS Operator."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

import kopf
from kubernetes import client, config

from . import health, metrics
from . import logging as structured_logging
from .config import ControllerContext, OperatorConfig
from .constants import API_GROUP_VERSION, KIND_SAS_GENERATOR, REQUEUE_AFTER_SUCCESS
from .crd import write_crd_yaml
from .handlers import SasGeneratorHandler
from .services.azure.client import AzureSasIssuer
from .tracing import initialize_tracing
from .utils.errors import sanitize_exception
from .utils.events import emit_secret_published, emit_token_issued

logger = logging.getLogger(__name__)

sas_generator_handler = SasGeneratorHandler()


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def build_context(operator_config: OperatorConfig) -> ControllerContext:
    """Create the shared, read-only reconciliation context."""
    load_kube_config()
    return ControllerContext(
        core_api=client.CoreV1Api(),
        custom_api=client.CustomObjectsApi(),
        issuer=AzureSasIssuer(fail_fast_on_auth=operator_config.fail_fast_on_auth),
        sas_renewal_hours=operator_config.sas_renewal_hours,
        sas_ttl_hours=operator_config.sas_ttl_hours,
    )


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    operator_config = OperatorConfig.from_env()
    logger.info(
        f"Starting sas-operator: renewal={operator_config.sas_renewal_hours}h "
        f"ttl={operator_config.sas_ttl_hours}h fail_fast_on_auth={operator_config.fail_fast_on_auth}"
    )

    # Status is owned by the reconciler; keep kopf's bookkeeping out of it
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    # The timer fires every few seconds; only warnings become Events. The
    # explicit kopf.event calls are not subject to this level.
    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = operator_config.max_workers

    memo.context = build_context(operator_config)

    health.start_metrics_server(operator_config.metrics_port)


@kopf.timer(API_GROUP_VERSION, KIND_SAS_GENERATOR, interval=REQUEUE_AFTER_SUCCESS)
def reconcile_sas_generator(
    body: kopf.Body,
    name: str,
    namespace: str,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Periodic reconciliation of a SasGenerator.

    kopf runs at most one invocation per object at a time. A failed pass is
    reported as a temporary error so the next attempt waits for the
    cool-down instead of the regular interval.
    """
    result = sas_generator_handler.reconcile(memo.context, namespace, name)

    if result.failed:
        raise kopf.TemporaryError(sanitize_exception(result.error), delay=result.after)

    if result.regenerated:
        emit_token_issued(body, result.expiry)
        emit_secret_published(body, result.secret_name, result.secret_operation)


@kopf.on.delete(API_GROUP_VERSION, KIND_SAS_GENERATOR, optional=True)
def forget_sas_generator(name: str, namespace: str, **_: Any) -> None:
    """Stop exporting the token expiry of a deleted SasGenerator.

    Optional, so no finalizer is added; the Secret goes with its owner.
    """
    metrics.forget_token_expiry(namespace, name)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sas-operator",
        description="Keeps SasGenerator resources supplied with fresh Azure container SAS tokens.",
    )
    parser.add_argument(
        "--crd",
        nargs="?",
        const="crd.yaml",
        default=None,
        metavar="PATH",
        help="write the SasGenerator CRD YAML to PATH (default: crd.yaml) and exit",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Write the CRD when asked to, otherwise run the operator until signalled."""
    args = parse_args(argv)

    if args.crd is not None:
        path = write_crd_yaml(args.crd)
        print(f"CRD YAML generated at {path}")
        return 0

    operator_config = OperatorConfig.from_env()
    try:
        if operator_config.watch_namespace:
            kopf.run(namespaces=[operator_config.watch_namespace])
        else:
            kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    return 0


if __name__ == "__main__":
    sys.exit(main())
