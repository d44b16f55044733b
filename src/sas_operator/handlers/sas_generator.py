"""Reconciliation of SasGenerator resources."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime

from kubernetes import client

from .. import metrics
from ..builders.secret import (
    build_secret_annotations,
    build_secret_data,
    build_secret_labels,
    build_status,
)
from ..config import ControllerContext
from ..constants import KIND_SAS_GENERATOR, REQUEUE_AFTER_ERROR, REQUEUE_AFTER_SUCCESS
from ..models import CredentialResource
from ..tracing import trace_span
from ..utils.context import with_correlation_id
from ..utils.errors import ResourceStoreError
from ..utils.expiry import renewal_due_at, should_regenerate
from ..utils.secrets import ensure_secret
from ..utils.status import get_sas_generator, update_status
from ..utils.timefmt import format_friendly_duration, format_rfc3339, parse_rfc3339, utc_now
from .base import BaseHandler


def resource_gone(error: Exception) -> bool:
    """True if the SasGenerator could not be loaded because it was deleted."""
    cause = getattr(error, "cause", None)
    return (
        isinstance(error, ResourceStoreError)
        and isinstance(cause, client.exceptions.ApiException)
        and cause.status == 404
    )


@dataclass(frozen=True)
class Requeue:
    """When the framework should run the next reconciliation, and why."""

    after: float
    error: Exception | None = None
    secret_name: str | None = None
    secret_operation: str | None = None
    expiry: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def regenerated(self) -> bool:
        return self.secret_operation is not None


class SasGeneratorHandler(BaseHandler):
    """Keeps a SasGenerator's token fresh and mirrored into its Secret.

    Each pass loads the resource, decides whether renewal is due, and if so
    issues a token, publishes the Secret, then patches the status. The Secret
    is written first because ``status.targetSecret`` advertises it to
    consumers. The two writes are not transactional: if the status patch
    fails after the Secret was updated, the Secret carries a token the status
    does not mention until the next pass reissues.
    """

    def __init__(self) -> None:
        """Initialize SasGenerator handler."""
        super().__init__(KIND_SAS_GENERATOR)

    def reconcile(
        self,
        ctx: ControllerContext,
        namespace: str,
        name: str,
        now: datetime | None = None,
    ) -> Requeue:
        """Run one reconciliation and return the requeue directive.

        Never raises: every failure is logged and turned into a fixed
        cool-down requeue, whatever its kind.
        """
        meta = {"namespace": namespace, "name": name}
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()
        start_time = time.time()

        with with_correlation_id(), trace_span(
            "reconcile_sas_generator",
            kind=self.kind,
            attributes={"sasgenerator.name": name, "sasgenerator.namespace": namespace},
        ):
            try:
                result = self._reconcile(ctx, namespace, name, now or utc_now())
            except Exception as e:
                self.log_error(
                    meta,
                    "Reconcile failed",
                    error=e,
                    event="reconcile",
                    reason="ReconcileFailed",
                    requeue_after=REQUEUE_AFTER_ERROR,
                )
                metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
                metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
                if resource_gone(e):
                    metrics.forget_token_expiry(namespace, name)
                return Requeue(after=REQUEUE_AFTER_ERROR, error=e)
            finally:
                metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(time.time() - start_time)

        metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        return result

    def _reconcile(
        self,
        ctx: ControllerContext,
        namespace: str,
        name: str,
        now: datetime,
    ) -> Requeue:
        body = get_sas_generator(ctx.custom_api, namespace, name)
        resource = CredentialResource.from_body(body)
        meta = resource.meta

        renewal_hours = resource.spec.sas_renewal_hours or ctx.sas_renewal_hours
        ttl_hours = resource.spec.sas_ttl_hours or ctx.sas_ttl_hours
        self.log_info(
            meta,
            "Reconciling SasGenerator",
            event="reconcile",
            reason="ReconcileStarted",
            spec=resource.spec.to_dict(),
            renewal_hours=renewal_hours,
            ttl_hours=ttl_hours,
        )

        if not should_regenerate(now, resource.status, renewal_hours):
            # Only reachable with a parseable expiry
            expiry = parse_rfc3339(resource.status.expiry)
            self.log_info(
                meta,
                "SAS token still valid; no renewal needed",
                event="reconcile",
                reason="TokenValid",
                expiry=resource.status.expiry,
                time_left=format_friendly_duration(expiry - now),
                renewal_in=format_friendly_duration(renewal_due_at(resource.status, renewal_hours) - now),
            )
            return Requeue(after=REQUEUE_AFTER_SUCCESS)

        token_info = ctx.issuer.issue(
            resource.spec.storage_account,
            resource.spec.container_name,
            ttl_hours,
            now,
        )
        expiry = format_rfc3339(token_info.expiry)
        self.log_info(meta, "Generated new SAS token", event="issue", reason="TokenIssued", new_expiry=expiry)

        secret_name = resource.target_secret_name()
        operation = ensure_secret(
            ctx.core_api,
            name=secret_name,
            namespace=resource.namespace,
            labels=build_secret_labels(resource),
            annotations=build_secret_annotations(token_info),
            data=build_secret_data(resource, token_info),
            owner_references=[resource.owner_reference()],
        )

        update_status(ctx.custom_api, resource, build_status(token_info, secret_name))

        metrics.token_expiry_timestamp_seconds.labels(
            namespace=resource.namespace, name=resource.name
        ).set(token_info.expiry.timestamp())
        self.log_info(
            meta,
            "SAS token published",
            event="publish",
            reason="TokenPublished",
            secret=secret_name,
            secret_operation=operation,
            expiry=expiry,
        )
        return Requeue(
            after=REQUEUE_AFTER_SUCCESS,
            secret_name=secret_name,
            secret_operation=operation,
            expiry=expiry,
        )
