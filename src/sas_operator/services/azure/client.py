"""Azure Blob Storage user-delegation SAS issuer."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Callable

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import CredentialUnavailableError, DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContainerSasPermissions, generate_container_sas

from ... import metrics
from ...constants import CLOCK_SKEW_SECONDS
from ...models import TokenInfo
from ...tracing import trace_span
from ...utils.errors import CredentialError, IssuanceError, sanitize_exception
from ...utils.retry import RetryExhaustedError, RetryPolicy, retry_everything

logger = logging.getLogger(__name__)

SAS_PERMISSIONS = ContainerSasPermissions(
    read=True,
    add=True,
    create=True,
    write=True,
    delete=True,
    delete_previous_version=True,
    permanent_delete=True,
    list=True,
    tag=True,
    move=True,
    execute=True,
    set_immutability_policy=True,
)


def is_retryable_issuance_error(error: BaseException) -> bool:
    """Classify issuance failures; identity problems cannot fix themselves."""
    return not isinstance(error, (ClientAuthenticationError, CredentialUnavailableError, CredentialError))


def account_url(account: str) -> str:
    return f"https://{account}.blob.core.windows.net"


class AzureSasIssuer:
    """Issues container SAS tokens signed with a user delegation key."""

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        credential_factory: Callable[[], Any] = DefaultAzureCredential,
        service_client_factory: Callable[..., Any] = BlobServiceClient,
        fail_fast_on_auth: bool = False,
    ) -> None:
        """Initialize the issuer.

        Args:
            retry_policy: Backoff applied to the remote issuance call
            credential_factory: Builds a credential from the environment
            service_client_factory: Builds a blob service client from (account_url, credential)
            fail_fast_on_auth: Stop retrying on authentication/credential errors
        """
        policy = retry_policy or RetryPolicy()
        if fail_fast_on_auth and policy.retryable is retry_everything:
            policy = RetryPolicy(
                initial_delay=policy.initial_delay,
                multiplier=policy.multiplier,
                max_delay=policy.max_delay,
                max_attempts=policy.max_attempts,
                jitter=policy.jitter,
                retryable=is_retryable_issuance_error,
                sleep=policy.sleep,
            )
        self.retry_policy = policy
        self.credential_factory = credential_factory
        self.service_client_factory = service_client_factory

    def _create_credential(self) -> Any:
        try:
            return self.credential_factory()
        except Exception as e:
            raise CredentialError("Failed to create Azure credential from environment", cause=e) from e

    def _issue_once(
        self,
        account: str,
        container: str,
        credential: Any,
        start: datetime,
        expiry: datetime,
    ) -> str:
        """One independent attempt: fresh client, fresh delegation key, fresh signature."""
        with self.service_client_factory(account_url(account), credential=credential) as service_client:
            logger.debug(f"Fetching user delegation key for account {account}")
            delegation_key = service_client.get_user_delegation_key(
                key_start_time=start,
                key_expiry_time=expiry,
            )
        return generate_container_sas(
            account_name=account,
            container_name=container,
            user_delegation_key=delegation_key,
            permission=SAS_PERMISSIONS,
            start=start,
            expiry=expiry,
        )

    def issue(self, account: str, container: str, ttl_hours: int, now: datetime) -> TokenInfo:
        """Issue a container SAS valid for ``ttl_hours`` from ``now``.

        The validity window starts a few seconds before ``now`` to tolerate
        clock skew with the storage service.

        Raises:
            CredentialError: If the environment has no usable identity configuration
            IssuanceError: If every attempt failed; wraps the last cause
        """
        start = now - timedelta(seconds=CLOCK_SKEW_SECONDS)
        expiry = now + timedelta(hours=ttl_hours)

        with trace_span(
            "issue_sas_token",
            attributes={"sas.account": account, "sas.container": container, "sas.ttl_hours": ttl_hours},
        ):
            logger.info(f"Starting SAS token generation for {account}/{container} (ttl {ttl_hours}h)")
            try:
                credential = self._create_credential()
            except CredentialError:
                metrics.token_issuance_total.labels(result="credential_error").inc()
                raise

            def attempt() -> str:
                started = time.time()
                try:
                    token = self._issue_once(account, container, credential, start, expiry)
                except Exception:
                    metrics.token_issuance_attempts_total.labels(result="error").inc()
                    raise
                finally:
                    metrics.api_call_duration_seconds.labels(
                        api_type="azure", operation="issue_sas"
                    ).observe(time.time() - started)
                metrics.token_issuance_attempts_total.labels(result="success").inc()
                return token

            try:
                token = self.retry_policy.call(attempt)
            except RetryExhaustedError as e:
                metrics.token_issuance_total.labels(result="error").inc()
                logger.error(
                    f"SAS generation for {account}/{container} failed after {e.attempts} attempt(s): "
                    f"{sanitize_exception(e.last_error)}"
                )
                raise IssuanceError(
                    "Failed to generate SAS token after retries",
                    cause=e.last_error,
                    attempts=e.attempts,
                ) from e.last_error
            finally:
                # Each credential owns its own HTTP transport
                credential.close()

        metrics.token_issuance_total.labels(result="success").inc()
        logger.info(f"SAS token generation for {account}/{container} completed; expires {expiry.isoformat()}")
        return TokenInfo(token=token, generated=now, expiry=expiry)
