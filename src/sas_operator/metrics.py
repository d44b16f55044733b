"""Prometheus metrics for the SAS Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "sas_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "sas_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

error_total = Counter(
    "sas_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Token issuance metrics
token_issuance_total = Counter(
    "sas_operator_token_issuance_total",
    "Total number of SAS token issuance calls",
    ["result"],
)

token_issuance_attempts_total = Counter(
    "sas_operator_token_issuance_attempts_total",
    "Total number of individual SAS issuance attempts, including retries",
    ["result"],
)

token_expiry_timestamp_seconds = Gauge(
    "sas_operator_token_expiry_timestamp_seconds",
    "Expiry of the most recently issued token as a unix timestamp",
    ["namespace", "name"],
)


def forget_token_expiry(namespace: str, name: str) -> None:
    """Drop the expiry series of a SasGenerator that no longer exists."""
    try:
        token_expiry_timestamp_seconds.remove(namespace, name)
    except KeyError:
        # No token was issued for it by this process
        pass


# Secret metrics
secret_operations_total = Counter(
    "sas_operator_secret_operations_total",
    "Total number of derived Secret operations",
    ["operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "sas_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "sas_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)
