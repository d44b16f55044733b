"""Operator error taxonomy and sanitization utilities."""

from __future__ import annotations

import re


class OperatorError(Exception):
    """Base class for every failure a reconciliation can surface.

    Carries the underlying exception as ``cause`` so callers can branch on
    the error kind without inspecting message strings.
    """

    kind = "operator"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause is not None:
            return f"{base_msg}: {self.cause}"
        return base_msg


class ValidationError(OperatorError):
    """The resource spec is missing required fields or has invalid values."""

    kind = "validation"


class ResourceStoreError(OperatorError):
    """Reading or writing the resource store failed."""

    kind = "resource_store"


class IssuanceError(OperatorError):
    """The credential service could not produce a token."""

    kind = "issuance"

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        attempts: int = 0,
    ):
        super().__init__(message, cause)
        self.attempts = attempts


class CredentialError(IssuanceError):
    """The environment's identity mechanism could not be initialized."""

    kind = "credential"


class ApplyError(OperatorError):
    """Creating or patching a published artifact failed.

    ``target`` is either ``"secret"`` or ``"status"``.
    """

    kind = "apply"

    def __init__(self, message: str, target: str, cause: BaseException | None = None):
        super().__init__(message, cause)
        self.target = target


# SAS query parameters that identify or sign a token
_SAS_PARAMS = re.compile(r"\b(sig|skoid|sktid)=[^&\s\"']+", re.IGNORECASE)

# "field: value" / "field=value" pairs whose value must never be logged
_SENSITIVE_FIELD_VALUE = re.compile(
    r"\b(sas_token|token|signature|password|client_secret|credentials|key)\s*[:=]\s*[^\s,;&\)]+",
    re.IGNORECASE,
)


def sanitize_error_message(message: str) -> str:
    """Redact SAS signatures and credential values from free text.

    Prose such as "Secret default/volsync-acct-backups" is left alone; only
    values attached with ``:`` or ``=`` to a sensitive field are replaced.
    """
    message = _SAS_PARAMS.sub(lambda m: f"{m.group(1)}=[REDACTED]", message)
    return _SENSITIVE_FIELD_VALUE.sub(lambda m: f"{m.group(1)}: [REDACTED]", message)


def sanitize_exception(error: BaseException) -> str:
    return sanitize_error_message(str(error))
