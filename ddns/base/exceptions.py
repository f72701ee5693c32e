"""
DDNS exception hierarchy.

Every failure raised by the package inherits from :class:`DDNSError`.
Transport failures carry a :class:`TransientTag` so the retry layer can
decide what is worth another attempt without matching on messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


# ── Base ──────────────────────────────────────────────────────────────
class DDNSError(Exception):
    """Root exception for all DDNS errors."""


class ConfigError(DDNSError):
    """Configuration could not be parsed or failed validation."""


# ── Transport ─────────────────────────────────────────────────────────
class TransientTag(str, Enum):
    """Closed set of network conditions worth retrying."""

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_RESET = "connection_reset"
    NAME_RESOLUTION_FAILURE = "name_resolution_failure"
    TEMPORARY = "temporary"


class NetworkError(DDNSError):
    """A transient transport-level failure."""

    def __init__(
        self,
        message: str,
        tag: TransientTag = TransientTag.TEMPORARY,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.tag = tag
        self.status_code = status_code


class ApiError(DDNSError):
    """The provider rejected the request or reported ``success=false``."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = list(errors or [])
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        if self.errors:
            return f"{base}: {'; '.join(self.errors)}"
        return base


class DecodeError(DDNSError):
    """A response body was malformed or did not match the expected schema."""


# ── IP discovery ──────────────────────────────────────────────────────
class IPDiscoveryError(DDNSError):
    """Base exception for public IP lookups."""


class InvalidAddressError(IPDiscoveryError):
    """The lookup returned something that is not an address of the wanted family."""


# ── Retry ─────────────────────────────────────────────────────────────
class RetryError(DDNSError):
    """Base for errors raised by the backoff scheduler.

    Attributes:
        operation: Name of the operation that was being retried.
        cause: The last underlying error, if any.
    """

    def __init__(self, operation: str, message: str, cause: Any = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.cause = cause


class NonRetryableError(RetryError):
    """The operation failed with an error that is not worth retrying."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(operation, f"non-retryable error: {cause}", cause)


class ExhaustedRetriesError(RetryError):
    """Every attempt failed with a retryable error."""

    def __init__(self, operation: str, attempts: int, cause: BaseException | None) -> None:
        super().__init__(operation, f"max retries ({attempts}) exceeded: {cause}", cause)
        self.attempts = attempts


class OperationCancelledError(RetryError):
    """The run was cancelled before the operation could complete."""

    def __init__(self, operation: str, cause: Any = None) -> None:
        super().__init__(operation, f"cancelled: {cause}", cause)


# ── Zones ─────────────────────────────────────────────────────────────
class ZoneError(DDNSError):
    """A zone could not be processed at all."""

    def __init__(self, zone_id: str, message: str) -> None:
        super().__init__(f"zone '{zone_id}': {message}")
        self.zone_id = zone_id
