"""
Retry utilities with exponential backoff and symmetric jitter.

:func:`with_backoff` drives any zero-argument callable: the first attempt
runs immediately, each further attempt waits ``initial_wait * 2**(k-1)``
(capped at ``max_wait``) plus or minus up to half of that. Only transient
network failures are retried; a run-wide :class:`CancelToken` interrupts
both the waits and the loop.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import (
    DDNSError,
    ExhaustedRetriesError,
    NetworkError,
    NonRetryableError,
    OperationCancelledError,
)
from .http import classify_transport_error
from .logger import DDNSLogger, ddns_logger

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """How many times to retry and how long to wait in between.

    ``max_attempts`` counts retries, so a policy of 5 calls the operation
    at most six times.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=0)
    initial_wait: float = Field(default=1.0, ge=0, description="Seconds before the first retry")
    max_wait: float = Field(default=32.0, ge=0, description="Cap on the un-jittered wait")


DEFAULT_POLICY = RetryPolicy()
_MAX_EXPONENT = 1023


class CancelToken:
    """Run-scoped cancellation signal shared by every worker thread."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.cause: Any = None

    def cancel(self, cause: Any = "cancelled") -> None:
        if not self._event.is_set():
            self.cause = cause
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep for *timeout* seconds; return ``True`` early if cancelled."""
        return self._event.wait(timeout)


def compute_delay(
    policy: RetryPolicy,
    attempt: int,
    rng: random.Random | None = None,
) -> float:
    """Return the wait before retry number *attempt* (1-based).

    The result always lies in ``[0.5 * base, 1.5 * base]`` where
    ``base = min(initial_wait * 2**(attempt-1), max_wait)``.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    rng = rng or random
    # Float exponent saturates instead of overflowing on huge attempt numbers.
    base = min(policy.initial_wait * 2.0 ** min(attempt - 1, _MAX_EXPONENT), policy.max_wait)
    jitter = rng.uniform(0, 0.5 * base)
    delay = base + jitter if rng.random() < 0.5 else base - jitter
    return max(delay, 0.0)


def is_retryable(exc: BaseException) -> bool:
    """Whether *exc* is a transient network condition."""
    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, DDNSError):
        return False
    return classify_transport_error(exc) is not None


def with_backoff(
    operation: str,
    fn: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    cancel: CancelToken | None = None,
    logger: DDNSLogger | None = None,
    rng: random.Random | None = None,
    **context: Any,
) -> T:
    """Call *fn* until it succeeds, retrying transient failures.

    Args:
        operation: Name used in errors and log events.
        fn: Zero-argument callable performing one attempt.
        policy: Retry limits and waits.
        cancel: Optional run-wide cancellation signal.
        logger: Where retry events go; defaults to the package logger.
        rng: Random source for jitter.
        **context: Extra log context (``zone_id``, ``fqdn``, ...). Keys the
            retry events set themselves take precedence.

    Returns:
        Whatever *fn* returns on the first successful attempt.

    Raises:
        NonRetryableError: *fn* raised something that is not transient.
        ExhaustedRetriesError: ``policy.max_attempts`` retries all failed.
        OperationCancelledError: *cancel* fired before or between attempts.
    """
    log = logger or ddns_logger
    last_exc: BaseException | None = None

    for attempt in range(policy.max_attempts + 1):
        if cancel is not None and cancel.cancelled:
            raise OperationCancelledError(operation, cancel.cause) from last_exc

        if attempt > 0:
            delay = compute_delay(policy, attempt, rng)
            log.warning(
                "retrying operation",
                **{
                    **context,
                    "operation": operation,
                    "attempt": attempt,
                    "max_attempts": policy.max_attempts,
                    "delay": round(delay, 3),
                    "error": last_exc,
                },
            )
            if cancel is None:
                time.sleep(delay)
            elif cancel.wait(delay):
                raise OperationCancelledError(operation, cancel.cause) from last_exc

        try:
            result = fn()
        except Exception as exc:
            last_exc = exc
            if cancel is not None and cancel.cancelled:
                raise OperationCancelledError(operation, cancel.cause) from exc
            if not is_retryable(exc):
                raise NonRetryableError(operation, exc) from exc
            continue

        if attempt > 0:
            log.info(
                "operation succeeded after retry",
                **{**context, "operation": operation, "attempt": attempt + 1},
            )
        return result

    raise ExhaustedRetriesError(operation, policy.max_attempts, last_exc) from last_exc
