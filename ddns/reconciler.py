"""
Record reconciliation.

:class:`RecordReconciler` converges a single (fqdn, type) pair: it lists
what the provider has, then creates, updates or leaves the record alone.
Every provider call goes through its own :func:`with_backoff` invocation,
so a create that fails after a successful list retries only the create.
"""

from __future__ import annotations

import random
from typing import Callable, TypeVar

from ddns.base.async_support import AsyncMixin
from ddns.base.dns import DNSBlueprint
from ddns.base.exceptions import (
    ApiError,
    DecodeError,
    ExhaustedRetriesError,
    NetworkError,
    OperationCancelledError,
    RetryError,
)
from ddns.base.logger import DDNSLogger, ddns_logger
from ddns.base.records import (
    AUTO_TTL,
    DesiredRecord,
    FailureKind,
    Outcome,
    RecordType,
    RemoteRecord,
    UpsertResult,
)
from ddns.base.retry import DEFAULT_POLICY, CancelToken, RetryPolicy, with_backoff

T = TypeVar("T")


def is_up_to_date(remote: RemoteRecord, desired: DesiredRecord) -> bool:
    """Whether *remote* already matches *desired*.

    A proxied record reports the automatic TTL sentinel no matter what TTL
    was sent, so that counts as a match.
    """
    ttl_matches = remote.ttl == desired.ttl or (desired.proxied and remote.ttl == AUTO_TTL)
    return (
        remote.content == desired.content
        and remote.proxied == desired.proxied
        and ttl_matches
    )


def failure_kind(exc: BaseException) -> FailureKind:
    """Classify an upsert failure for reporting."""
    if isinstance(exc, OperationCancelledError):
        return FailureKind.CANCELLED
    if isinstance(exc, ExhaustedRetriesError):
        return FailureKind.NETWORK
    if isinstance(exc, RetryError) and exc.cause is not None:
        exc = exc.cause
    if isinstance(exc, NetworkError):
        return FailureKind.NETWORK
    if isinstance(exc, ApiError):
        return FailureKind.API
    if isinstance(exc, DecodeError):
        return FailureKind.DECODE
    return FailureKind.UNEXPECTED


class RecordReconciler(AsyncMixin):
    """Create-or-update logic for address records.

    Attributes:
        provider: DNS provider the calls go to.
        policy: Retry policy applied to each provider call.
        cancel: Run-wide cancellation signal, if any.
    """

    def __init__(
        self,
        provider: DNSBlueprint,
        policy: RetryPolicy = DEFAULT_POLICY,
        cancel: CancelToken | None = None,
        logger: DDNSLogger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.provider = provider
        self.policy = policy
        self.cancel = cancel
        self.logger = logger or ddns_logger
        self._rng = rng

    def _call(self, operation: str, fn: Callable[[], T], **context) -> T:
        return with_backoff(
            operation,
            fn,
            self.policy,
            cancel=self.cancel,
            logger=self.logger,
            rng=self._rng,
            **context,
        )

    def upsert(
        self,
        zone_id: str,
        fqdn: str,
        record_type: RecordType | str,
        content: str,
        proxied: bool,
        ttl: int,
    ) -> UpsertResult:
        """Make the provider's (fqdn, type) record match the desired state.

        Args:
            zone_id: Zone holding the record.
            fqdn: Fully qualified record name; lower-cased once here.
            record_type: ``A`` or ``AAAA``.
            content: IP address literal.
            proxied: Whether traffic goes through the provider's edge.
            ttl: Desired TTL in seconds.

        Returns:
            An :class:`UpsertResult` with outcome ``CREATED``, ``UPDATED``
            or ``UP_TO_DATE``.

        Raises:
            RetryError: A provider call failed; ``cause`` holds the
                underlying :class:`NetworkError`, :class:`ApiError` or
                :class:`DecodeError`.
        """
        desired = DesiredRecord(
            fqdn=fqdn,
            record_type=RecordType(record_type),
            content=content,
            proxied=proxied,
            ttl=ttl,
        )
        rtype = desired.record_type
        ctx = {"zone_id": zone_id, "fqdn": desired.fqdn, "record_type": rtype.value}

        records = self._call(
            f"list {rtype.value} records for {desired.fqdn}",
            lambda: self.provider.list_records(zone_id, rtype, desired.fqdn),
            **ctx,
        )

        if not records:
            record_id = self._call(
                f"create {rtype.value} record for {desired.fqdn}",
                lambda: self.provider.create_record(zone_id, desired),
                **ctx,
            )
            self.logger.info(
                "created record",
                content=desired.content,
                proxied=desired.proxied,
                ttl=desired.ttl,
                outcome=Outcome.CREATED.value,
                **ctx,
            )
            return UpsertResult(desired.fqdn, rtype, Outcome.CREATED, record_id=record_id or None)

        if len(records) > 1:
            # No documented ordering guarantee from the provider.
            self.logger.warning(
                "multiple records found, updating the first one",
                count=len(records),
                **ctx,
            )

        existing = records[0]
        if is_up_to_date(existing, desired):
            self.logger.debug(
                "record already up to date",
                content=desired.content,
                outcome=Outcome.UP_TO_DATE.value,
                **ctx,
            )
            return UpsertResult(desired.fqdn, rtype, Outcome.UP_TO_DATE, record_id=existing.id)

        self._call(
            f"update {rtype.value} record for {desired.fqdn}",
            lambda: self.provider.update_record(zone_id, existing.id, desired),
            **ctx,
        )
        self.logger.info(
            "updated record",
            content=desired.content,
            proxied=desired.proxied,
            ttl=desired.ttl,
            old_content=existing.content,
            old_proxied=existing.proxied,
            old_ttl=existing.ttl,
            outcome=Outcome.UPDATED.value,
            **ctx,
        )
        return UpsertResult(
            desired.fqdn, rtype, Outcome.UPDATED, record_id=existing.id, previous=existing
        )
