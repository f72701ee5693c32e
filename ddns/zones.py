"""
Zone and subdomain fan-out.

Zones run fully in parallel. Inside a zone every subdomain gets its own
worker, but a bounded semaphore keeps at most ``concurrency_limit`` of
them talking to the provider at once. Failures below the zone level are
logged and reported, never raised: a partially converged zone is fixed by
the next scheduled run.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from ddns.base.async_support import AsyncMixin
from ddns.base.config import (
    APEX_MARKER,
    DEFAULT_CONCURRENCY_LIMIT,
    SubdomainConfig,
    ZoneConfig,
    effective_ttl,
)
from ddns.base.exceptions import DDNSError, ZoneError
from ddns.base.logger import DDNSLogger
from ddns.base.records import Outcome, RecordType, UpsertResult, ZoneReport
from ddns.base.retry import with_backoff
from ddns.reconciler import RecordReconciler, failure_kind


def build_fqdn(name: str, base_domain: str) -> str:
    """Join a subdomain label onto the zone's base domain.

    An empty label or the apex marker ``@`` yields the base domain itself.
    """
    name = name.strip().lower()
    if not name or name == APEX_MARKER:
        return base_domain
    return f"{name}.{base_domain}"


class ZoneController(AsyncMixin):
    """Drives reconciliation across the subdomains of one or more zones."""

    def __init__(self, reconciler: RecordReconciler, logger: DDNSLogger | None = None) -> None:
        self.reconciler = reconciler
        self.logger = logger or reconciler.logger

    def resolve_base_domain(self, zone_id: str) -> str:
        """Look up the zone's base domain, retrying transient failures.

        Raises:
            ZoneError: If the lookup ultimately fails.
        """
        provider = self.reconciler.provider
        try:
            info = with_backoff(
                f"get zone {zone_id}",
                lambda: provider.get_zone_info(zone_id),
                self.reconciler.policy,
                cancel=self.reconciler.cancel,
                logger=self.logger,
                zone_id=zone_id,
            )
        except DDNSError as e:
            raise ZoneError(zone_id, f"get zone: {e}") from e
        return info.name.strip().lower()

    def _upsert(
        self,
        zone_id: str,
        fqdn: str,
        record_type: RecordType,
        content: str,
        proxied: bool,
        ttl: int,
    ) -> UpsertResult:
        try:
            return self.reconciler.upsert(zone_id, fqdn, record_type, content, proxied, ttl)
        except Exception as e:
            kind = failure_kind(e)
            self.logger.error(
                f"failed to upsert {record_type.value} record",
                zone_id=zone_id,
                fqdn=fqdn,
                record_type=record_type.value,
                outcome=f"{Outcome.FAILED.value}:{kind.value}",
                error=e,
            )
            return UpsertResult(fqdn, record_type, Outcome.FAILED, failure=kind, error=e)

    def _process_subdomain(
        self,
        zone_id: str,
        base_domain: str,
        sub: SubdomainConfig,
        ttl: int,
        ipv4: str,
        ipv6: str | None,
        gate: threading.BoundedSemaphore,
    ) -> list[UpsertResult]:
        fqdn = build_fqdn(sub.name, base_domain)
        with gate:
            results = [self._upsert(zone_id, fqdn, RecordType.A, ipv4, sub.proxied, ttl)]
            if ipv6:
                results.append(
                    self._upsert(zone_id, fqdn, RecordType.AAAA, ipv6, sub.proxied, ttl)
                )
        return results

    def process_zone(
        self,
        zone_id: str,
        subdomains: Sequence[SubdomainConfig],
        ipv4: str,
        ipv6: str | None = None,
        default_ttl: int = 0,
        concurrency_limit: int = 0,
        zone_ttl: int = 0,
    ) -> ZoneReport:
        """Reconcile every subdomain of one zone.

        Args:
            zone_id: Zone identifier.
            subdomains: Subdomain settings, in configuration order.
            ipv4: Address for the A records.
            ipv6: Address for the AAAA records; skipped when empty.
            default_ttl: Global TTL fallback.
            concurrency_limit: Subdomains in flight at once; ``<= 0`` uses
                the default of 10.
            zone_ttl: Zone-level TTL override.

        Returns:
            A :class:`ZoneReport` listing one result per record, in
            subdomain order with A before AAAA. Per-record failures appear
            as ``FAILED`` results.

        Raises:
            ZoneError: If the base domain cannot be resolved; no subdomain
                work is attempted in that case.
        """
        base_domain = self.resolve_base_domain(zone_id)
        self.logger.debug("processing zone", zone_id=zone_id, base_domain=base_domain)

        limit = concurrency_limit if concurrency_limit > 0 else DEFAULT_CONCURRENCY_LIMIT
        gate = threading.BoundedSemaphore(limit)
        report = ZoneReport(zone_id=zone_id, base_domain=base_domain)

        with ThreadPoolExecutor(
            max_workers=max(min(len(subdomains), limit), 1),
            thread_name_prefix=f"zone-{zone_id}",
        ) as pool:
            futures = [
                pool.submit(
                    self._process_subdomain,
                    zone_id,
                    base_domain,
                    sub,
                    effective_ttl(sub.ttl, zone_ttl, default_ttl),
                    ipv4,
                    ipv6,
                    gate,
                )
                for sub in subdomains
            ]
            for future in futures:
                report.results.extend(future.result())
        return report

    def _run_zone(
        self,
        zone: ZoneConfig,
        ipv4: str,
        ipv6: str | None,
        default_ttl: int,
        concurrency_limit: int,
    ) -> ZoneReport:
        try:
            return self.process_zone(
                zone.zone_id,
                zone.subdomains,
                ipv4,
                ipv6,
                default_ttl=default_ttl,
                concurrency_limit=concurrency_limit,
                zone_ttl=zone.ttl,
            )
        except Exception as e:
            self.logger.error("failed to process zone", zone_id=zone.zone_id, error=e)
            return ZoneReport(zone_id=zone.zone_id, error=e)

    def process_zones(
        self,
        zones: Sequence[ZoneConfig],
        ipv4: str,
        ipv6: str | None = None,
        default_ttl: int = 0,
        concurrency_limit: int = 0,
    ) -> list[ZoneReport]:
        """Process every zone concurrently and wait for all of them.

        A zone that fails never stops its siblings; its report carries the
        error instead.

        Returns:
            One :class:`ZoneReport` per zone, in configuration order.
        """
        if not zones:
            return []
        with ThreadPoolExecutor(max_workers=len(zones), thread_name_prefix="zone") as pool:
            futures = [
                pool.submit(self._run_zone, zone, ipv4, ipv6, default_ttl, concurrency_limit)
                for zone in zones
            ]
            return [future.result() for future in futures]
