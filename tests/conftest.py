"""Shared fixtures: an in-memory DNS provider with call tracking."""

from __future__ import annotations

import itertools
import threading
import time

import pytest

from ddns.base.dns import DNSBlueprint
from ddns.base.exceptions import ApiError
from ddns.base.records import DesiredRecord, RecordType, RemoteRecord, ZoneInfo
from ddns.base.retry import RetryPolicy
from ddns.base.logger import DDNSLogger


class InMemoryDNS(DNSBlueprint):
    """Thread-safe fake provider.

    ``failures`` maps a method name to a list of exceptions raised (in
    order) before the method starts succeeding. A per-zone list can also be
    given for ``get_zone_info`` via ``zone_failures``.
    """

    def __init__(self, zones: dict[str, str] | None = None, delay: float = 0.0):
        self.zones = dict(zones or {"z1": "example.com"})
        self.records: dict[str, list[RemoteRecord]] = {z: [] for z in self.zones}
        self.delay = delay
        self.failures: dict[str, list[Exception]] = {}
        self.zone_failures: dict[str, list[Exception]] = {}
        self.calls: list[tuple] = []
        self.active = 0
        self.max_active = 0
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(self, zone_id: str, **fields) -> RemoteRecord:
        fields.setdefault("id", f"rec{next(self._ids)}")
        record = RemoteRecord(**fields)
        self.records.setdefault(zone_id, []).append(record)
        return record

    def _enter(self, call: tuple, method: str) -> None:
        with self._lock:
            self.calls.append(call)
            pending = self.failures.get(method)
            if pending:
                raise pending.pop(0)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        if self.delay:
            time.sleep(self.delay)

    def _leave(self) -> None:
        with self._lock:
            self.active -= 1

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("create_record", "update_record")]

    def get_zone_info(self, zone_id: str) -> ZoneInfo:
        with self._lock:
            self.calls.append(("get_zone_info", zone_id))
            pending = self.zone_failures.get(zone_id)
            if pending:
                raise pending.pop(0)
            if zone_id not in self.zones:
                raise ApiError("GET zone", ["1001: invalid zone identifier"], status_code=404)
            return ZoneInfo(id=zone_id, name=self.zones[zone_id])

    def list_records(self, zone_id, record_type, name):
        self._enter(("list_records", zone_id, RecordType(record_type), name), "list_records")
        try:
            with self._lock:
                return [
                    r for r in self.records.get(zone_id, [])
                    if r.record_type == RecordType(record_type).value and r.name == name
                ]
        finally:
            self._leave()

    def create_record(self, zone_id: str, record: DesiredRecord) -> str:
        self._enter(("create_record", zone_id, record), "create_record")
        try:
            with self._lock:
                record_id = f"rec{next(self._ids)}"
                ttl = 1 if record.proxied else record.ttl
                self.records.setdefault(zone_id, []).append(
                    RemoteRecord(
                        id=record_id,
                        type=record.record_type.value,
                        name=record.fqdn,
                        content=record.content,
                        proxied=record.proxied,
                        ttl=ttl,
                    )
                )
                return record_id
        finally:
            self._leave()

    def update_record(self, zone_id: str, record_id: str, record: DesiredRecord) -> None:
        self._enter(("update_record", zone_id, record_id, record), "update_record")
        try:
            with self._lock:
                records = self.records[zone_id]
                for i, existing in enumerate(records):
                    if existing.id == record_id:
                        records[i] = RemoteRecord(
                            id=record_id,
                            type=record.record_type.value,
                            name=record.fqdn,
                            content=record.content,
                            proxied=record.proxied,
                            ttl=1 if record.proxied else record.ttl,
                        )
                        return
                raise ApiError("PUT record", ["81044: record not found"], status_code=404)
        finally:
            self._leave()


@pytest.fixture
def provider():
    return InMemoryDNS()


@pytest.fixture
def fast_policy():
    return RetryPolicy(max_attempts=2, initial_wait=0, max_wait=0)


@pytest.fixture
def quiet_logger():
    logger = DDNSLogger("ddns.tests")
    logger.set_level("CRITICAL")
    return logger
