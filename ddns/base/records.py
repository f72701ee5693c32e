"""
Record and result types shared by the provider, reconciler and controller.

Wire-facing shapes (:class:`RemoteRecord`, :class:`ZoneInfo`) are pydantic
models so a malformed provider response fails validation instead of
leaking half-decoded data into the reconciler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Provider sentinel for "automatic" TTL, forced on every proxied record.
AUTO_TTL = 1


class RecordType(str, Enum):
    """Address record types managed by this package."""

    A = "A"
    AAAA = "AAAA"


class DesiredRecord(BaseModel):
    """Target state for one (fqdn, type) pair. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    fqdn: str = Field(min_length=1)
    record_type: RecordType
    content: str = Field(min_length=1)
    proxied: bool = False
    ttl: int = Field(ge=AUTO_TTL)

    @field_validator("fqdn")
    @classmethod
    def lower_fqdn(cls, value: str) -> str:
        return value.strip().lower()

    def to_payload(self) -> dict[str, Any]:
        """Full field set sent on create and update."""
        return {
            "type": self.record_type.value,
            "name": self.fqdn,
            "content": self.content,
            "proxied": self.proxied,
            "ttl": self.ttl,
        }


class RemoteRecord(BaseModel):
    """A DNS record as reported by the provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    record_type: str = Field(alias="type")
    name: str
    content: str
    proxied: bool = False
    ttl: int


class ZoneInfo(BaseModel):
    """The subset of zone details needed to build record names."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str = Field(min_length=1)
    status: str | None = None


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    FAILED = "failed"


class FailureKind(str, Enum):
    NETWORK = "network"
    API = "api"
    DECODE = "decode"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class UpsertResult:
    """What happened to one record during a run.

    ``previous`` holds the remote record as it was before an update so the
    old content/proxied/ttl values stay available for auditing.
    """

    fqdn: str
    record_type: RecordType
    outcome: Outcome
    record_id: str | None = None
    previous: RemoteRecord | None = None
    failure: FailureKind | None = None
    error: BaseException | None = None


@dataclass
class ZoneReport:
    """Per-zone summary produced by the fan-out controller."""

    zone_id: str
    base_domain: str | None = None
    results: list[UpsertResult] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)
