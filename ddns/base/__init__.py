"""Provider blueprint and core utilities.

The concrete provider in :mod:`ddns.cloudflare` implements
:class:`DNSBlueprint`; everything else here (retry, logging, config,
HTTP helpers) is provider-agnostic.
"""

from .dns import DNSBlueprint
from .records import (
    DesiredRecord,
    FailureKind,
    Outcome,
    RecordType,
    RemoteRecord,
    UpsertResult,
    ZoneInfo,
    ZoneReport,
)
from .retry import CancelToken, RetryPolicy, with_backoff


__all__ = [
    "DNSBlueprint",
    "DesiredRecord",
    "FailureKind",
    "Outcome",
    "RecordType",
    "RemoteRecord",
    "UpsertResult",
    "ZoneInfo",
    "ZoneReport",
    "CancelToken",
    "RetryPolicy",
    "with_backoff",
]
