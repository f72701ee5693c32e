"""cloudflare-ddns: keep Cloudflare A/AAAA records pointed at this host.

Wire the pieces together yourself, or run the ``cloudflare-ddns`` CLI::

    from ddns import CloudflareDNS, RecordReconciler, ZoneController
    from ddns.base.http import build_http_client

    with build_http_client() as client:
        reconciler = RecordReconciler(CloudflareDNS(token, client))
        reports = ZoneController(reconciler).process_zones(config.zones, ipv4)
"""

__version__ = "0.1.0"

from .base import (
    DNSBlueprint,
    DesiredRecord,
    Outcome,
    RecordType,
    RemoteRecord,
    RetryPolicy,
    UpsertResult,
    ZoneReport,
    with_backoff,
)
from .cloudflare import CloudflareDNS
from .reconciler import RecordReconciler, is_up_to_date
from .zones import ZoneController, build_fqdn

__all__ = [
    "DNSBlueprint",
    "DesiredRecord",
    "Outcome",
    "RecordType",
    "RemoteRecord",
    "RetryPolicy",
    "UpsertResult",
    "ZoneReport",
    "with_backoff",
    "CloudflareDNS",
    "RecordReconciler",
    "is_up_to_date",
    "ZoneController",
    "build_fqdn",
]
