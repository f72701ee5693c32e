"""cloudflare-ddns command line entry point.

Usage examples::

    CF_API_TOKEN=... CF_CONFIG='{"zones": [...]}' cloudflare-ddns
    cloudflare-ddns --config-file zones.json --ipv6 --log-level DEBUG

Exit status is 0 when the run reached the reconciliation stage (even if
some records or zones failed) and 1 for fatal startup errors: bad
configuration, a missing token or no public IPv4 address.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import uuid
from pathlib import Path

import httpx
from pydantic import ValidationError

from ddns import __version__
from ddns.base.config import DDNSConfig, RuntimeSettings, load_config, load_settings
from ddns.base.exceptions import ConfigError, DDNSError
from ddns.base.http import build_http_client
from ddns.base.logger import DDNSLogger, ddns_logger
from ddns.base.records import Outcome
from ddns.base.retry import DEFAULT_POLICY, CancelToken, RetryPolicy
from ddns.cloudflare.dns import CloudflareDNS
from ddns.ip import get_public_ip
from ddns.reconciler import RecordReconciler
from ddns.zones import ZoneController


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``cloudflare-ddns`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="cloudflare-ddns",
        description="Point Cloudflare A/AAAA records at this host's public IP",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="JSON zone configuration (defaults to $CF_CONFIG)",
    )
    source.add_argument(
        "--config-file", "-f",
        type=Path,
        default=None,
        help="Path to a JSON zone configuration file",
    )
    parser.add_argument(
        "--ipv6",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also manage AAAA records (defaults to $CF_IPV6_ENABLED)",
    )
    parser.add_argument(
        "--log-level", "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum log level",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=DEFAULT_POLICY.max_attempts,
        help="Retries per network call",
    )
    parser.add_argument(
        "--initial-wait",
        type=float,
        default=DEFAULT_POLICY.initial_wait,
        help="Seconds before the first retry",
    )
    parser.add_argument(
        "--max-wait",
        type=float,
        default=DEFAULT_POLICY.max_wait,
        help="Cap on the wait between retries, in seconds",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _install_signal_handlers(cancel: CancelToken) -> None:
    def _handler(signum: int, _frame: object) -> None:
        cancel.cancel(f"received {signal.Signals(signum).name}")

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handler)


def run(
    settings: RuntimeSettings,
    config: DDNSConfig,
    policy: RetryPolicy = DEFAULT_POLICY,
    cancel: CancelToken | None = None,
    client: httpx.Client | None = None,
    logger: DDNSLogger | None = None,
) -> int:
    """Discover the public IPs and reconcile every configured zone.

    Args:
        settings: Token, endpoints and the IPv6 switch.
        config: Validated zone configuration.
        policy: Retry policy for every network call.
        cancel: Run-wide cancellation signal.
        client: HTTP client to use; one is built (and closed) if omitted.
        logger: Log sink; defaults to the package logger.

    Returns:
        The process exit code.
    """
    log = logger or ddns_logger
    run_id = uuid.uuid4().hex[:12]
    owns_client = client is None
    http = client or build_http_client()
    try:
        try:
            ipv4 = get_public_ip(
                http, settings.ipv4_endpoint, False, policy, cancel=cancel, logger=log
            )
        except DDNSError as e:
            log.error("fatal error", operation="get IPv4", run_id=run_id, error=e)
            return 1
        log.info("detected public ip", record_type="A", content=ipv4, run_id=run_id)

        ipv6: str | None = None
        if settings.ipv6_enabled:
            try:
                ipv6 = get_public_ip(
                    http, settings.ipv6_endpoint, True, policy, cancel=cancel, logger=log
                )
            except DDNSError as e:
                log.warning("ipv6 detection failed after retries", run_id=run_id, error=e)
            else:
                log.info("detected public ip", record_type="AAAA", content=ipv6, run_id=run_id)

        provider = CloudflareDNS(settings.api_token, http)
        reconciler = RecordReconciler(provider, policy, cancel=cancel, logger=log)
        controller = ZoneController(reconciler)
        reports = controller.process_zones(
            config.zones,
            ipv4,
            ipv6,
            default_ttl=config.default_ttl,
            concurrency_limit=config.effective_concurrency_limit,
        )
    finally:
        if owns_client:
            http.close()

    for report in reports:
        if not report.ok:
            continue
        log.info(
            "zone processed",
            run_id=run_id,
            zone_id=report.zone_id,
            base_domain=report.base_domain,
            created_count=report.count(Outcome.CREATED),
            updated_count=report.count(Outcome.UPDATED),
            up_to_date_count=report.count(Outcome.UP_TO_DATE),
            failed_count=report.count(Outcome.FAILED),
        )
    failed_zones = sum(1 for report in reports if not report.ok)
    if failed_zones:
        log.warning("cloudflare-ddns completed with zone failures", run_id=run_id, count=failed_zones)
    else:
        log.info("cloudflare-ddns completed successfully", run_id=run_id)
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    ddns_logger.set_level(getattr(logging, ns.log_level))
    ddns_logger.info("starting cloudflare-ddns", version=__version__)

    try:
        settings = load_settings(ipv6_enabled=ns.ipv6)
        raw = ns.config
        if ns.config_file is not None:
            try:
                raw = ns.config_file.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"read config file: {e}") from e
        config = load_config(raw)
        try:
            policy = RetryPolicy(
                max_attempts=ns.max_retries,
                initial_wait=ns.initial_wait,
                max_wait=ns.max_wait,
            )
        except ValidationError as e:
            raise ConfigError(f"invalid retry policy: {e}") from e
    except ConfigError as e:
        ddns_logger.error("fatal error", operation="load config", error=e)
        sys.exit(1)

    cancel = CancelToken()
    _install_signal_handlers(cancel)
    sys.exit(run(settings, config, policy, cancel=cancel))


if __name__ == "__main__":
    main()
