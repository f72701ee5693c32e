"""Public IP discovery."""

from __future__ import annotations

import ipaddress

import httpx

from ddns.base.exceptions import InvalidAddressError, IPDiscoveryError
from ddns.base.http import send
from ddns.base.logger import DDNSLogger, ddns_logger
from ddns.base.retry import DEFAULT_POLICY, CancelToken, RetryPolicy, with_backoff


def fetch_ip(client: httpx.Client, url: str) -> str:
    """Return the trimmed body of a single GET against *url*.

    Raises:
        IPDiscoveryError: On a non-200 status or an empty body.
    """
    response = send(client, "GET", url)
    if response.status_code != 200:
        raise IPDiscoveryError(f"unexpected status: {response.status_code}")
    result = response.text.strip()
    if not result:
        raise IPDiscoveryError(f"empty response from {url}")
    return result


def validate_ip(ip: str, want_ipv6: bool) -> str:
    """Check that *ip* is an address of the requested family.

    Returns:
        The address in canonical text form.

    Raises:
        InvalidAddressError: If *ip* does not parse or has the wrong family.
    """
    try:
        parsed = ipaddress.ip_address(ip)
    except ValueError as e:
        raise InvalidAddressError(f"invalid IP address: {ip}") from e
    if want_ipv6 and parsed.version != 6:
        raise InvalidAddressError(f"expected IPv6 but got IPv4: {ip}")
    if not want_ipv6 and parsed.version != 4:
        raise InvalidAddressError(f"expected IPv4 but got IPv6: {ip}")
    return str(parsed)


def get_public_ip(
    client: httpx.Client,
    endpoint: str,
    want_ipv6: bool = False,
    policy: RetryPolicy = DEFAULT_POLICY,
    cancel: CancelToken | None = None,
    logger: DDNSLogger | None = None,
) -> str:
    """Discover this host's public address, retrying transient failures.

    Raises:
        RetryError: When discovery ultimately fails.
    """
    family = "IPv6" if want_ipv6 else "IPv4"
    return with_backoff(
        f"get {family}",
        lambda: validate_ip(fetch_ip(client, endpoint), want_ipv6),
        policy,
        cancel=cancel,
        logger=logger or ddns_logger,
    )
