"""
HTTP transport helpers.

One :class:`httpx.Client` is built by the entrypoint and handed to every
collaborator. The helpers here turn ``httpx`` and socket failures into the
package's typed errors so the retry layer never has to look at messages.
"""

from __future__ import annotations

import errno
import socket
from typing import Any, Iterator

import httpx

from .exceptions import ApiError, NetworkError, TransientTag

USER_AGENT = "cloudflare-ddns"

# Per-call limits; these are independent of the retry policy's waits.
CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 10.0
WRITE_TIMEOUT = 10.0
POOL_TIMEOUT = 30.0
KEEPALIVE_EXPIRY = 60.0

_STATUS_TAGS: dict[int, TransientTag] = {
    408: TransientTag.TIMEOUT,
    429: TransientTag.TEMPORARY,
}

_TEMPORARY_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.EAGAIN})


def build_http_client(
    transport: httpx.BaseTransport | None = None,
    **kwargs: Any,
) -> httpx.Client:
    """Create the shared HTTP client.

    Args:
        transport: Optional transport override (tests pass
            :class:`httpx.MockTransport`).
        **kwargs: Extra :class:`httpx.Client` arguments.

    Returns:
        A configured client; the caller owns it and must close it.
    """
    kwargs.setdefault(
        "timeout",
        httpx.Timeout(
            connect=CONNECT_TIMEOUT,
            read=READ_TIMEOUT,
            write=WRITE_TIMEOUT,
            pool=POOL_TIMEOUT,
        ),
    )
    kwargs.setdefault("limits", httpx.Limits(keepalive_expiry=KEEPALIVE_EXPIRY))
    kwargs.setdefault("follow_redirects", True)
    headers = {"User-Agent": USER_AGENT}
    headers.update(kwargs.pop("headers", {}) or {})
    return httpx.Client(transport=transport, headers=headers, **kwargs)


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_transport_error(exc: BaseException) -> TransientTag | None:
    """Map a transport failure onto a :class:`TransientTag`.

    Walks the exception chain so an ``httpx.ConnectError`` raised from a
    ``socket.gaierror`` is reported as a name resolution failure.

    Returns:
        The tag, or ``None`` if the error is not a transient network condition.
    """
    if isinstance(exc, NetworkError):
        return exc.tag
    for err in _chain(exc):
        if isinstance(err, (httpx.TimeoutException, TimeoutError)):
            return TransientTag.TIMEOUT
        if isinstance(err, socket.gaierror):
            return TransientTag.NAME_RESOLUTION_FAILURE
        if isinstance(err, ConnectionRefusedError):
            return TransientTag.CONNECTION_REFUSED
        if isinstance(err, ConnectionResetError):
            return TransientTag.CONNECTION_RESET
        if isinstance(err, OSError) and err.errno in _TEMPORARY_ERRNOS:
            return TransientTag.TEMPORARY
    if isinstance(exc, httpx.RemoteProtocolError):
        return TransientTag.CONNECTION_RESET
    if isinstance(exc, httpx.NetworkError):
        return TransientTag.TEMPORARY
    return None


def normalise_errors(raw: Any) -> list[str]:
    """Flatten a provider ``errors`` array into plain strings.

    Cloudflare reports ``{"code": ..., "message": ...}`` objects; plain
    strings are passed through.
    """
    if not raw:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    errors: list[str] = []
    for item in raw:
        if isinstance(item, dict):
            code = item.get("code")
            message = item.get("message", "")
            errors.append(f"{code}: {message}" if code is not None else str(message))
        else:
            errors.append(str(item))
    return errors


def check_status(response: httpx.Response) -> None:
    """Raise for non-2xx responses.

    408, 429 and 5xx are transient and raise :class:`NetworkError`; any other
    4xx raises :class:`ApiError` with the provider's error list when present.
    """
    code = response.status_code
    if code < 400:
        return
    snippet = response.text[:200]
    tag = _STATUS_TAGS.get(code)
    if tag is None and code >= 500:
        tag = TransientTag.TEMPORARY
    if tag is not None:
        raise NetworkError(f"HTTP {code}: {snippet}", tag, status_code=code)

    try:
        errors = normalise_errors(response.json().get("errors"))
    except (ValueError, AttributeError):
        errors = [snippet] if snippet else []
    raise ApiError(f"HTTP {code}", errors, status_code=code)


def send(client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Issue one request and translate failures into DDNS errors.

    Raises:
        NetworkError: Transient transport failure or retryable status.
        ApiError: Non-retryable 4xx status.
        httpx.TransportError: Transport failures that are not transient.
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.TransportError as exc:
        tag = classify_transport_error(exc)
        if tag is None:
            raise
        raise NetworkError(f"{method} {url}: {exc}", tag) from exc
    check_status(response)
    return response
