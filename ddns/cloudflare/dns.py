"""Cloudflare v4 API implementation of the DNS blueprint."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ddns.base.dns import DNSBlueprint
from ddns.base.exceptions import ApiError, DecodeError
from ddns.base.http import normalise_errors, send
from ddns.base.records import DesiredRecord, RecordType, RemoteRecord, ZoneInfo

API_BASE_URL = "https://api.cloudflare.com/client/v4"


class _Envelope(BaseModel):
    """The ``{success, errors, result}`` wrapper around every response."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    errors: list[Any] = Field(default_factory=list)
    result: Any = None


class CloudflareDNS(DNSBlueprint):
    """Cloudflare DNS service.

    Attributes:
        client: Shared :class:`httpx.Client`; owned by the caller.
        base_url: API root, overridable for tests.
    """

    def __init__(
        self,
        api_token: str,
        client: httpx.Client,
        base_url: str = API_BASE_URL,
    ) -> None:
        """Initialize the provider.

        Args:
            api_token: API token with DNS edit permission on every zone.
            client: HTTP client to send requests through.
            base_url: API root URL.
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request and return the envelope's ``result``.

        Raises:
            NetworkError: Transient transport failure or 408/429/5xx.
            ApiError: Non-2xx 4xx status, or ``success=false``.
            DecodeError: Body is not JSON or not an envelope.
        """
        response = send(
            self.client, method, f"{self.base_url}{path}", headers=self._headers, **kwargs
        )
        try:
            envelope = _Envelope.model_validate(response.json())
        except ValueError as e:
            # ValidationError is a ValueError too
            raise DecodeError(f"{method} {path}: malformed response: {e}") from e
        if not envelope.success:
            raise ApiError(
                f"{method} {path}: API error",
                normalise_errors(envelope.errors),
                status_code=response.status_code,
            )
        return envelope.result

    def get_zone_info(self, zone_id: str) -> ZoneInfo:
        """Fetch a zone.

        Raises:
            DecodeError: If the zone payload has no name.
        """
        result = self._request("GET", f"/zones/{zone_id}")
        try:
            return ZoneInfo.model_validate(result)
        except ValidationError as e:
            raise DecodeError(f"zone '{zone_id}': unexpected zone payload: {e}") from e

    def list_records(
        self, zone_id: str, record_type: RecordType, name: str
    ) -> list[RemoteRecord]:
        """List records with an exact name and type, in response order."""
        result = self._request(
            "GET",
            f"/zones/{zone_id}/dns_records",
            params={"type": RecordType(record_type).value, "name": name},
        )
        if result is None:
            return []
        if not isinstance(result, list):
            raise DecodeError(f"zone '{zone_id}': expected a record list, got {type(result).__name__}")
        try:
            return [RemoteRecord.model_validate(item) for item in result]
        except ValidationError as e:
            raise DecodeError(f"zone '{zone_id}': unexpected record payload: {e}") from e

    def create_record(self, zone_id: str, record: DesiredRecord) -> str:
        """Create a record.

        Returns:
            The new record id, or an empty string if the API omitted it.
        """
        result = self._request(
            "POST", f"/zones/{zone_id}/dns_records", json=record.to_payload()
        )
        if isinstance(result, dict):
            return str(result.get("id") or "")
        return ""

    def update_record(self, zone_id: str, record_id: str, record: DesiredRecord) -> None:
        """Overwrite an existing record with the full desired field set."""
        self._request(
            "PUT", f"/zones/{zone_id}/dns_records/{record_id}", json=record.to_payload()
        )
