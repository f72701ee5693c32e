"""
Pydantic configuration models.

Validates the zone configuration and runtime settings at startup instead
of failing half-way through a run with a bad TTL or a missing zone id.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigError

DEFAULT_TTL = 300
DEFAULT_CONCURRENCY_LIMIT = 10
MIN_TTL = 60
MAX_TTL = 86400

DEFAULT_IPV4_ENDPOINT = "https://api.ipify.org"
DEFAULT_IPV6_ENDPOINT = "https://api6.ipify.org"

APEX_MARKER = "@"


def _check_ttl(value: int) -> int:
    if value != 0 and not MIN_TTL <= value <= MAX_TTL:
        raise ValueError(f"TTL must be between {MIN_TTL} and {MAX_TTL} or 0 for default")
    return value


TTL = Annotated[int, AfterValidator(_check_ttl)]


class SubdomainConfig(BaseModel):
    """One name inside a zone. An empty name or ``@`` is the zone apex."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="", description="Label prefix, '' or '@' for the apex")
    proxied: bool = False
    ttl: TTL = Field(default=0, description="0 inherits from the zone")


class ZoneConfig(BaseModel):
    """One Cloudflare zone and the subdomains kept in it.

    The zone TTL, like ``DDNSConfig.default_ttl`` and each subdomain TTL, is
    either 0 (inherit) or within [60, 86400].
    """

    model_config = ConfigDict(extra="forbid")

    zone_id: str = Field(min_length=1)
    subdomains: list[SubdomainConfig] = Field(min_length=1)
    ttl: TTL = Field(default=0, description="0 inherits from default_ttl")

    @field_validator("zone_id")
    @classmethod
    def strip_zone_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("missing zone_id")
        return value


class DDNSConfig(BaseModel):
    """Top-level zone configuration (the ``CF_CONFIG`` document)."""

    model_config = ConfigDict(extra="forbid")

    zones: list[ZoneConfig] = Field(min_length=1)
    default_ttl: TTL = Field(default=0, description=f"0 means {DEFAULT_TTL}")
    concurrency_limit: int = Field(
        default=0, ge=0, description=f"Subdomains in flight per zone, 0 means {DEFAULT_CONCURRENCY_LIMIT}"
    )

    @property
    def effective_concurrency_limit(self) -> int:
        return self.concurrency_limit or DEFAULT_CONCURRENCY_LIMIT


class RuntimeSettings(BaseModel):
    """Credentials and switches for one run.

    Values are resolved in order:
    1. Explicit values passed in.
    2. Environment variables (CF_API_TOKEN, CF_IPV6_ENABLED,
       CF_IPV4_ENDPOINT, CF_IPV6_ENDPOINT).
    3. Built-in defaults; the API token has none and is required.
    """

    model_config = ConfigDict(extra="forbid")

    api_token: str = Field(min_length=1, description="Cloudflare API token")
    ipv6_enabled: bool = False
    ipv4_endpoint: str = DEFAULT_IPV4_ENDPOINT
    ipv6_endpoint: str = DEFAULT_IPV6_ENDPOINT

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing settings."""
        values = dict(values)
        if not values.get("api_token"):
            values["api_token"] = os.environ.get("CF_API_TOKEN", "")
        if values.get("ipv6_enabled") is None:
            values["ipv6_enabled"] = os.environ.get("CF_IPV6_ENABLED", "").strip().lower() == "true"
        env_map = {
            "ipv4_endpoint": "CF_IPV4_ENDPOINT",
            "ipv6_endpoint": "CF_IPV6_ENDPOINT",
        }
        for field, env_var in env_map.items():
            if not values.get(field) and os.environ.get(env_var):
                values[field] = os.environ[env_var]
        return values


def effective_ttl(subdomain_ttl: int, zone_ttl: int, default_ttl: int) -> int:
    """Resolve the TTL override chain; 0 at any level means inherit."""
    for ttl in (subdomain_ttl, zone_ttl, default_ttl):
        if ttl:
            return ttl
    return DEFAULT_TTL


def load_config(raw: str | Mapping[str, Any] | None = None) -> DDNSConfig:
    """Parse and validate the zone configuration.

    Args:
        raw: JSON text or an already-decoded mapping. Defaults to the
            ``CF_CONFIG`` environment variable.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the document is missing, is not JSON, or is invalid.
    """
    if raw is None:
        raw = os.environ.get("CF_CONFIG", "")
    if isinstance(raw, str):
        if not raw.strip():
            raise ConfigError("missing configuration (set CF_CONFIG)")
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"parse config: {e}") from e
    if not isinstance(raw, Mapping):
        raise ConfigError("configuration must be a JSON object")
    try:
        return DDNSConfig.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_settings(**overrides: Any) -> RuntimeSettings:
    """Build :class:`RuntimeSettings`, raising :class:`ConfigError` on failure."""
    try:
        return RuntimeSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e


__all__ = [
    "APEX_MARKER",
    "DEFAULT_CONCURRENCY_LIMIT",
    "DEFAULT_TTL",
    "DDNSConfig",
    "RuntimeSettings",
    "SubdomainConfig",
    "ZoneConfig",
    "effective_ttl",
    "load_config",
    "load_settings",
]
