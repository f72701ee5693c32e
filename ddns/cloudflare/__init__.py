"""Cloudflare implementation of the DNS blueprint."""

from .dns import CloudflareDNS

__all__ = ["CloudflareDNS"]
