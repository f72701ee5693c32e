"""Tests for the cloudflare-ddns entry point."""

import json
from unittest.mock import patch

import httpx
import pytest

from ddns.base.config import RuntimeSettings, load_config
from ddns.base.http import build_http_client
from ddns.base.retry import CancelToken, RetryPolicy
from ddns.cli import _build_parser, main, run

FAST = RetryPolicy(max_attempts=1, initial_wait=0, max_wait=0)

CONFIG = {
    "zones": [
        {"zone_id": "z1", "subdomains": [{"name": "@"}, {"name": "www", "proxied": True}]},
        {"zone_id": "z-missing", "subdomains": [{"name": "www"}]},
    ],
    "default_ttl": 600,
}


class FakeCloudflare:
    """Routes ipify and Cloudflare requests to canned responses."""

    def __init__(self, ipv4="1.2.3.4", ipv6="2001:db8::1", ipv4_status=200):
        self.ipv4 = ipv4
        self.ipv6 = ipv6
        self.ipv4_status = ipv4_status
        self.writes = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        path = request.url.path
        if host == "api.ipify.org":
            return httpx.Response(self.ipv4_status, text=self.ipv4)
        if host == "api6.ipify.org":
            return httpx.Response(200, text=self.ipv6)
        if path.endswith("/zones/z1"):
            return httpx.Response(200, json={"success": True, "result": {"name": "example.com"}})
        if "/zones/z-missing" in path:
            return httpx.Response(
                404, json={"success": False, "errors": [{"code": 1001, "message": "invalid zone"}]}
            )
        if request.method == "GET" and path.endswith("/dns_records"):
            return httpx.Response(200, json={"success": True, "result": []})
        self.writes.append((request.method, json.loads(request.content)))
        return httpx.Response(200, json={"success": True, "result": {"id": "new"}})


def _settings(**kw):
    kw.setdefault("api_token", "tok")
    return RuntimeSettings(**kw)


class TestRun:
    def test_partial_success_exits_zero(self, quiet_logger):
        fake = FakeCloudflare()
        client = build_http_client(transport=httpx.MockTransport(fake))
        code = run(_settings(ipv6_enabled=False), load_config(CONFIG), FAST,
                   client=client, logger=quiet_logger)
        assert code == 0
        names = sorted(body["name"] for _, body in fake.writes)
        assert names == ["example.com", "www.example.com"]
        assert all(body["type"] == "A" and body["ttl"] == 600 for _, body in fake.writes)

    def test_ipv6_enabled(self, quiet_logger):
        fake = FakeCloudflare()
        client = build_http_client(transport=httpx.MockTransport(fake))
        run(_settings(ipv6_enabled=True), load_config(CONFIG), FAST,
            client=client, logger=quiet_logger)
        types = sorted(body["type"] for _, body in fake.writes)
        assert types == ["A", "A", "AAAA", "AAAA"]

    def test_ipv6_failure_is_not_fatal(self, quiet_logger):
        fake = FakeCloudflare(ipv6="1.2.3.4")
        client = build_http_client(transport=httpx.MockTransport(fake))
        code = run(_settings(ipv6_enabled=True), load_config(CONFIG), FAST,
                   client=client, logger=quiet_logger)
        assert code == 0
        assert all(body["type"] == "A" for _, body in fake.writes)

    def test_ipv4_failure_is_fatal(self, quiet_logger):
        fake = FakeCloudflare(ipv4_status=500)
        client = build_http_client(transport=httpx.MockTransport(fake))
        code = run(_settings(), load_config(CONFIG), FAST, client=client, logger=quiet_logger)
        assert code == 1
        assert fake.writes == []

    def test_cancelled_before_discovery_is_fatal(self, quiet_logger):
        fake = FakeCloudflare()
        client = build_http_client(transport=httpx.MockTransport(fake))
        cancel = CancelToken()
        cancel.cancel("test")
        code = run(_settings(), load_config(CONFIG), FAST, cancel=cancel,
                   client=client, logger=quiet_logger)
        assert code == 1


class TestMain:
    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("CF_API_TOKEN", raising=False)
        monkeypatch.setenv("CF_CONFIG", json.dumps(CONFIG))
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_bad_config(self, monkeypatch):
        monkeypatch.setenv("CF_API_TOKEN", "tok")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", '{"zones": []}'])
        assert exc_info.value.code == 1

    def test_missing_config_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CF_API_TOKEN", "tok")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config-file", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1

    def test_invalid_retry_policy(self, monkeypatch):
        monkeypatch.setenv("CF_API_TOKEN", "tok")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", json.dumps(CONFIG), "--max-retries", "-1"])
        assert exc_info.value.code == 1

    def test_full_run(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CF_API_TOKEN", "tok")
        monkeypatch.delenv("CF_IPV6_ENABLED", raising=False)
        cfg = tmp_path / "zones.json"
        cfg.write_text(json.dumps(CONFIG))
        fake = FakeCloudflare()
        client = build_http_client(transport=httpx.MockTransport(fake))
        with patch("ddns.cli.build_http_client", return_value=client), \
                patch("ddns.cli._install_signal_handlers") as handlers, \
                pytest.raises(SystemExit) as exc_info:
            main(["--config-file", str(cfg), "--max-retries", "0", "--no-ipv6",
                  "--log-level", "ERROR"])
        assert exc_info.value.code == 0
        handlers.assert_called_once()
        assert len(fake.writes) == 2


def test_parser_defaults():
    ns = _build_parser().parse_args([])
    assert ns.ipv6 is None
    assert ns.max_retries == 5
    assert ns.initial_wait == 1.0
    assert ns.max_wait == 32.0
