"""Tests for the gatekeeper middleware, /verify and /health."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ispgate.config import Settings
from ispgate.main import create_app

from conftest import REAL_CHROME_UA, FakeIpinfo

BROWSER = {"user-agent": REAL_CHROME_UA, "x-forwarded-for": "9.9.9.9, 10.0.0.1"}


def _client(fake: FakeIpinfo, settings: Settings | None = None) -> TestClient:
    app = create_app(settings or Settings(ipinfo_token="test-token"), transport=fake.transport)

    @app.get("/page")
    async def page():
        return {"page": "origin"}

    return TestClient(app)


class TestMiddleware:
    def test_bot_gets_403_page(self, isp_ipinfo):
        resp = _client(isp_ipinfo).get("/page", headers={"user-agent": "Mozilla/5.0 Googlebot/2.1"})
        assert resp.status_code == 403
        assert resp.headers["content-type"] == "text/html; charset=utf-8"
        assert "Blocked: known bot" in resp.text
        assert isp_ipinfo.calls == []

    def test_isp_user_redirected(self, isp_ipinfo):
        resp = _client(isp_ipinfo).get("/page", headers=BROWSER, follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "https://myworkshop.net"

    def test_hosting_blocked(self):
        fake = FakeIpinfo({"company": {"type": "hosting"}, "privacy": {"vpn": True}})
        resp = _client(fake).get("/page", headers=BROWSER)
        assert resp.status_code == 403
        assert "Access denied (hosting/cloud/VPN/proxy IP)" in resp.text

    def test_bogon_blocked(self):
        resp = _client(FakeIpinfo({"bogon": True})).get("/page", headers=BROWSER)
        assert resp.status_code == 403
        assert "Blocked: bogon IP" in resp.text

    def test_unknown_company_reaches_origin(self):
        fake = FakeIpinfo({"company": {"type": "education"}})
        resp = _client(fake).get("/page", headers=BROWSER)
        assert resp.status_code == 200
        assert resp.json() == {"page": "origin"}

    def test_upstream_500_reaches_origin(self):
        resp = _client(FakeIpinfo({}, status_code=500)).get("/page", headers=BROWSER)
        assert resp.status_code == 200
        assert resp.json() == {"page": "origin"}

    def test_no_token_reaches_origin(self, isp_ipinfo):
        client = _client(isp_ipinfo, Settings(ipinfo_token=""))
        resp = client.get("/page", headers=BROWSER)
        assert resp.status_code == 200
        assert isp_ipinfo.calls == []

    def test_platform_ip_header(self, isp_ipinfo):
        settings = Settings(ipinfo_token="test-token", platform_ip_header="x-nf-client-connection-ip")
        headers = dict(BROWSER, **{"x-nf-client-connection-ip": "5.5.5.5"})
        _client(isp_ipinfo, settings).get("/page", headers=headers, follow_redirects=False)
        assert isp_ipinfo.calls[0].url.path == "/5.5.5.5"

    def test_trusted_peer_address(self, isp_ipinfo):
        settings = Settings(ipinfo_token="test-token", trust_client_host=True)
        _client(isp_ipinfo, settings).get("/page", headers=BROWSER, follow_redirects=False)
        # TestClient reports its peer as "testclient"
        assert isp_ipinfo.calls[0].url.path == "/testclient"

    def test_platform_header_beats_peer_address(self, isp_ipinfo):
        settings = Settings(
            ipinfo_token="test-token",
            platform_ip_header="x-nf-client-connection-ip",
            trust_client_host=True,
        )
        headers = dict(BROWSER, **{"x-nf-client-connection-ip": "5.5.5.5"})
        _client(isp_ipinfo, settings).get("/page", headers=headers, follow_redirects=False)
        assert isp_ipinfo.calls[0].url.path == "/5.5.5.5"

    def test_peer_address_ignored_by_default(self, isp_ipinfo):
        _client(isp_ipinfo).get("/page", headers=BROWSER, follow_redirects=False)
        assert isp_ipinfo.calls[0].url.path == "/9.9.9.9"

    def test_classifier_crash_fails_open(self, isp_ipinfo):
        client = _client(isp_ipinfo)
        client.app.state.classifier.classify = AsyncMock(side_effect=RuntimeError("boom"))
        resp = client.get("/page", headers=BROWSER)
        assert resp.status_code == 200
        assert resp.json() == {"page": "origin"}


class TestVerifyEndpoint:
    def test_pass_through_is_empty_200(self):
        fake = FakeIpinfo({"company": {"type": "education"}})
        resp = _client(fake).get("/verify", headers=BROWSER)
        assert resp.status_code == 200
        assert resp.content == b""
        assert len(fake.calls) == 1

    def test_block(self, isp_ipinfo):
        resp = _client(isp_ipinfo).get("/verify", headers={"user-agent": "curl/8.4.0"})
        assert resp.status_code == 403

    def test_redirect(self, isp_ipinfo):
        resp = _client(isp_ipinfo).get("/verify", headers=BROWSER, follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "https://myworkshop.net"


class TestHealth:
    def test_health_exempt_from_gate(self, isp_ipinfo):
        resp = _client(isp_ipinfo).get("/health", headers={"user-agent": "UptimeRobot/2.0"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["service"] == "ispgate"
        assert resp.json()["reputation"] == "enabled"

    def test_service_name_from_settings(self, isp_ipinfo):
        client = _client(isp_ipinfo, Settings(ipinfo_token="t", app_name="edge-gate"))
        assert client.get("/health").json()["service"] == "edge-gate"
        assert client.app.title == "edge-gate"

    @pytest.mark.parametrize("token,state", [("t", "enabled"), ("", "disabled")])
    def test_reports_reputation_state(self, isp_ipinfo, token, state):
        resp = _client(isp_ipinfo, Settings(ipinfo_token=token)).get("/health")
        assert resp.json()["reputation"] == state
