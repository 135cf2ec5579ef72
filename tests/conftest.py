"""Pytest configuration."""

import os

import httpx
import pytest

# Tests build their own Settings; a real token must never leak in
os.environ.pop("IPINFO_TOKEN", None)
os.environ.pop("ISPGATE_IPINFO_TOKEN", None)
os.environ.setdefault("ISPGATE_DEBUG", "true")

REAL_CHROME_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FakeIpinfo:
    """httpx handler standing in for ipinfo.io. Records every call."""

    def __init__(self, payload=None, status_code: int = 200, raw: bytes | None = None, exc=None):
        self.payload = payload if payload is not None else {}
        self.status_code = status_code
        self.raw = raw
        self.exc = exc
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.exc is not None:
            raise self.exc
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def isp_ipinfo() -> FakeIpinfo:
    return FakeIpinfo({"ip": "9.9.9.9", "company": {"type": "isp"}, "privacy": {}})
