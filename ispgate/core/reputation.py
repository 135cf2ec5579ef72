"""
IP reputation: lookup against ipinfo.io + blocking policy.

Lookup:
  GET https://{host}/{ip}?token={token}   (Accept: application/json)
  Never raises. Transport errors, non-2xx, bad JSON and non-object
  bodies all come back as a LookupResult carrying a LookupFailure.

Policy over a ReputationRecord:
  bogon                          → block
  hosting-like and not ISP user  → block
  ISP user                       → redirect
  anything else                  → pass-through

"Hosting-like" = any privacy flag (hosting/vpn/proxy/tor) or company type
hosting/business. "ISP user" = company type isp with no privacy flag set.
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from ispgate.core.decision import (
    PASS_THROUGH,
    REASON_BOGON,
    REASON_HOSTING,
    Block,
    Decision,
    Redirect,
)


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------

class PrivacyFlags(BaseModel):
    hosting: bool = False
    vpn: bool = False
    proxy: bool = False
    tor: bool = False

    @field_validator("hosting", "vpn", "proxy", "tor", mode="before")
    @classmethod
    def _null_is_false(cls, v):
        return False if v is None else v

    @property
    def any_set(self) -> bool:
        return self.hosting or self.vpn or self.proxy or self.tor


class CompanyInfo(BaseModel):
    type: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v):
        return "" if v is None else v

    @property
    def kind(self) -> str:
        return self.type.lower()


class ReputationRecord(BaseModel):
    """Subset of the ipinfo.io response we act on. Absent/null = false/empty."""

    bogon: bool = False
    privacy: PrivacyFlags = PrivacyFlags()
    company: CompanyInfo = CompanyInfo()

    @field_validator("bogon", mode="before")
    @classmethod
    def _null_bogon(cls, v):
        return False if v is None else v

    @field_validator("privacy", "company", mode="before")
    @classmethod
    def _null_section(cls, v):
        # non-object sections read as empty, like absent ones
        return v if isinstance(v, dict) else {}

    @property
    def is_hosting(self) -> bool:
        return self.privacy.any_set or self.company.kind in ("hosting", "business")

    @property
    def is_isp_user(self) -> bool:
        return self.company.kind == "isp" and not self.privacy.any_set


# ---------------------------------------------------------------------------
# Lookup result
# ---------------------------------------------------------------------------

class LookupFailure(str, Enum):
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    INVALID_JSON = "invalid_json"
    INVALID_PAYLOAD = "invalid_payload"


@dataclass(frozen=True)
class LookupResult:
    record: ReputationRecord | None = None
    error: LookupFailure | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: ReputationRecord, status_code: int | None = None) -> "LookupResult":
        return cls(record=record, status_code=status_code)

    @classmethod
    def failure(cls, error: LookupFailure, status_code: int | None = None) -> "LookupResult":
        return cls(error=error, status_code=status_code)


def parse_reputation(data) -> LookupResult:
    """Validate a decoded JSON body into a ReputationRecord."""
    if not isinstance(data, dict):
        return LookupResult.failure(LookupFailure.INVALID_PAYLOAD)
    try:
        return LookupResult.success(ReputationRecord.model_validate(data))
    except ValidationError:
        return LookupResult.failure(LookupFailure.INVALID_PAYLOAD)


class ReputationClient:
    """One-shot ipinfo.io lookups. No retries, no caching."""

    def __init__(
        self,
        token: str,
        host: str = "ipinfo.io",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.host = host
        self.timeout = timeout
        self._transport = transport

    def url_for(self, ip: str) -> str:
        path = quote(ip, safe=':')
        if not path.strip('.'):
            # "." or ".." would be collapsed to "/", i.e. a lookup of our own egress IP
            path = path.replace('.', '%2E')
        return f"https://{self.host}/{path}"

    async def lookup(self, ip: str) -> LookupResult:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.get(
                    self.url_for(ip),
                    params={"token": self.token},
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException:
            return LookupResult.failure(LookupFailure.TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL):
            return LookupResult.failure(LookupFailure.NETWORK_ERROR)

        if not resp.is_success:
            return LookupResult.failure(LookupFailure.HTTP_STATUS, resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            return LookupResult.failure(LookupFailure.INVALID_JSON, resp.status_code)

        result = parse_reputation(data)
        if result.ok:
            return LookupResult.success(result.record, resp.status_code)
        return LookupResult.failure(result.error, resp.status_code)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

def evaluate_reputation(
    record: ReputationRecord,
    redirect_url: str = "https://myworkshop.net",
    redirect_status_code: int = 302,
) -> Decision:
    if record.bogon:
        return Block(REASON_BOGON)

    # ISP classification wins only when no privacy flag is set
    if record.is_hosting and not record.is_isp_user:
        return Block(REASON_HOSTING)

    if record.is_isp_user:
        return Redirect(redirect_url, redirect_status_code)

    return PASS_THROUGH
