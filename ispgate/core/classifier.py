"""
Request classifier: the gate's decision tree.

Stages, strictly in order, each able to end evaluation:
  1. Bot signature on the user-agent        → Block
  2. Client IP resolution                   → PassThrough if none
  3. Reputation lookup + policy             → Block / Redirect / PassThrough

Every uncertain outcome (no IP, no token, failed lookup) goes through
_uncertain() and ends as PassThrough: the gate fails open.
"""

from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from ispgate.config import Settings
from ispgate.core.bot_signatures import match_bot_signature
from ispgate.core.client_ip import resolve_client_ip
from ispgate.core.decision import PASS_THROUGH, REASON_KNOWN_BOT, Block, Decision
from ispgate.core.reputation import LookupResult, ReputationClient, evaluate_reputation

logger = structlog.get_logger()


@dataclass(frozen=True)
class Classification:
    decision: Decision
    ip: str = ""
    signature: str | None = None
    lookup: LookupResult | None = None


class RequestClassifier:
    def __init__(
        self,
        token: str,
        reputation: ReputationClient | None = None,
        redirect_url: str = "https://myworkshop.net",
        redirect_status_code: int = 302,
    ):
        self.token = token
        self.reputation = reputation or ReputationClient(token)
        self.redirect_url = redirect_url
        self.redirect_status_code = redirect_status_code

    @classmethod
    def from_settings(cls, settings: Settings, transport=None) -> "RequestClassifier":
        return cls(
            token=settings.ipinfo_token,
            reputation=ReputationClient(
                settings.ipinfo_token,
                host=settings.reputation_host,
                timeout=settings.lookup_timeout_seconds,
                transport=transport,
            ),
            redirect_url=settings.redirect_url,
            redirect_status_code=settings.redirect_status_code,
        )

    @staticmethod
    def _uncertain(ip: str = "", lookup: LookupResult | None = None) -> Classification:
        return Classification(PASS_THROUGH, ip=ip, lookup=lookup)

    async def classify(
        self,
        user_agent: str | None,
        headers: Mapping[str, str],
        platform_ip: str | None = None,
    ) -> Classification:
        # --- 1. Bot signatures ---
        signature = match_bot_signature(user_agent)
        if signature:
            return Classification(Block(REASON_KNOWN_BOT), signature=signature)

        # --- 2. Client IP ---
        ip = resolve_client_ip(headers, platform_ip)
        if not ip:
            return self._uncertain()

        # --- 3. Reputation ---
        if not self.token:
            return self._uncertain(ip)

        result = await self.reputation.lookup(ip)
        if not result.ok:
            logger.info("reputation_lookup_failed", ip=ip,
                        error=result.error.value, status_code=result.status_code)
            return self._uncertain(ip, result)

        decision = evaluate_reputation(
            result.record,
            redirect_url=self.redirect_url,
            redirect_status_code=self.redirect_status_code,
        )
        return Classification(decision, ip=ip, lookup=result)

    async def decide(
        self,
        user_agent: str | None,
        headers: Mapping[str, str],
        platform_ip: str | None = None,
    ) -> Decision:
        return (await self.classify(user_agent, headers, platform_ip)).decision
