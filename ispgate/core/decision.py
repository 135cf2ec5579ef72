"""
Gate decisions.

Every classified request ends in exactly one of:
  Block(reason)            → 403 denial page
  Redirect(url, status)    → redirect away from the site
  PassThrough              → continue to normal handling
"""

from dataclasses import dataclass

REASON_KNOWN_BOT = "Blocked: known bot"
REASON_BOGON = "Blocked: bogon IP"
REASON_HOSTING = "Access denied (hosting/cloud/VPN/proxy IP)"


@dataclass(frozen=True)
class Block:
    reason: str

    @property
    def outcome(self) -> str:
        return "block"


@dataclass(frozen=True)
class Redirect:
    url: str
    status_code: int = 302

    @property
    def outcome(self) -> str:
        return "redirect"


@dataclass(frozen=True)
class PassThrough:
    @property
    def outcome(self) -> str:
        return "pass_through"


Decision = Block | Redirect | PassThrough

PASS_THROUGH = PassThrough()
