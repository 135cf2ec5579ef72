"""
Bot signature matching: first gate stage.

Any user-agent hitting one of these patterns is blocked outright,
before IP resolution or the reputation lookup.
Patterns are ORed; order does not matter.
"""

import re

BOT_UA_PATTERNS: tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in [
        # Generic automation tokens
        r"\bbot\b",
        r"crawler",
        r"spider",
        r"archiver",
        r"uptime",
        r"monitor",
        r"validator",
        r"fetcher",
        r"scrape",
        # CLI / library HTTP clients
        r"curl/",
        r"wget/",
        r"python-requests",
        r"httpclient",
        # Search engines
        r"googlebot",
        r"bingbot",
        r"yandex",
        r"baiduspider",
        r"duckduckbot",
        # SEO tools
        r"ahrefsbot",
        r"semrushbot",
        r"mj12bot",
        # Social / chat link unfurlers
        r"facebookexternalhit",
        r"facebookbot",
        r"twitterbot",
        r"slackbot",
        r"discordbot",
        r"linkedinbot",
    ]
)


def match_bot_signature(user_agent: str | None) -> str | None:
    """Return the first matching signature pattern, or None."""
    ua_str = (user_agent or "").lower()
    for pattern in BOT_UA_PATTERNS:
        if pattern.search(ua_str):
            return pattern.pattern
    return None


def is_known_bot(user_agent: str | None) -> bool:
    return match_bot_signature(user_agent) is not None
