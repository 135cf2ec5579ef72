"""
Client IP resolution.

Precedence:
  1. Platform-supplied IP (trusted, set by the edge runtime)
  2. First entry of X-Forwarded-For
  3. CF-Connecting-IP
  4. X-Real-IP

No syntax validation here. A garbage value is passed on to the
reputation service, which simply fails the lookup (→ pass-through).
"""

from collections.abc import Mapping

from fastapi import Request

from ispgate.config import Settings


def resolve_client_ip(headers: Mapping[str, str], platform_ip: str | None = None) -> str:
    """Best-effort client IP, or "" when nothing usable is present.

    `headers` must do case-insensitive lookups (Starlette Headers), or
    carry lowercase keys.
    """
    if platform_ip:
        return platform_ip

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        # First IP in chain is the client
        return forwarded.split(",")[0].strip()

    return headers.get("cf-connecting-ip") or headers.get("x-real-ip") or ""


def platform_ip_from_request(request: Request, settings: Settings) -> str | None:
    """IP handed to us out-of-band by the hosting runtime, if configured."""
    if settings.platform_ip_header:
        value = request.headers.get(settings.platform_ip_header)
        if value:
            return value.strip()
    if settings.trust_client_host and request.client:
        return request.client.host
    return None
