"""
ispgate configuration.
All secrets/tunables come from environment variables.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # --- App ---
    app_name: str = "ispgate"
    debug: bool = False
    log_level: str = "INFO"

    # --- Reputation service (ipinfo.io) ---
    # Empty token = reputation stage disabled, every request fails open.
    ipinfo_token: str = Field(
        default="",
        validation_alias=AliasChoices("IPINFO_TOKEN", "ISPGATE_IPINFO_TOKEN"),
    )
    reputation_host: str = "ipinfo.io"
    lookup_timeout_seconds: float = 5.0

    # --- Outcomes ---
    redirect_url: str = "https://myworkshop.net"
    redirect_status_code: int = 302

    # --- Client IP sources ---
    platform_ip_header: str = ""  # e.g. x-nf-client-connection-ip
    trust_client_host: bool = False

    # --- Middleware ---
    exempt_paths: list[str] = ["/health"]

    model_config = {
        "env_prefix": "ISPGATE_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
