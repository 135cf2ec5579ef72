"""
ispgate: ISP/hosting/bot gatekeeper.
Main application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ispgate.api.verify import router as verify_router
from ispgate.config import Settings, get_settings
from ispgate.core.classifier import RequestClassifier
from ispgate.middleware.gatekeeper import GatekeeperMiddleware

import structlog

VERSION = "0.1.0"


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


logger = structlog.get_logger()


def create_app(settings: Settings | None = None, transport=None) -> FastAPI:
    """Build the gate app. `transport` overrides the reputation HTTP transport (tests)."""
    settings = settings or get_settings()
    configure_logging(settings)

    classifier = RequestClassifier.from_settings(settings, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("ispgate_starting", reputation_host=settings.reputation_host)
        if not settings.ipinfo_token:
            logger.warning("reputation_disabled", detail="IPINFO_TOKEN not set; IP checks fail open")
        yield
        logger.info("ispgate_shutting_down")

    app = FastAPI(
        title=settings.app_name,
        description="Blocks bots and hosting/VPN traffic, redirects ISP visitors.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.classifier = classifier

    # /verify classifies on its own
    app.add_middleware(
        GatekeeperMiddleware,
        classifier=classifier,
        settings=settings,
        exempt_paths=["/verify"],
    )

    # --- Routes ---
    app.include_router(verify_router)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": settings.app_name,
            "version": VERSION,
            "reputation": "enabled" if settings.ipinfo_token else "disabled",
        }

    return app


app = create_app()
