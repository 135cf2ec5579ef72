"""
Gatekeeper middleware: classify every inbound request before routing.

Block / Redirect are answered here; PassThrough hands the request to
the wrapped application untouched (call_next).
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ispgate.config import Settings
from ispgate.core.block_page import render_decision
from ispgate.core.classifier import Classification, RequestClassifier
from ispgate.core.client_ip import platform_ip_from_request
from ispgate.core.decision import PASS_THROUGH

import structlog

logger = structlog.get_logger()


async def classify_request(
    request: Request,
    classifier: RequestClassifier,
    settings: Settings,
) -> Classification:
    """Run the classifier for a request. Never raises: errors pass through."""
    try:
        result = await classifier.classify(
            user_agent=request.headers.get("user-agent"),
            headers=request.headers,
            platform_ip=platform_ip_from_request(request, settings),
        )
    except Exception:
        logger.exception("classification_error", path=request.url.path)
        return Classification(PASS_THROUGH)

    logger.info("request_classified",
                outcome=result.decision.outcome,
                reason=getattr(result.decision, "reason", None),
                signature=result.signature,
                ip=result.ip,
                path=request.url.path)
    return result


class GatekeeperMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        classifier: RequestClassifier,
        settings: Settings,
        exempt_paths: list[str] | None = None,
    ):
        super().__init__(app)
        self.classifier = classifier
        self.settings = settings
        self.exempt_paths = set(settings.exempt_paths) | set(exempt_paths or ())

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        result = await classify_request(request, self.classifier, self.settings)

        response: Response | None = render_decision(result.decision)
        if response is None:
            return await call_next(request)
        return response
