"""
Forward-auth endpoint: /verify

For reverse proxies that delegate the access decision (nginx auth_request,
Traefik forwardAuth). The proxy forwards the visitor's headers; we answer:
  pass-through → 200, empty body (proxy continues to the origin)
  block        → 403 denial page
  redirect     → 302 to the configured destination
"""

from fastapi import APIRouter, Request, Response

from ispgate.core.block_page import render_decision
from ispgate.middleware.gatekeeper import classify_request

router = APIRouter(tags=["gate"])


@router.get("/verify")
async def verify(request: Request):
    classifier = request.app.state.classifier
    settings = request.app.state.settings

    result = await classify_request(request, classifier, settings)

    response = render_decision(result.decision)
    if response is None:
        return Response(status_code=200)
    return response
