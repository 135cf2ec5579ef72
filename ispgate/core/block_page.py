"""
Rendering of gate decisions into HTTP responses.

Block    → 403 HTML denial page (reason HTML-escaped)
Redirect → RedirectResponse with Location
PassThrough has no response; callers continue the pipeline instead.
"""

from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ispgate.core.decision import Block, Decision, Redirect

GATE_RESPONSE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "X-Content-Type-Options": "nosniff",
}

BLOCK_PAGE_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Access Denied</title>
  <style>
    body{{font-family:Arial,sans-serif;background:#111;color:#eee;display:grid;place-items:center;min-height:100vh}}
    .card{{padding:2rem;background:#1c1c1c;border-radius:12px;max-width:600px}}
    h1{{margin:0 0 1rem}}
    p{{margin:0.25rem 0}}
  </style>
</head>
<body>
  <div class="card">
    <h1>403 &bull; Access Denied</h1>
    <p>{message}</p>
    <p>If this is unexpected, please try again without VPN/Proxy or from a normal ISP connection.</p>
  </div>
</body>
</html>"""


def escape_html(s: str) -> str:
    # & first, or the entities below get double-escaped
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def render_block_page(message: str) -> str:
    return BLOCK_PAGE_TEMPLATE.format(message=escape_html(message))


def block_response(message: str) -> HTMLResponse:
    return HTMLResponse(
        content=render_block_page(message),
        status_code=403,
        headers=GATE_RESPONSE_HEADERS,
    )


def redirect_response(url: str, status_code: int = 302) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status_code, headers=GATE_RESPONSE_HEADERS)


def render_decision(decision: Decision) -> Response | None:
    """Response for a terminal decision, or None for pass-through."""
    if isinstance(decision, Block):
        return block_response(decision.reason)
    if isinstance(decision, Redirect):
        return redirect_response(decision.url, decision.status_code)
    return None
