"""Security headers middleware.

Learn: Two kinds of response leave this service. JSON bodies may carry a
bearer token or account data and must never be cached; the PDF proxy sets
its own Cache-Control and is left alone. The proxy may also be reached
with the token in its query string, so no Referer is ever sent onward,
and framing is limited to our own origin so the web client can still
embed the PDF.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HSTS_VALUE = "max-age=31536000; includeSubDomains"

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers and a no-store default to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(STATIC_HEADERS)
        if "cache-control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
