"""Response hardening for the PondoBro API.

Learn: The API only ever returns JSON to the PondoBro SPA, so responses
must never be sniffed as HTML, framed, or leak the SPA's URL in a
Referer. Auth responses get one more rule: their bodies carry access
tokens and their headers set the refresh cookie, so no cache (browser
or proxy) may keep a copy.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

AUTH_PATH_PREFIX = "/api/auth/"

JSON_API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

TOKEN_BEARING_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def carries_credentials(path: str) -> bool:
    """True for the routes that hand out tokens or touch the refresh cookie."""
    return path.startswith(AUTH_PATH_PREFIX)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(JSON_API_HEADERS)
        if carries_credentials(request.url.path):
            response.headers.update(TOKEN_BEARING_HEADERS)
        # Only meaningful once the browser has reached us over TLS
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
