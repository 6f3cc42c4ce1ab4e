from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response (no Content-Security-Policy)."""

    DEFAULT_HEADERS = {
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Resource-Policy": "same-origin",
        "Origin-Agent-Cluster": "?1",
        "Referrer-Policy": "no-referrer",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "X-Content-Type-Options": "nosniff",
        "X-DNS-Prefetch-Control": "off",
        "X-Download-Options": "noopen",
        "X-Frame-Options": "SAMEORIGIN",
        "X-Permitted-Cross-Domain-Policies": "none",
        "X-XSS-Protection": "0",
    }

    def __init__(self, app, headers: dict | None = None):
        super().__init__(app)
        self._headers = {**self.DEFAULT_HEADERS, **(headers or {})}

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


__all__ = ["SecurityHeadersMiddleware"]
