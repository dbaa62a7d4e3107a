from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response

_ADMIN_PREFIX = "/api/admin"


async def security_headers_middleware(request: Request, call_next: Callable) -> Response:
    """Attach basic security headers to every response.

    Moderation responses carry submitter origins, so they are never cached.
    """
    response = await call_next(request)
    headers = response.headers
    headers.setdefault("X-Content-Type-Options", "nosniff")
    headers.setdefault("X-Frame-Options", "DENY")
    headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    headers.setdefault("Permissions-Policy", "camera=(), geolocation=(), microphone=()")
    if request.url.path.startswith(_ADMIN_PREFIX):
        headers["Cache-Control"] = "no-store"
    return response
