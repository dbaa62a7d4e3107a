from __future__ import annotations

import os
from collections.abc import Callable
from typing import TypedDict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from limits import parse as parse_limit
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from takes.utils.request import client_origin


class RateLimitInfo(TypedDict, total=False):
    method: str
    ip: str
    limit: str


# Coarse per-IP throttle for every route. The submission budget is enforced
# separately by takes.services.intake_rate_limit.
_storage = MemoryStorage()
_rate = MovingWindowRateLimiter(_storage)


def _enabled() -> bool:
    # Enabled by default unless TESTING is set; RATE_LIMIT_ENABLED=1 forces it on.
    if os.getenv("RATE_LIMIT_ENABLED") in {"1", "true", "TRUE"}:
        return True
    if os.getenv("TESTING"):
        return False
    return True


def _limit_for_method(method: str) -> str | None:
    m = method.upper()
    if m in {"GET", "HEAD"}:
        return "60/minute"
    if m in {"POST", "PATCH", "DELETE"}:
        return "30/minute"
    # OPTIONS (CORS preflight) is never limited
    return None


def reset() -> None:
    _storage.reset()


async def rate_limit_middleware(request: Request, call_next: Callable) -> Response:
    if not _enabled():
        return await call_next(request)

    limit_str = _limit_for_method(request.method)
    if not limit_str:
        return await call_next(request)

    ip = client_origin(request)
    key = f"ip:{ip}|m:{request.method.upper()}"
    if not _rate.hit(parse_limit(limit_str), key):
        info: RateLimitInfo = {"method": request.method.upper(), "ip": ip, "limit": limit_str}
        return JSONResponse(
            status_code=429,
            content={
                "error": {
                    "code": "rate_limited",
                    "message": "Too Many Requests",
                    "detail": info,
                }
            },
        )

    response = await call_next(request)
    response.headers.setdefault("X-RateLimit-Limit", limit_str)
    return response
