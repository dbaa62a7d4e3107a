from __future__ import annotations

from starlette.requests import Request

UNKNOWN_ORIGIN = "unknown"


def client_origin(request: Request) -> str:
    """Network origin of the caller as seen through the reverse proxy.

    First hop of X-Forwarded-For, then X-Real-IP. A missing origin is the
    literal "unknown", which is still a valid rate-limit identity.
    """
    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_ORIGIN


def socket_peer(request: Request) -> str:
    return (request.client.host if request.client else None) or "-"
