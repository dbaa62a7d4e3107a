from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import sentry_sdk
import structlog
from fastapi import Request, Response

from takes.utils.request import socket_peer

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


def _elapsed_ms(start_ns: int) -> float:
    return round((time.perf_counter_ns() - start_ns) / 1_000_000.0, 3)


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """Attach/propagate Request-ID and emit one structured access log line.

    Inbound X-Request-ID wins, otherwise a UUID4 is generated. request_id,
    path and method are bound to contextvars for every log emitted while the
    request is handled.
    """
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(
        request_id=rid, path=request.url.path, method=request.method
    )
    try:
        sentry_sdk.set_tag("request_id", rid)
        sentry_sdk.set_tag("path", request.url.path)
    except Exception:
        # Sentry instrumentation must never break request processing
        pass

    start_ns = time.perf_counter_ns()
    try:
        response = await call_next(request)
    except Exception:
        logger.error(
            "http_request",
            status=500,
            duration_ms=_elapsed_ms(start_ns),
            client_ip=socket_peer(request),
            exc_info=True,
        )
        structlog.contextvars.clear_contextvars()
        raise

    logger.info(
        "http_request",
        status=response.status_code,
        duration_ms=_elapsed_ms(start_ns),
        client_ip=socket_peer(request),
    )
    response.headers[REQUEST_ID_HEADER] = rid
    structlog.contextvars.clear_contextvars()
    return response
