"""Per-origin submission budget.

A fixed window opens on the first attempt of an origin; every attempt in the
window increments the counter and attempts beyond ``limit`` are refused
until the window expires. The counter lives in a ``limits`` storage, so the
in-process default (``memory://``) can be swapped for a shared one
(``redis://...``) through configuration alone.

Each check is a single ``incr`` on the origin's own key: concurrent
attempts from one origin cannot both slip under the threshold and
unrelated origins never contend. Storage calls go through ``limits.aio``
and are awaited; a plain ``memory://`` or ``redis://`` URI is mapped to its
``async+`` scheme.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.aio.storage import Storage
from limits.aio.strategies import FixedWindowRateLimiter
from limits.storage import storage_from_string

_NAMESPACE = "intake"
_ASYNC_PREFIX = "async+"


def _async_uri(uri: str) -> str:
    return uri if uri.startswith(_ASYNC_PREFIX) else f"{_ASYNC_PREFIX}{uri}"


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    reset_at: float

    def retry_after(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        return max(1, int(self.reset_at - now + 0.999))


class IntakeRateLimiter:
    def __init__(
        self,
        *,
        limit: int = 5,
        window_seconds: int = 3600,
        storage: Storage | None = None,
        storage_uri: str = "memory://",
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._storage = storage or storage_from_string(_async_uri(storage_uri))
        self._strategy = FixedWindowRateLimiter(self._storage)
        self._item = RateLimitItemPerSecond(limit, window_seconds, namespace=_NAMESPACE)

    async def check(self, identity: str) -> RateDecision:
        allowed = await self._strategy.hit(self._item, identity)
        stats = await self._strategy.get_window_stats(self._item, identity)
        return RateDecision(allowed=allowed, reset_at=float(stats[0]))

    async def reset(self) -> None:
        await self._storage.reset()
