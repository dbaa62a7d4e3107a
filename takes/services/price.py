"""Historical Bitcoin price lookup.

Prices for a day never change, so once fetched they are kept in a
process-wide cache keyed by the ISO date. Both currencies are stored
together; a lookup in the other currency never hits the oracle again.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import httpx
import structlog

from takes.core.exceptions import NotFoundError, UpstreamError
from takes.schemas.price import Currency

logger = structlog.get_logger(__name__)

_USER_AGENT = "BadBitcoinTakes/0.1"
_CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricePair:
    usd: float
    eur: float

    def for_currency(self, currency: Currency) -> float:
        return self.usd if currency is Currency.usd else self.eur


class OracleUnavailable(Exception):
    """The price source could not be reached or answered with an error."""


class PriceOracle(Protocol):
    async def fetch(self, day: date) -> PricePair | None:
        """Price pair for ``day``; None when the source has no data for it."""


class PriceCache(Protocol):
    def get(self, key: str) -> PricePair | None: ...

    def set(self, key: str, value: PricePair) -> None: ...


class InMemoryPriceCache:
    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._ttl = ttl_seconds
        self._data: dict[str, tuple[PricePair, float | None]] = {}

    def get(self, key: str) -> PricePair | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: PricePair) -> None:
        expires_at = time.monotonic() + self._ttl if self._ttl is not None else None
        self._data[key] = (value, expires_at)


def round_price(value: Any) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


class CoinGeckoPriceOracle:
    """``/coins/bitcoin/history`` on the CoinGecko API."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, day: date) -> PricePair | None:
        headers = {"Accept": "application/json", "User-Agent": _USER_AGENT}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        params = {"date": day.strftime("%d-%m-%Y"), "localization": "false"}

        async with httpx.AsyncClient(
            timeout=self.timeout, headers=headers, transport=self._transport
        ) as client:
            try:
                response = await client.get(f"{self.base_url}/coins/bitcoin/history", params=params)
            except httpx.RequestError as exc:
                logger.warning("price_oracle_request_failed", error=str(exc))
                raise OracleUnavailable(str(exc)) from exc

        if not response.is_success:
            logger.warning("price_oracle_bad_status", status=response.status_code)
            raise OracleUnavailable(f"status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise OracleUnavailable("invalid JSON") from exc

        current = None
        if isinstance(payload, dict):
            current = (payload.get("market_data") or {}).get("current_price")
        if not current or current.get("usd") is None or current.get("eur") is None:
            return None
        try:
            return PricePair(usd=round_price(current["usd"]), eur=round_price(current["eur"]))
        except (ArithmeticError, ValueError) as exc:
            raise OracleUnavailable(f"unexpected price payload: {current!r}") from exc


class PriceService:
    def __init__(self, oracle: PriceOracle, cache: PriceCache) -> None:
        self.oracle = oracle
        self.cache = cache
        # date -> (lock, callers holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def lookup(self, day: date, currency: Currency) -> float:
        key = day.isoformat()
        cached = self.cache.get(key)
        if cached is not None:
            return cached.for_currency(currency)

        # one oracle call per date even when misses race
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                cached = self.cache.get(key)
                if cached is None:
                    cached = await self._fetch(day)
                    self.cache.set(key, cached)
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)
        return cached.for_currency(currency)

    async def _fetch(self, day: date) -> PricePair:
        try:
            pair = await self.oracle.fetch(day)
        except OracleUnavailable as exc:
            raise UpstreamError(
                "Failed to fetch Bitcoin price.", code="price_unavailable", extra={"price": None}
            ) from exc
        if pair is None:
            raise NotFoundError(
                "No price data available for this date.",
                code="price_not_found",
                extra={"price": None},
            )
        logger.info("price_fetched", date=day.isoformat(), usd=pair.usd, eur=pair.eur)
        return pair
