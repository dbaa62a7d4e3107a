from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Currency(str, Enum):
    usd = "usd"
    eur = "eur"


class PriceResponse(BaseModel):
    price: float
    currency: Currency
    date: str
