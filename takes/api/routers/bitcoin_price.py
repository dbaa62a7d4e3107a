from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from takes.api.deps import get_price_service
from takes.core.exceptions import ValidationError
from takes.schemas.common import ErrorResponse
from takes.schemas.price import Currency, PriceResponse
from takes.services.price import PriceService
from takes.services.validation import parse_iso_date

router = APIRouter(prefix="/api", tags=["price"])


@router.get(
    "/bitcoin-price",
    response_model=PriceResponse,
    responses={400: {"model": ErrorResponse}, 404: {}, 502: {}},
    summary="Historical BTC price for a day",
)
async def bitcoin_price(
    date: str | None = Query(None, description="YYYY-MM-DD"),
    currency: str = Query("usd"),
    svc: PriceService = Depends(get_price_service),
):
    day = parse_iso_date(date) if date else None
    if day is None:
        raise ValidationError(
            "Invalid date format. Use YYYY-MM-DD.", code="invalid_date", field="date"
        )
    try:
        cur = Currency(currency)
    except ValueError:
        raise ValidationError(
            "Currency must be usd or eur.", code="invalid_currency", field="currency"
        ) from None

    price = await svc.lookup(day, cur)
    return PriceResponse(price=price, currency=cur, date=day.isoformat())
