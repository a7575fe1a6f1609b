"""Market-data endpoints: live quotes, OHLC history and symbol search."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies.context import get_market_data_provider
from app.config import get_settings
from app.providers.base import MarketDataProvider
from app.schemas import LiveQuoteSchema, PriceBarSchema, QuotesResponse, SearchResponse, SymbolMatchSchema
from app.services.market_data import load_history
from folio.models import Granularity

router = APIRouter()
logger = logging.getLogger(__name__)

INTERVAL_ALIASES = {
    "1d": Granularity.DAILY,
    "1wk": Granularity.WEEKLY,
    "1mo": Granularity.MONTHLY,
    "daily": Granularity.DAILY,
    "weekly": Granularity.WEEKLY,
    "monthly": Granularity.MONTHLY,
}


def _split_symbols(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [symbol.strip() for symbol in raw.split(",") if symbol.strip()]


@router.get("/quotes", response_model=QuotesResponse)
async def get_quotes(
    symbols: str | None = Query(default=None, description="Comma separated tickers"),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> QuotesResponse:
    if not symbols:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Symbols parameter is required")
    symbol_list = _split_symbols(symbols)
    if not symbol_list:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one symbol is required")
    limit = get_settings().max_quote_symbols
    if len(symbol_list) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {limit} symbols allowed per request",
        )
    try:
        quotes = await provider.current_quotes(symbol_list)
    except Exception as exc:
        logger.error("Stock quotes lookup failed: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch stock quotes"
        ) from exc
    return QuotesResponse(quotes=[LiveQuoteSchema(**vars(quote)) for quote in quotes])


@router.get("/history", response_model=dict[str, list[PriceBarSchema]])
async def get_history(
    symbols: str | None = Query(default=None, description="Comma separated tickers"),
    start_date: str | None = Query(default=None, alias="startDate", description="YYYY-MM-DD"),
    end_date: str | None = Query(default=None, alias="endDate", description="YYYY-MM-DD"),
    interval: str = Query(default="1d", description="1d, 1wk, 1mo or daily, weekly, monthly"),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> dict[str, list[PriceBarSchema]]:
    symbol_list = _split_symbols(symbols)
    if not symbol_list:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Symbols parameter is required")
    if start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="startDate and endDate parameters are required"
        )
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="startDate and endDate must be YYYY-MM-DD dates"
        ) from exc
    granularity = INTERVAL_ALIASES.get(interval.lower())
    if granularity is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported interval '{interval}'")
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startDate must not be after endDate")

    try:
        if len(symbol_list) == 1:
            symbol = symbol_list[0]
            series = {symbol: await provider.historical_series(symbol, start, end, granularity)}
        else:
            series = await load_history(provider, symbol_list, start, end, granularity)
    except Exception as exc:
        logger.error("Historical quotes lookup failed for %s: %s", symbol_list, exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch historical quotes",
        ) from exc
    return {
        symbol: [PriceBarSchema(**vars(bar)) for bar in bars]
        for symbol, bars in series.items()
    }


@router.get("/search", response_model=SearchResponse)
async def search_stocks(
    q: str | None = Query(default=None, description="Ticker or company keywords"),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> SearchResponse:
    if not q or len(q) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query must be at least 2 characters")
    logger.info("Searching symbols with query: %s", q)
    try:
        matches = await provider.search(q)
    except Exception as exc:
        logger.error("Symbol search failed: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to search stocks"
        ) from exc
    return SearchResponse(results=[SymbolMatchSchema(**vars(match)) for match in matches])


__all__ = ["router"]
