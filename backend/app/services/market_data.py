"""Market data helpers for loading quotes and OHLC series in batches."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Sequence

from app.config import get_settings
from app.providers.base import MarketDataProvider
from folio.models import Granularity, LiveQuote, PriceBar

logger = logging.getLogger(__name__)


async def _series_or_empty(
    provider: MarketDataProvider,
    symbol: str,
    start: date,
    end: date,
    interval: Granularity,
) -> list[PriceBar]:
    try:
        return await provider.historical_series(symbol, start, end, interval)
    except Exception as exc:  # one bad symbol must not sink the batch
        logger.warning("Historical series unavailable for %s: %s", symbol, exc)
        return []


async def load_history(
    provider: MarketDataProvider,
    symbols: Sequence[str],
    start: date,
    end: date,
    interval: Granularity = Granularity.DAILY,
    *,
    batch_size: int | None = None,
) -> dict[str, list[PriceBar]]:
    """Fetch series for every symbol, ``batch_size`` requests at a time.

    Symbols whose fetch fails map to an empty list.
    """

    size = batch_size or get_settings().history_batch_size
    results: dict[str, list[PriceBar]] = {}
    for offset in range(0, len(symbols), size):
        batch = list(symbols[offset : offset + size])
        series = await asyncio.gather(
            *(_series_or_empty(provider, symbol, start, end, interval) for symbol in batch)
        )
        results.update(zip(batch, series))
    return results


async def load_live_quotes(provider: MarketDataProvider, symbols: Sequence[str]) -> dict[str, LiveQuote]:
    """Return live quotes keyed by upper-case symbol; unavailable symbols are absent."""

    if not symbols:
        return {}
    try:
        quotes = await provider.current_quotes(list(symbols))
    except Exception as exc:
        logger.warning("Live quotes unavailable, falling back to stored prices: %s", exc)
        return {}
    return {quote.symbol.upper(): quote for quote in quotes}


__all__ = ["load_history", "load_live_quotes"]
