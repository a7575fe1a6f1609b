"""Market-data provider contract consumed by the service layer."""

from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from folio.models import Granularity, LiveQuote, PriceBar, SymbolMatch


class MarketDataProvider(Protocol):
    """Pluggable source of live quotes, OHLC history and symbol search."""

    async def current_quotes(self, symbols: Sequence[str]) -> list[LiveQuote]:
        """Return quotes for the symbols that could be priced; missing ones are omitted."""
        ...

    async def historical_series(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: Granularity = Granularity.DAILY,
    ) -> list[PriceBar]:
        """Return bars sorted ascending by date."""
        ...

    async def search(self, query: str) -> list[SymbolMatch]:
        ...


__all__ = ["MarketDataProvider"]
