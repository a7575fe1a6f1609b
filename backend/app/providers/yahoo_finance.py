"""Yahoo Finance client used by the backend service."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Any, Deque, Sequence

import httpx

from app.config import get_settings
from folio.models import Granularity, LiveQuote, PriceBar, SymbolMatch

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}

INTERVAL_CODES = {
    Granularity.DAILY: "1d",
    Granularity.WEEKLY: "1wk",
    Granularity.MONTHLY: "1mo",
}

SEARCHABLE_QUOTE_TYPES = {"EQUITY", "ETF"}

POPULAR_PARIS_STOCKS = (
    SymbolMatch("MC.PA", "LVMH", "Paris"),
    SymbolMatch("OR.PA", "L'Oréal", "Paris"),
    SymbolMatch("TTE.PA", "TotalEnergies", "Paris"),
    SymbolMatch("SAN.PA", "Sanofi", "Paris"),
    SymbolMatch("AIR.PA", "Airbus", "Paris"),
    SymbolMatch("BNP.PA", "BNP Paribas", "Paris"),
    SymbolMatch("AI.PA", "Air Liquide", "Paris"),
    SymbolMatch("SU.PA", "Schneider Electric", "Paris"),
    SymbolMatch("KER.PA", "Kering", "Paris"),
    SymbolMatch("DG.PA", "Vinci", "Paris"),
    SymbolMatch("CS.PA", "AXA", "Paris"),
    SymbolMatch("CAP.PA", "Capgemini", "Paris"),
    SymbolMatch("RI.PA", "Pernod Ricard", "Paris"),
    SymbolMatch("HO.PA", "Thales", "Paris"),
    SymbolMatch("DSY.PA", "Dassault Systèmes", "Paris"),
    SymbolMatch("CW8.PA", "Amundi MSCI World", "Paris"),
    SymbolMatch("EWLD.PA", "Lyxor MSCI World", "Paris"),
    SymbolMatch("PANX.PA", "Amundi Nasdaq-100", "Paris"),
    SymbolMatch("ESE.PA", "BNP S&P 500", "Paris"),
    SymbolMatch("PAEEM.PA", "Amundi Emerging Markets", "Paris"),
)


class YahooFinanceError(RuntimeError):
    """Raised when Yahoo Finance is unreachable or returns an unusable payload."""


def _epoch(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


def _at(values: Any, index: int) -> Any:
    if isinstance(values, list) and 0 <= index < len(values):
        return values[index]
    return None


def search_local(query: str) -> list[SymbolMatch]:
    """Match the query against a short list of popular Euronext Paris symbols."""

    needle = query.lower()
    return [
        match
        for match in POPULAR_PARIS_STOCKS
        if needle in match.symbol.lower() or needle in match.name.lower()
    ]


class YahooFinanceClient:
    """Throttled Yahoo Finance chart/search client."""

    def __init__(
        self,
        *,
        chart_url: str | None = None,
        search_url: str | None = None,
        requests_per_minute: int | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        settings = get_settings()
        self._chart_url = (chart_url or settings.yahoo_chart_url).rstrip("/")
        self._search_url = search_url or settings.yahoo_search_url
        self._requests_per_minute = requests_per_minute or settings.yahoo_requests_per_minute
        self._timeout = timeout or settings.provider_timeout_seconds
        self._client = client or httpx.AsyncClient(headers=DEFAULT_HEADERS)
        self._calls: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _throttle(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            while self._calls and now - self._calls[0] >= 60:
                self._calls.popleft()
            if len(self._calls) >= self._requests_per_minute:
                wait = 60 - (now - self._calls[0])
                logger.debug("Yahoo Finance throttle sleeping %.2fs", wait)
                await asyncio.sleep(wait)
                self._calls.popleft()
            self._calls.append(loop.time())

    async def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        await self._throttle()
        try:
            response = await self._client.get(url, params=params, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise YahooFinanceError(f"Failed to reach Yahoo Finance: {exc}") from exc
        if response.status_code >= 400:
            raise YahooFinanceError(f"Yahoo Finance error {response.status_code} for {url}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise YahooFinanceError("Yahoo Finance returned invalid JSON payload") from exc
        if not isinstance(payload, dict):
            raise YahooFinanceError("Yahoo Finance response is not an object")
        return payload

    async def _chart(self, symbol: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = await self._get(f"{self._chart_url}/{symbol}", params)
        chart = payload.get("chart") or {}
        if chart.get("error"):
            raise YahooFinanceError(f"Yahoo Finance chart error for {symbol}: {chart['error']}")
        results = chart.get("result") or []
        if not results:
            raise YahooFinanceError(f"No chart data returned for {symbol}")
        return results[0]

    async def fetch_quote(self, symbol: str) -> LiveQuote:
        result = await self._chart(symbol, {"interval": "1d", "range": "2d"})
        meta = result.get("meta") or {}
        quote = ((result.get("indicators") or {}).get("quote") or [{}])[0]
        last = len(result.get("timestamp") or []) - 1
        prev = last - 1 if last > 0 else 0

        price = meta.get("regularMarketPrice") or _at(quote.get("close"), last) or 0.0
        previous_close = (
            meta.get("previousClose")
            or meta.get("chartPreviousClose")
            or _at(quote.get("close"), prev)
            or price
        )
        change = price - previous_close
        return LiveQuote(
            symbol=meta.get("symbol") or symbol,
            name=meta.get("shortName") or meta.get("longName") or symbol,
            price=float(price),
            change=float(change),
            change_percent=float(change / previous_close * 100) if previous_close > 0 else 0.0,
            previous_close=float(previous_close),
            open=float(meta.get("regularMarketOpen") or _at(quote.get("open"), last) or 0.0),
            high=float(meta.get("regularMarketDayHigh") or _at(quote.get("high"), last) or 0.0),
            low=float(meta.get("regularMarketDayLow") or _at(quote.get("low"), last) or 0.0),
            volume=float(meta.get("regularMarketVolume") or _at(quote.get("volume"), last) or 0.0),
            currency=meta.get("currency") or get_settings().base_currency,
        )

    async def current_quotes(self, symbols: Sequence[str]) -> list[LiveQuote]:
        quotes: list[LiveQuote] = []
        for symbol in symbols:
            try:
                quotes.append(await self.fetch_quote(symbol))
            except YahooFinanceError as exc:
                logger.warning("Skipping quote for %s: %s", symbol, exc)
        return quotes

    async def historical_series(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: Granularity = Granularity.DAILY,
    ) -> list[PriceBar]:
        params = {
            "period1": _epoch(start),
            # period2 is exclusive upstream, so include the whole end day
            "period2": _epoch(end + timedelta(days=1)),
            "interval": INTERVAL_CODES[Granularity(interval)],
        }
        result = await self._chart(symbol, params)
        timestamps = result.get("timestamp") or []
        indicators = result.get("indicators") or {}
        quote = (indicators.get("quote") or [{}])[0]
        adjusted = ((indicators.get("adjclose") or [{}])[0]).get("adjclose") or []

        bars: list[PriceBar] = []
        for index, stamp in enumerate(timestamps):
            close = _at(quote.get("close"), index)
            if close is None:
                continue
            bars.append(
                PriceBar(
                    date=datetime.fromtimestamp(stamp, tz=timezone.utc).date(),
                    open=float(_at(quote.get("open"), index) or 0.0),
                    high=float(_at(quote.get("high"), index) or 0.0),
                    low=float(_at(quote.get("low"), index) or 0.0),
                    close=float(close),
                    volume=float(_at(quote.get("volume"), index) or 0.0),
                    adjusted_close=float(_at(adjusted, index) or close),
                )
            )
        bars.sort(key=lambda bar: bar.date)
        return bars

    async def search(self, query: str) -> list[SymbolMatch]:
        if not query or len(query) < 2:
            return []
        params = {"q": query, "quotesCount": 10, "newsCount": 0, "enableFuzzyQuery": "false"}
        try:
            payload = await self._get(self._search_url, params)
        except YahooFinanceError as exc:
            logger.warning("Symbol search failed, using local list: %s", exc)
            return search_local(query)
        matches: list[SymbolMatch] = []
        for item in payload.get("quotes") or []:
            if not isinstance(item, dict) or item.get("quoteType") not in SEARCHABLE_QUOTE_TYPES:
                continue
            symbol = item.get("symbol")
            if not symbol:
                continue
            matches.append(
                SymbolMatch(
                    symbol=symbol,
                    name=item.get("shortname") or item.get("longname") or symbol,
                    exchange=item.get("exchange") or "",
                )
            )
        return matches


@lru_cache(maxsize=1)
def get_yahoo_finance_client() -> YahooFinanceClient:
    """Return the shared client instance for dependency injection."""

    return YahooFinanceClient()


__all__ = [
    "YahooFinanceClient",
    "YahooFinanceError",
    "POPULAR_PARIS_STOCKS",
    "get_yahoo_finance_client",
    "search_local",
]
