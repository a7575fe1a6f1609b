"""Yahoo Finance client tests."""

from __future__ import annotations

from datetime import date, datetime, timezone

import httpx
import pytest

from app.providers.yahoo_finance import YahooFinanceClient, YahooFinanceError, search_local
from folio.models import Granularity


def _stamp(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, 14, 30, tzinfo=timezone.utc).timestamp())


CHART_PAYLOAD = {
    "chart": {
        "result": [
            {
                "meta": {
                    "symbol": "MC.PA",
                    "shortName": "LVMH",
                    "currency": "EUR",
                    "regularMarketPrice": 710.0,
                    "chartPreviousClose": 700.0,
                },
                "timestamp": [_stamp(date(2024, 1, 3)), _stamp(date(2024, 1, 2))],
                "indicators": {
                    "quote": [
                        {
                            "open": [705.0, 698.0],
                            "high": [712.0, 702.0],
                            "low": [701.0, 695.0],
                            "close": [710.0, 700.0],
                            "volume": [1000, 1200],
                        }
                    ],
                    "adjclose": [{"adjclose": [709.0, 699.0]}],
                },
            }
        ],
        "error": None,
    }
}


class StubResponse:
    def __init__(self, payload: object, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self) -> object:
        return self._payload


class StubClient:
    def __init__(self, payload: object = CHART_PAYLOAD, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code
        self.calls: list[tuple[str, dict[str, object]]] = []

    async def get(self, url: str, params: dict[str, object], timeout: float) -> StubResponse:
        self.calls.append((url, params))
        return StubResponse(self.payload, self.status_code)

    async def aclose(self) -> None:  # pragma: no cover - included for interface completeness
        return None


def _client(stub: StubClient) -> YahooFinanceClient:
    return YahooFinanceClient(
        chart_url="https://example.test/chart",
        search_url="https://example.test/search",
        requests_per_minute=100,
        client=stub,
    )


@pytest.mark.asyncio
async def test_quote_uses_previous_close_for_change():
    stub = StubClient()
    quote = await _client(stub).fetch_quote("MC.PA")
    assert stub.calls[0][0] == "https://example.test/chart/MC.PA"
    assert quote.price == 710.0
    assert quote.previous_close == 700.0
    assert quote.change == pytest.approx(10.0)
    assert quote.change_percent == pytest.approx(10 / 700 * 100)
    assert quote.name == "LVMH"


@pytest.mark.asyncio
async def test_historical_series_is_sorted_and_end_inclusive():
    stub = StubClient()
    bars = await _client(stub).historical_series("MC.PA", date(2024, 1, 2), date(2024, 1, 3), Granularity.WEEKLY)
    params = stub.calls[0][1]
    assert params["interval"] == "1wk"
    assert params["period2"] - params["period1"] == 2 * 86400
    assert [bar.date for bar in bars] == [date(2024, 1, 2), date(2024, 1, 3)]
    assert bars[1].close == 710.0
    assert bars[1].adjusted_close == 709.0


@pytest.mark.asyncio
async def test_chart_error_raises():
    stub = StubClient({"chart": {"result": None, "error": {"code": "Not Found"}}})
    with pytest.raises(YahooFinanceError):
        await _client(stub).historical_series("NOPE", date(2024, 1, 2), date(2024, 1, 3))


@pytest.mark.asyncio
async def test_http_error_status_raises():
    with pytest.raises(YahooFinanceError):
        await _client(StubClient({}, status_code=503)).fetch_quote("MC.PA")


@pytest.mark.asyncio
async def test_current_quotes_skips_failures():
    class FlakyClient(StubClient):
        async def get(self, url: str, params: dict[str, object], timeout: float) -> StubResponse:
            if url.endswith("BAD"):
                raise httpx.ConnectError("boom")
            return await super().get(url, params, timeout)

    quotes = await _client(FlakyClient()).current_quotes(["MC.PA", "BAD"])
    assert [quote.symbol for quote in quotes] == ["MC.PA"]


@pytest.mark.asyncio
async def test_search_keeps_equities_and_etfs():
    payload = {
        "quotes": [
            {"symbol": "CW8.PA", "shortname": "Amundi MSCI World", "exchange": "PAR", "quoteType": "ETF"},
            {"symbol": "EURUSD=X", "shortname": "EUR/USD", "quoteType": "CURRENCY"},
            {"symbol": "AI.PA", "longname": "Air Liquide", "exchange": "PAR", "quoteType": "EQUITY"},
        ]
    }
    results = await _client(StubClient(payload)).search("world")
    assert [match.symbol for match in results] == ["CW8.PA", "AI.PA"]
    assert results[1].name == "Air Liquide"


@pytest.mark.asyncio
async def test_search_falls_back_to_local_list():
    results = await _client(StubClient({}, status_code=500)).search("lvmh")
    assert [match.symbol for match in results] == ["MC.PA"]


@pytest.mark.asyncio
async def test_short_queries_return_nothing():
    stub = StubClient()
    assert await _client(stub).search("a") == []
    assert stub.calls == []


def test_local_search_matches_symbol_or_name():
    assert {match.symbol for match in search_local("air")} == {"AIR.PA", "AI.PA"}
