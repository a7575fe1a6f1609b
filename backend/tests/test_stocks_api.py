from __future__ import annotations

from datetime import date

from httpx import ASGITransport, AsyncClient

from app.api.dependencies.context import get_market_data_provider
from app.main import app
from folio.models import Granularity, LiveQuote, PriceBar, SymbolMatch


class StubProvider:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.history_calls: list[tuple[str, date, date, Granularity]] = []

    async def current_quotes(self, symbols):
        if self.fail:
            raise RuntimeError("provider down")
        return [LiveQuote(symbol=symbol, price=100.0, name=symbol) for symbol in symbols]

    async def historical_series(self, symbol, start, end, interval=Granularity.DAILY):
        self.history_calls.append((symbol, start, end, interval))
        if self.fail:
            raise RuntimeError("provider down")
        return [PriceBar(date=start, open=1, high=2, low=0.5, close=1.5, volume=10)]

    async def search(self, query):
        return [SymbolMatch(symbol="CW8.PA", name="Amundi MSCI World", exchange="PAR")]


def _client(provider: StubProvider) -> AsyncClient:
    app.dependency_overrides[get_market_data_provider] = lambda: provider
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_quotes_endpoint_returns_quotes():
    async with _client(StubProvider()) as client:
        response = await client.get("/stocks/quotes", params={"symbols": "MC.PA, AI.PA,"})
    app.dependency_overrides.clear()
    assert response.status_code == 200
    assert [quote["symbol"] for quote in response.json()["quotes"]] == ["MC.PA", "AI.PA"]


async def test_quotes_endpoint_validates_symbols():
    async with _client(StubProvider()) as client:
        missing = await client.get("/stocks/quotes")
        empty = await client.get("/stocks/quotes", params={"symbols": " , "})
        too_many = await client.get("/stocks/quotes", params={"symbols": ",".join(f"S{i}" for i in range(51))})
    app.dependency_overrides.clear()
    assert missing.status_code == 400
    assert empty.status_code == 400
    assert too_many.status_code == 400


async def test_quotes_endpoint_hides_provider_errors():
    async with _client(StubProvider(fail=True)) as client:
        response = await client.get("/stocks/quotes", params={"symbols": "MC.PA"})
    app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch stock quotes"


async def test_history_endpoint_keys_series_by_symbol():
    provider = StubProvider()
    params = {"symbols": "MC.PA,AI.PA", "startDate": "2024-01-02", "endDate": "2024-01-31", "interval": "1wk"}
    async with _client(provider) as client:
        response = await client.get("/stocks/history", params=params)
    app.dependency_overrides.clear()
    assert response.status_code == 200
    payload = response.json()
    assert set(payload) == {"MC.PA", "AI.PA"}
    assert payload["MC.PA"][0]["close"] == 1.5
    assert {call[3] for call in provider.history_calls} == {Granularity.WEEKLY}


async def test_history_endpoint_validates_params():
    async with _client(StubProvider()) as client:
        no_dates = await client.get("/stocks/history", params={"symbols": "MC.PA"})
        bad_interval = await client.get(
            "/stocks/history",
            params={"symbols": "MC.PA", "startDate": "2024-01-02", "endDate": "2024-01-31", "interval": "5m"},
        )
        malformed = await client.get(
            "/stocks/history", params={"symbols": "MC.PA", "startDate": "nope", "endDate": "2024-01-31"}
        )
        reversed_range = await client.get(
            "/stocks/history", params={"symbols": "MC.PA", "startDate": "2024-02-01", "endDate": "2024-01-31"}
        )
    app.dependency_overrides.clear()
    assert no_dates.status_code == 400
    assert bad_interval.status_code == 400
    assert malformed.status_code == 400
    assert malformed.json()["detail"] == "startDate and endDate must be YYYY-MM-DD dates"
    assert reversed_range.status_code == 400


async def test_single_symbol_history_failure_is_500():
    params = {"symbols": "MC.PA", "startDate": "2024-01-02", "endDate": "2024-01-31"}
    async with _client(StubProvider(fail=True)) as client:
        response = await client.get("/stocks/history", params=params)
    app.dependency_overrides.clear()
    assert response.status_code == 500


async def test_search_endpoint():
    async with _client(StubProvider()) as client:
        short = await client.get("/stocks/search", params={"q": "c"})
        found = await client.get("/stocks/search", params={"q": "world"})
    app.dependency_overrides.clear()
    assert short.status_code == 400
    assert found.json() == {"results": [{"symbol": "CW8.PA", "name": "Amundi MSCI World", "exchange": "PAR"}]}
