"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, status

from app.providers.base import MarketDataProvider
from app.providers.yahoo_finance import get_yahoo_finance_client


@dataclass
class RequestContext:
    user_id: str


def get_request_context(x_user_id: str | None = Header(default=None)) -> RequestContext:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user context")
    return RequestContext(user_id=x_user_id.strip())


def get_market_data_provider() -> MarketDataProvider:
    """Return the market-data provider; tests override this dependency."""

    return get_yahoo_finance_client()


__all__ = ["RequestContext", "get_request_context", "get_market_data_provider"]
