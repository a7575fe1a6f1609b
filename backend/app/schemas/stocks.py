"""Pydantic schemas for the market-data endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class LiveQuoteSchema(BaseModel):
    symbol: str = Field(..., examples=["MC.PA"])
    name: str
    price: float
    change: float
    change_percent: float
    previous_close: float | None = None
    open: float
    high: float
    low: float
    volume: float
    currency: str


class QuotesResponse(BaseModel):
    quotes: list[LiveQuoteSchema]


class PriceBarSchema(BaseModel):
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float
    adjusted_close: float | None = None


class SymbolMatchSchema(BaseModel):
    symbol: str = Field(..., examples=["CW8.PA"])
    name: str
    exchange: str = ""

    model_config = {
        "json_schema_extra": {
            "example": {"symbol": "CW8.PA", "name": "Amundi MSCI World", "exchange": "PAR"}
        }
    }


class SearchResponse(BaseModel):
    results: list[SymbolMatchSchema]


__all__ = [
    "LiveQuoteSchema",
    "QuotesResponse",
    "PriceBarSchema",
    "SymbolMatchSchema",
    "SearchResponse",
]
