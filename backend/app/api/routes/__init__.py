"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .portfolio import router as portfolio_router
from .stocks import router as stocks_router

api_router = APIRouter()
api_router.include_router(stocks_router, prefix="/stocks", tags=["stocks"])
api_router.include_router(portfolio_router, prefix="/portfolio", tags=["portfolio"])

__all__ = ["api_router"]
