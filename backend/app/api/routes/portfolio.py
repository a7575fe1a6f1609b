"""Portfolio endpoints backed by the local database and the folio engine."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.context import RequestContext, get_market_data_provider, get_request_context
from app.config import get_settings
from app.db.session import get_db
from app.models import PortfolioAccount, StockPosition, Transaction
from app.providers.base import MarketDataProvider
from app.schemas import (
    AccountCreateRequest,
    AccountSchema,
    AccountValuationSchema,
    DividendsResponse,
    DividendSummarySchema,
    DividendYearSchema,
    HistoryPointSchema,
    HistoryResponse,
    OversoldSellSchema,
    PerformanceSchema,
    PortfolioSummarySchema,
    PositionSchema,
    PositionsResponse,
    PositionUpsertRequest,
    TransactionCreateRequest,
    TransactionSchema,
)
from app.services import portfolio as portfolio_service
from folio.models import AccountCategory, ValuationSource

router = APIRouter()


def _account_schema(record: PortfolioAccount) -> AccountSchema:
    category = AccountCategory(record.category)
    return AccountSchema(
        id=record.id,
        name=record.name,
        category=category,
        currency=record.currency,
        balance=float(record.balance or 0),
        is_investment=category.is_investment,
        created_at=record.created_at,
    )


def _transaction_schema(record: Transaction) -> TransactionSchema:
    return TransactionSchema(
        id=record.id,
        account_id=record.account_id,
        type=record.type,
        amount=float(record.amount),
        date=record.trade_date,
        symbol=record.symbol,
        quantity=float(record.quantity) if record.quantity is not None else None,
        price_per_unit=float(record.price_per_unit) if record.price_per_unit is not None else None,
        description=record.description or "",
        created_at=record.created_at,
    )


def _stored_position_schema(record: StockPosition) -> PositionSchema:
    quantity = float(record.quantity)
    average_price = float(record.average_price)
    return PositionSchema(
        account_id=str(record.account_id),
        symbol=record.symbol,
        name=record.name or "",
        quantity=quantity,
        average_price=average_price,
        total_invested=quantity * average_price,
        current_price=float(record.current_price),
        source=ValuationSource.STORED_FALLBACK,
    )


@router.get("/accounts", response_model=list[AccountSchema])
async def get_accounts(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> list[AccountSchema]:
    records = await portfolio_service.list_accounts(session, context.user_id)
    return [_account_schema(record) for record in records]


@router.post("/accounts", response_model=AccountSchema, status_code=status.HTTP_201_CREATED)
async def post_account(
    payload: AccountCreateRequest,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> AccountSchema:
    try:
        record = await portfolio_service.create_account(payload, session, context.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _account_schema(record)


@router.get("/accounts/valuations", response_model=list[AccountValuationSchema])
async def get_account_valuations(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> list[AccountValuationSchema]:
    valuations = await portfolio_service.compute_valuations(session, context.user_id, provider)
    return [AccountValuationSchema(**asdict(valuation)) for valuation in valuations]


@router.get("/transactions", response_model=list[TransactionSchema])
async def get_transactions(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> list[TransactionSchema]:
    records = await portfolio_service.list_transactions(session, context.user_id)
    return [_transaction_schema(record) for record in records]


@router.post("/transactions", response_model=TransactionSchema, status_code=status.HTTP_201_CREATED)
async def post_transaction(
    payload: TransactionCreateRequest,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> TransactionSchema:
    try:
        record = await portfolio_service.create_transaction(payload, session, context.user_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _transaction_schema(record)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: int,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await portfolio_service.delete_transaction(transaction_id, session, context.user_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/positions", response_model=PositionsResponse)
async def get_positions(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> PositionsResponse:
    positions, summary, oversold = await portfolio_service.compute_positions(session, context.user_id, provider)
    return PositionsResponse(
        positions=[PositionSchema(**asdict(position)) for position in positions],
        summary=PortfolioSummarySchema(**asdict(summary)),
        oversold=[OversoldSellSchema(**asdict(item)) for item in oversold],
    )


@router.put("/positions", response_model=PositionSchema)
async def put_position(
    payload: PositionUpsertRequest,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> PositionSchema:
    try:
        record = await portfolio_service.upsert_position(payload, session, context.user_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _stored_position_schema(record)


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    period_days: int | None = Query(default=None, alias="periodDays", ge=1, le=3660),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> HistoryResponse:
    days = period_days or get_settings().default_history_days
    start, end, granularity, points = await portfolio_service.compute_history(
        session, context.user_id, provider, days
    )
    return HistoryResponse(
        start=start,
        end=end,
        granularity=granularity,
        points=[HistoryPointSchema(**asdict(point)) for point in points],
    )


@router.get("/performance", response_model=PerformanceSchema)
async def get_performance(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
    provider: MarketDataProvider = Depends(get_market_data_provider),
) -> PerformanceSchema:
    report = await portfolio_service.compute_performance(session, context.user_id, provider)
    return PerformanceSchema(**asdict(report))


@router.get("/dividends", response_model=DividendsResponse)
async def get_dividends(
    year: int | None = Query(default=None, ge=1900, le=2100),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> DividendsResponse:
    report = await portfolio_service.compute_dividends(session, context.user_id, year)
    return DividendsResponse(
        total=report.total,
        year=report.year,
        by_symbol=[DividendSummarySchema(**asdict(summary)) for summary in report.by_symbol],
        by_year=[DividendYearSchema(year=paid_year, total=total) for paid_year, total in report.by_year],
    )


__all__ = ["router"]
