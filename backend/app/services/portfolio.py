"""Storage-backed portfolio service: CRUD plus the engine-powered read models."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import folio
from folio.models import TRADE_TYPES
from app.config import get_settings
from app.models import Portfolio, PortfolioAccount, StockPosition, Transaction
from app.providers.base import MarketDataProvider
from app.schemas import AccountCreateRequest, PositionUpsertRequest, TransactionCreateRequest
from app.services.market_data import load_history, load_live_quotes

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_QUANTITY_TOLERANCE = 1e-9


def _decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _float(value: Decimal | float | None) -> float | None:
    if value is None:
        return None
    return float(value)


def today() -> date:
    """Current calendar date in the configured portfolio timezone."""

    return datetime.now(ZoneInfo(get_settings().timezone)).date()


# ---------------------------------------------------------------------------
# ORM -> engine conversion


def to_account(record: PortfolioAccount) -> folio.Account:
    return folio.Account(
        id=str(record.id),
        name=record.name,
        category=folio.AccountCategory(record.category),
        currency=record.currency,
        balance=float(record.balance or 0),
    )


def to_transaction(record: Transaction) -> folio.Transaction:
    return folio.Transaction(
        id=str(record.id),
        account_id=str(record.account_id),
        type=folio.TransactionType(record.type),
        amount=float(record.amount or 0),
        date=record.trade_date,
        symbol=record.symbol,
        quantity=_float(record.quantity),
        price_per_unit=_float(record.price_per_unit),
        description=record.description or "",
    )


def to_stored_position(record: StockPosition) -> folio.StoredPosition:
    return folio.StoredPosition(
        account_id=str(record.account_id),
        symbol=record.symbol,
        quantity=float(record.quantity),
        average_price=float(record.average_price),
        current_price=float(record.current_price),
        name=record.name or "",
        currency=record.currency,
        sector=record.sector,
    )


# ---------------------------------------------------------------------------
# Storage


async def ensure_portfolio(session: AsyncSession, owner_id: str) -> Portfolio:
    result = await session.execute(select(Portfolio).where(Portfolio.owner_id == owner_id))
    portfolio = result.scalars().first()
    if portfolio is not None:
        return portfolio
    portfolio = Portfolio(owner_id=owner_id, base_currency=get_settings().base_currency)
    session.add(portfolio)
    await session.commit()
    await session.refresh(portfolio)
    logger.info("Created portfolio for owner %s", owner_id)
    return portfolio


async def list_accounts(session: AsyncSession, owner_id: str) -> list[PortfolioAccount]:
    portfolio = await ensure_portfolio(session, owner_id)
    result = await session.execute(
        select(PortfolioAccount)
        .where(PortfolioAccount.portfolio_id == portfolio.id)
        .order_by(PortfolioAccount.name)
    )
    return list(result.scalars().all())


async def create_account(
    payload: AccountCreateRequest,
    session: AsyncSession,
    owner_id: str,
) -> PortfolioAccount:
    portfolio = await ensure_portfolio(session, owner_id)
    name = payload.name.strip()
    if not name:
        raise ValueError("Account name must not be empty")
    existing = await session.execute(
        select(PortfolioAccount).where(
            PortfolioAccount.portfolio_id == portfolio.id,
            PortfolioAccount.name == name,
        )
    )
    if existing.scalars().first() is not None:
        raise ValueError(f"Account '{name}' already exists")
    record = PortfolioAccount(
        portfolio_id=portfolio.id,
        name=name,
        category=folio.AccountCategory(payload.category).value,
        currency=payload.currency.upper(),
        balance=_decimal(payload.balance),
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


async def _get_account(session: AsyncSession, portfolio: Portfolio, account_id: int) -> PortfolioAccount:
    record = await session.get(PortfolioAccount, account_id)
    if record is None or record.portfolio_id != portfolio.id:
        raise LookupError("Account not found for this portfolio")
    return record


async def list_transactions(session: AsyncSession, owner_id: str) -> list[Transaction]:
    portfolio = await ensure_portfolio(session, owner_id)
    result = await session.execute(
        select(Transaction)
        .where(Transaction.portfolio_id == portfolio.id)
        .order_by(Transaction.trade_date.desc(), Transaction.id.desc())
    )
    return list(result.scalars().all())


async def create_transaction(
    payload: TransactionCreateRequest,
    session: AsyncSession,
    owner_id: str,
) -> Transaction:
    """Validate and append an event to the log.

    BUY/SELL must carry a symbol, a quantity and a unit price; their amount is
    derived from ``quantity * price_per_unit`` when the caller omits it. A SELL
    may not exceed the quantity the account holds on its date, and a DIVIDEND
    must name the symbol that paid it.
    """

    portfolio = await ensure_portfolio(session, owner_id)
    account = await _get_account(session, portfolio, payload.account_id)

    tx_type = folio.TransactionType(payload.type)
    symbol = payload.symbol.strip().upper() if payload.symbol else None
    amount = payload.amount
    if tx_type in TRADE_TYPES:
        if not symbol:
            raise ValueError(f"{tx_type.value} requires a symbol")
        if payload.quantity is None or payload.price_per_unit is None:
            raise ValueError(f"{tx_type.value} requires quantity and price_per_unit")
        if amount is None:
            amount = payload.quantity * payload.price_per_unit
    elif tx_type == folio.TransactionType.DIVIDEND and not symbol:
        raise ValueError("DIVIDEND requires a symbol")
    if amount is None:
        raise ValueError("amount is required")

    if tx_type == folio.TransactionType.SELL:
        records = await list_transactions(session, owner_id)
        history = [to_transaction(record) for record in reversed(records) if record.account_id == account.id]
        held = folio.positions_as_of(history, payload.date, str(account.id)).get(symbol)
        available = held.quantity if held is not None else 0.0
        if payload.quantity > available + _QUANTITY_TOLERANCE:
            raise ValueError(
                f"Insufficient position: selling {payload.quantity:g} {symbol} "
                f"but only {available:g} held on {payload.date.isoformat()}"
            )

    tx = Transaction(
        portfolio_id=portfolio.id,
        account_id=account.id,
        type=tx_type.value,
        amount=_decimal(amount),
        trade_date=payload.date,
        symbol=symbol,
        quantity=_decimal(payload.quantity),
        price_per_unit=_decimal(payload.price_per_unit),
        description=payload.description,
    )
    session.add(tx)
    await session.commit()
    await session.refresh(tx)
    logger.info("Recorded %s %s on account %s", tx.type, amount, account.id)
    return tx


async def delete_transaction(transaction_id: int, session: AsyncSession, owner_id: str) -> None:
    portfolio = await ensure_portfolio(session, owner_id)
    tx = await session.get(Transaction, transaction_id)
    if tx is None or tx.portfolio_id != portfolio.id:
        raise LookupError("Transaction not found for this portfolio")
    await session.delete(tx)
    await session.commit()


async def list_positions(session: AsyncSession, owner_id: str) -> list[StockPosition]:
    portfolio = await ensure_portfolio(session, owner_id)
    result = await session.execute(
        select(StockPosition)
        .where(StockPosition.portfolio_id == portfolio.id)
        .order_by(StockPosition.account_id, StockPosition.symbol)
    )
    return list(result.scalars().all())


async def upsert_position(
    payload: PositionUpsertRequest,
    session: AsyncSession,
    owner_id: str,
) -> StockPosition:
    """Create or refresh the stored row for ``(account, symbol)``.

    Stored rows only seed the positions view; quantity and average price are
    replaced by the transaction replay whenever the symbol has trades.
    """

    portfolio = await ensure_portfolio(session, owner_id)
    account = await _get_account(session, portfolio, payload.account_id)
    symbol = payload.symbol.strip().upper()
    result = await session.execute(
        select(StockPosition).where(
            StockPosition.account_id == account.id,
            StockPosition.symbol == symbol,
        )
    )
    record = result.scalars().first()
    if record is None:
        record = StockPosition(portfolio_id=portfolio.id, account_id=account.id, symbol=symbol)
        session.add(record)
    record.name = payload.name
    record.quantity = _decimal(payload.quantity)
    record.average_price = _decimal(payload.average_price)
    record.current_price = _decimal(payload.current_price)
    record.currency = payload.currency.upper()
    record.sector = payload.sector
    await session.commit()
    await session.refresh(record)
    return record


async def load_snapshot(
    session: AsyncSession,
    owner_id: str,
) -> tuple[list[folio.Account], list[folio.Transaction], list[folio.StoredPosition]]:
    """Read the owner's accounts, transactions and stored positions as engine values."""

    accounts = [to_account(record) for record in await list_accounts(session, owner_id)]
    records = await list_transactions(session, owner_id)
    # Stored newest first; the engine sorts by date itself but keep insertion order for ties
    transactions = [to_transaction(record) for record in reversed(records)]
    positions = [to_stored_position(record) for record in await list_positions(session, owner_id)]
    return accounts, transactions, positions


# ---------------------------------------------------------------------------
# Read models


async def compute_positions(
    session: AsyncSession,
    owner_id: str,
    provider: MarketDataProvider,
    *,
    as_of: date | None = None,
) -> tuple[list[folio.ReconciledPosition], folio.PortfolioSummary, tuple[folio.OversoldSell, ...]]:
    as_of = as_of or today()
    _, transactions, stored = await load_snapshot(session, owner_id)
    held = folio.open_positions(stored, transactions, as_of)
    quotes = await load_live_quotes(provider, sorted({pos.symbol for pos in held}))
    summary = folio.summarize_positions(held, quotes)
    oversold = folio.replay_positions(transactions, as_of).oversold
    if oversold:
        logger.warning("Owner %s has %d oversold sell(s)", owner_id, len(oversold))
    return held, summary, oversold


async def compute_valuations(
    session: AsyncSession,
    owner_id: str,
    provider: MarketDataProvider,
    *,
    as_of: date | None = None,
) -> list[folio.AccountValuation]:
    """Value every account from its transactions and the latest quotes."""

    as_of = as_of or today()
    accounts, transactions, stored = await load_snapshot(session, owner_id)
    held = folio.open_positions(stored, transactions, as_of)
    quotes = await load_live_quotes(provider, sorted({pos.symbol for pos in held}))
    return [folio.value_any_account(account, transactions, held, quotes) for account in accounts]


async def compute_dividends(
    session: AsyncSession,
    owner_id: str,
    year: int | None = None,
) -> folio.DividendReport:
    _, transactions, stored = await load_snapshot(session, owner_id)
    names = {pos.symbol.upper(): pos.name for pos in stored if pos.name}
    return folio.dividends_by_symbol(transactions, year=year, names=names)


async def compute_history(
    session: AsyncSession,
    owner_id: str,
    provider: MarketDataProvider,
    period_days: int,
    *,
    end: date | None = None,
) -> tuple[date, date, folio.Granularity, list[folio.HistoryPoint]]:
    end = end or today()
    accounts, transactions, _ = await load_snapshot(session, owner_id)
    start, end, granularity = folio.history_window(transactions, end, period_days)
    with tracer.start_as_current_span("portfolio.history") as span:
        span.set_attribute("portfolio.period_days", period_days)
        span.set_attribute("portfolio.transactions", len(transactions))
        if not transactions:
            return start, end, granularity, []
        series = await load_history(provider, folio.symbols_in(transactions), start, end)
        points = folio.build_history(transactions, accounts, series, start, end, granularity)
        span.set_attribute("portfolio.points", len(points))
    return start, end, granularity, points


async def compute_performance(
    session: AsyncSession,
    owner_id: str,
    provider: MarketDataProvider,
    *,
    end: date | None = None,
) -> folio.PerformanceReport:
    end = end or today()
    accounts, transactions, _ = await load_snapshot(session, owner_id)
    if not transactions:
        return folio.PerformanceReport()
    start, end, granularity = folio.full_history_window(transactions, end)
    with tracer.start_as_current_span("portfolio.performance") as span:
        span.set_attribute("portfolio.transactions", len(transactions))
        series = await load_history(provider, folio.symbols_in(transactions), start, end)
        history = folio.build_history(transactions, accounts, series, start, end, granularity)
        report = folio.attribute_performance(transactions, history, accounts, reference_year=end.year)
    return report


__all__ = [
    "ensure_portfolio",
    "list_accounts",
    "create_account",
    "list_transactions",
    "create_transaction",
    "delete_transaction",
    "list_positions",
    "upsert_position",
    "load_snapshot",
    "to_account",
    "to_transaction",
    "to_stored_position",
    "compute_positions",
    "compute_valuations",
    "compute_dividends",
    "compute_history",
    "compute_performance",
    "today",
]
