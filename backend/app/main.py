"""FastAPI application entrypoint."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace

from app.api.routes import api_router
from app.config import get_settings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry
from app.db.init import init_database
from app.db.session import get_engine
from app.providers.yahoo_finance import get_yahoo_finance_client

settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0")
setup_logging()
setup_telemetry(app, settings, engine=get_engine() if settings.telemetry_enabled else None)

# Local dashboard origins on any port
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost",
    "http://127.0.0.1",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["traceparent", "tracestate", "x-request-id"],
)


@app.on_event("startup")
async def startup() -> None:
    """Initialise the database schema when the service boots."""

    await init_database()


@app.on_event("shutdown")
async def shutdown() -> None:
    await get_yahoo_finance_client().aclose()


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Return service readiness metadata."""

    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "timezone": settings.timezone,
        "base_currency": settings.base_currency,
    }


def configure_app() -> FastAPI:
    """Attach routes and dependencies."""

    app.include_router(api_router)
    return app


configure_app()


# Tag the active server span with the portfolio owner
@app.middleware("http")
async def _attach_owner(request, call_next):  # type: ignore[no-redef]
    owner = request.headers.get("x-user-id")
    if owner:
        trace.get_current_span().set_attribute("enduser.id", owner)
    return await call_next(request)


__all__ = ["app", "configure_app"]
