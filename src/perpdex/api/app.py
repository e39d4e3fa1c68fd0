"""FastAPI application factory with error mapping and component wiring."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from solders.pubkey import Pubkey

from perpdex.api import routes
from perpdex.chain.client import AccountStore
from perpdex.config import AppSettings
from perpdex.exceptions import PerpdexError
from perpdex.logging import get_logger
from perpdex.markets.registry import FeedRegistry, MarketRiskRegistry
from perpdex.oracle.adapter import OracleAdapter
from perpdex.positions.service import PositionService
from perpdex.simulation.simulator import TradeSimulator

logger = get_logger(__name__)


async def _perpdex_error_handler(request: Request, exc: PerpdexError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(content={"error": str(exc)}, status_code=400)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", path=request.url.path)
    message = str(exc) or "Internal error"
    return JSONResponse(content={"error": message}, status_code=500)


def wire_components(app: FastAPI, settings: AppSettings, store: AccountStore) -> None:
    """Build the engine's components and attach them to app.state.

    The static tables are constructed here once and shared by reference.
    """
    risk_registry = MarketRiskRegistry()
    feeds = FeedRegistry(settings.pyth.feeds())
    program_id = Pubkey.from_string(settings.program.program_id)
    oracle = OracleAdapter(store, feeds)

    app.state.settings = settings
    app.state.account_store = store
    app.state.risk_registry = risk_registry
    app.state.feeds = feeds
    app.state.program_id = program_id
    app.state.oracle = oracle
    app.state.simulator = TradeSimulator(oracle, risk_registry)
    app.state.position_service = PositionService(store, oracle, feeds, program_id)


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to build and tear down the account store.

    Returns:
        Configured FastAPI application with routes and error handlers.
    """
    app = FastAPI(
        title="Perpdex Risk Engine",
        lifespan=lifespan,
    )

    app.add_exception_handler(PerpdexError, _perpdex_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    app.include_router(routes.router, prefix="/api")

    return app
