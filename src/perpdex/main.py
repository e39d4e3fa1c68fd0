"""Entry point for the perpdex risk engine API.

Wires the engine together and serves it with uvicorn's programmatic API.
The Solana account store is created in the FastAPI lifespan so its HTTP
session lives and dies with the server.

Component wiring order (in lifespan):
1. AppSettings (configuration, loaded in run())
2. Logging setup (run())
3. SolanaAccountStore (RPC reads)
4. MarketRiskRegistry + FeedRegistry (static tables)
5. OracleAdapter (Pyth feed reads)
6. TradeSimulator (open/close projections)
7. PositionService (positions listing)
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from perpdex.api.app import create_app, wire_components
from perpdex.chain.solana_store import SolanaAccountStore
from perpdex.config import AppSettings, cluster_label
from perpdex.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the account store and engine components; close the store on shutdown."""
    logger = get_logger("perpdex.main")
    settings: AppSettings = app.state.settings

    store = SolanaAccountStore(settings.solana)
    wire_components(app, settings, store)

    logger.info(
        "lifespan_started",
        cluster=cluster_label(settings.solana),
        program_id=settings.program.program_id,
        markets=app.state.feeds.supported_markets,
    )

    yield

    await store.close()
    logger.info("perpdex_api_stopped")


async def run() -> None:
    """Run the API server until interrupted."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("perpdex.main")

    app = create_app(lifespan=lifespan)
    app.state.settings = settings

    logger.info("starting_api", host=settings.api.host, port=settings.api.port)

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # structlog covers request outcomes
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
