"""JSON API endpoints: trade simulation, positions, oracle prices, markets, wallet status."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from solders.pubkey import Pubkey

from perpdex.config import cluster_label
from perpdex.exceptions import InvalidAddress, RpcUnavailable
from perpdex.markets.pdas import market_pda
from perpdex.models import LAMPORTS_PER_SOL, Side

router = APIRouter()

DEFAULT_MARKET = "ETH"


def _decimal_field(body: dict, name: str) -> Decimal | None:
    """Read a numeric body field as Decimal; unparseable or non-finite values are None."""
    value = body.get(name)
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def _market_field(body: dict) -> str:
    """Market symbol from the body; only an absent field defaults to ETH."""
    market = body.get("market")
    return DEFAULT_MARKET if market is None else str(market)


async def _json_body(request: Request) -> dict[str, Any] | JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(content={"error": "Invalid JSON body"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse(content={"error": "Invalid JSON body"}, status_code=400)
    return body


@router.post("/simulate/open")
async def simulate_open(request: Request) -> JSONResponse:
    """Project entry and liquidation price for a hypothetical open."""
    body = await _json_body(request)
    if isinstance(body, JSONResponse):
        return body

    simulator = request.app.state.simulator
    result = await simulator.simulate_open(
        market=_market_field(body),
        side=Side.parse(body.get("side")),
        margin=_decimal_field(body, "margin"),
        leverage=_decimal_field(body, "leverage"),
    )
    return JSONResponse(content=result.to_dict())


@router.post("/simulate/close")
async def simulate_close(request: Request) -> JSONResponse:
    """Project PnL and settlement for closing a position at the mark price."""
    body = await _json_body(request)
    if isinstance(body, JSONResponse):
        return body

    simulator = request.app.state.simulator
    result = await simulator.simulate_close(
        market=_market_field(body),
        side=Side.parse(body.get("side")),
        margin=_decimal_field(body, "margin"),
        notional=_decimal_field(body, "notional"),
        entry_price=_decimal_field(body, "entryPrice"),
    )
    return JSONResponse(content=result.to_dict())


@router.get("/positions")
async def get_positions(request: Request, wallet: str | None = None) -> JSONResponse:
    """Open positions for a wallet with live PnL and liquidation risk."""
    position_service = request.app.state.position_service
    snapshot = await position_service.list_positions(wallet)
    return JSONResponse(content=snapshot.to_dict())


@router.get("/oracle")
async def get_oracle(
    request: Request, market: str = "ETH", oracle: str | None = None
) -> JSONResponse:
    """Current oracle price by market symbol, or by explicit feed key."""
    adapter = request.app.state.oracle
    label = market.upper()
    if oracle:
        price = await adapter.fetch_by_key(oracle, market_label=label)
    else:
        price = await adapter.fetch(label)
    return JSONResponse(content=price.to_dict())


@router.get("/markets")
async def get_markets(request: Request) -> JSONResponse:
    """Supported markets with risk limits, feed keys, and market account addresses."""
    registry = request.app.state.risk_registry
    feeds = request.app.state.feeds
    program_id = request.app.state.program_id

    result = []
    for symbol in registry.symbols:
        config = registry.require(symbol)
        feed_key = feeds.feed_key(symbol)
        result.append({
            "symbol": symbol,
            "maxLeverage": float(config.max_leverage),
            "maintenanceMargin": float(config.maintenance_margin_fraction),
            "oracle": str(feed_key) if feed_key is not None else None,
            "marketAccount": str(market_pda(program_id, feed_key)[0]) if feed_key is not None else None,
        })

    return JSONResponse(content={"programId": str(program_id), "markets": result})


@router.get("/wallet")
async def get_wallet(request: Request, wallet: str | None = None) -> JSONResponse:
    """Wallet SOL balance and RPC network status."""
    store = request.app.state.account_store
    settings = request.app.state.settings

    address: str | None = None
    sol_balance: float | None = None
    if wallet:
        try:
            pubkey = Pubkey.from_string(wallet)
        except ValueError as e:
            raise InvalidAddress(wallet) from e
        address = str(pubkey)
        try:
            lamports = await store.get_balance(pubkey)
        except Exception as e:
            raise RpcUnavailable("getBalance", str(e)) from e
        sol_balance = float(Decimal(lamports) / LAMPORTS_PER_SOL)

    healthy = await store.is_healthy()

    return JSONResponse(content={
        "connected": address is not None,
        "address": address,
        "balances": {
            "sol": sol_balance,
            "collateral": None,
        },
        "network": {
            "cluster": cluster_label(settings.solana),
            "rpcUrl": settings.solana.rpc_url,
            "rpcStatus": "healthy" if healthy else "degraded",
            "lastSync": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
    })
