"""Pre-trade simulation of opening and closing positions.

Open: the fill price is skewed by the oracle confidence against the trader
(long pays price + conf, short receives price - conf). Close: marks at the
raw oracle price with no skew. The asymmetry matches how the program fills
and is kept as-is.

Funding is not modelled; estimated funding and funding impact are always 0.
"""

import math
from decimal import Decimal

from perpdex.exceptions import InputOutOfRange, LeverageExceedsMax, MissingField, OracleUnavailable
from perpdex.logging import get_logger
from perpdex.markets.registry import MarketRiskRegistry
from perpdex.models import CloseSimulation, OpenSimulation, Side
from perpdex.oracle.adapter import OracleAdapter
from perpdex.risk.calculator import liquidation_price

logger = get_logger(__name__)

ZERO = Decimal("0")


class TradeSimulator:
    """Projects liquidation price and PnL for hypothetical trades.

    Stateless apart from its collaborators; each call issues exactly one
    oracle fetch.

    Args:
        oracle: Adapter used to price the market.
        registry: Market risk table (leverage caps, maintenance fractions).
    """

    def __init__(self, oracle: OracleAdapter, registry: MarketRiskRegistry) -> None:
        self._oracle = oracle
        self._registry = registry

    async def simulate_open(
        self,
        market: str,
        side: Side,
        margin: Decimal | None,
        leverage: Decimal | None,
    ) -> OpenSimulation:
        """Simulate opening a position of `margin * leverage` notional.

        Raises:
            UnsupportedMarket: market is not in the risk registry (checked first).
            MissingField: margin or leverage is zero, negative or absent.
            LeverageExceedsMax: leverage is above the market's cap.
            OracleUnavailable: the market's price feed cannot be read.
            InputOutOfRange: the projection overflows a double.
        """
        symbol = market.upper()
        risk = self._registry.require(symbol)
        _require({"margin": margin, "leverage": leverage})
        if leverage > risk.max_leverage:
            raise LeverageExceedsMax(leverage, risk.max_leverage)

        oracle = await self._oracle.fetch(symbol)
        if side == Side.SHORT:
            effective_price = oracle.price - oracle.confidence
        else:
            effective_price = oracle.price + oracle.confidence
        if effective_price <= ZERO:
            raise OracleUnavailable(symbol, reason="Oracle price is not usable")

        notional = margin * leverage
        base_size = notional / effective_price
        maintenance = notional * risk.maintenance_margin_fraction
        liq_price = liquidation_price(side, effective_price, base_size, maintenance, margin)
        _require_reportable(["margin", "leverage"], margin, notional, liq_price)

        logger.info(
            "open_simulated",
            market=symbol,
            side=side.value,
            notional=str(notional),
            entry_price=str(effective_price),
            liquidation_price=str(liq_price),
        )

        return OpenSimulation(
            market=symbol,
            side=side,
            entry_price=effective_price,
            liquidation_price=liq_price,
            max_loss=margin,
            estimated_funding=ZERO,
            notional=notional,
            oracle=oracle,
        )

    async def simulate_close(
        self,
        market: str,
        side: Side,
        margin: Decimal | None,
        notional: Decimal | None,
        entry_price: Decimal | None,
    ) -> CloseSimulation:
        """Simulate closing a position at the current oracle mark price.

        Raises:
            MissingField: any of margin, notional or entry price is zero,
                negative or absent.
            UnsupportedMarket: no price feed is registered for the market.
            OracleUnavailable: the market's price feed cannot be read.
            InputOutOfRange: the projection overflows a double.
        """
        _require({"margin": margin, "notional": notional, "entryPrice": entry_price})
        symbol = market.upper()

        oracle = await self._oracle.fetch(symbol)
        mark_price = oracle.price
        base_size = notional / entry_price
        if side == Side.SHORT:
            pnl = (entry_price - mark_price) * base_size
        else:
            pnl = (mark_price - entry_price) * base_size

        funding_impact = ZERO
        settlement = margin + pnl - funding_impact
        _require_reportable(["margin", "notional", "entryPrice"], pnl, settlement)

        logger.info(
            "close_simulated",
            market=symbol,
            side=side.value,
            mark_price=str(mark_price),
            pnl=str(pnl),
        )

        return CloseSimulation(
            market=symbol,
            side=side,
            mark_price=mark_price,
            pnl=pnl,
            funding_impact=funding_impact,
            settlement=settlement,
            oracle=oracle,
        )


def _require(fields: dict[str, Decimal | None]) -> None:
    """Raise MissingField naming every required input if any is unusable."""
    if any(value is None or value <= ZERO for value in fields.values()):
        raise MissingField(list(fields))


def _require_reportable(inputs: list[str], *values: Decimal) -> None:
    """Raise InputOutOfRange if any result would overflow a JSON float."""
    if not all(math.isfinite(float(value)) for value in values):
        raise InputOutOfRange(inputs)
