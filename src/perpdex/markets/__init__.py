"""Market tables: risk limits, oracle feed keys, and account addresses."""

from perpdex.markets.registry import (
    DEFAULT_MARKET_RISK,
    UNKNOWN_ASSET,
    FeedRegistry,
    MarketRiskRegistry,
)

__all__ = ["DEFAULT_MARKET_RISK", "UNKNOWN_ASSET", "FeedRegistry", "MarketRiskRegistry"]
