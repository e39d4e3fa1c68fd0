"""Static market tables: per-market risk limits and Pyth feed keys.

Both tables are built once at startup and passed by reference into the
oracle adapter, calculator and simulator.
"""

from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType

from solders.pubkey import Pubkey

from perpdex.exceptions import UnsupportedMarket
from perpdex.models import MarketConfig

UNKNOWN_ASSET = "UNKNOWN"

DEFAULT_MARKET_RISK: tuple[MarketConfig, ...] = (
    MarketConfig(symbol="ETH", max_leverage=Decimal("10"), maintenance_margin_fraction=Decimal("0.06")),
    MarketConfig(symbol="SOL", max_leverage=Decimal("8"), maintenance_margin_fraction=Decimal("0.08")),
)


class MarketRiskRegistry:
    """Immutable symbol -> MarketConfig lookup."""

    def __init__(self, configs: tuple[MarketConfig, ...] = DEFAULT_MARKET_RISK) -> None:
        self._configs: Mapping[str, MarketConfig] = MappingProxyType(
            {config.symbol.upper(): config for config in configs}
        )

    def lookup(self, symbol: str) -> MarketConfig | None:
        """Return the risk config for a symbol, or None if unsupported."""
        return self._configs.get(symbol.upper())

    def require(self, symbol: str) -> MarketConfig:
        """Return the risk config for a symbol or raise UnsupportedMarket."""
        config = self.lookup(symbol)
        if config is None:
            raise UnsupportedMarket(symbol)
        return config

    @property
    def symbols(self) -> list[str]:
        return list(self._configs)


class FeedRegistry:
    """Immutable symbol <-> Pyth feed key table."""

    def __init__(self, feeds: Mapping[str, str]) -> None:
        self._by_symbol: Mapping[str, Pubkey] = MappingProxyType(
            {symbol.upper(): Pubkey.from_string(key) for symbol, key in feeds.items()}
        )
        self._by_key: Mapping[Pubkey, str] = MappingProxyType(
            {key: symbol for symbol, key in self._by_symbol.items()}
        )

    def feed_key(self, symbol: str) -> Pubkey | None:
        """Return the feed account key for a symbol, or None if unregistered."""
        return self._by_symbol.get(symbol.upper())

    def symbol_for_oracle(self, oracle: Pubkey) -> str:
        """Map an oracle account key back to its market symbol.

        Keys outside the table render as "UNKNOWN".
        """
        return self._by_key.get(oracle, UNKNOWN_ASSET)

    @property
    def supported_markets(self) -> list[str]:
        return list(self._by_symbol)
