"""Shared data models for the perpdex risk engine.

All monetary values use Decimal. Lamport quantities stay integers until the
calculator converts them; USD values are Decimal from the oracle onward.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum

from solders.pubkey import Pubkey

LAMPORTS_PER_SOL = Decimal("1000000000")
PRICE_SCALE = Decimal("1000000")  # on-chain entry price fixed-point scale
DEFAULT_MAINTENANCE_MARGIN_BPS = 800
BPS_DENOMINATOR = Decimal("10000")


class Side(str, Enum):
    """Position direction."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: str | None) -> "Side":
        """Parse a request-supplied side; anything other than "short" is long."""
        return cls.SHORT if str(value or "").strip().lower() == "short" else cls.LONG


class RiskLevel(str, Enum):
    """Liquidation-distance risk bucket."""

    SAFE = "safe"
    CAUTION = "caution"
    HIGH = "high"


class PriceStatus(IntEnum):
    """Pyth aggregate price status."""

    UNKNOWN = 0
    TRADING = 1
    HALTED = 2
    AUCTION = 3
    IGNORED = 4


@dataclass(frozen=True)
class MarketConfig:
    """Static risk parameters for a tradable market."""

    symbol: str
    max_leverage: Decimal
    maintenance_margin_fraction: Decimal

    def __post_init__(self) -> None:
        if not Decimal("0") < self.maintenance_margin_fraction < Decimal("1"):
            raise ValueError(
                f"{self.symbol}: maintenance margin fraction must be in (0, 1), "
                f"got {self.maintenance_margin_fraction}"
            )
        if self.max_leverage < 1:
            raise ValueError(f"{self.symbol}: max leverage must be >= 1, got {self.max_leverage}")


@dataclass(frozen=True)
class OraclePrice:
    """Decoded oracle price snapshot, already scaled to USD.

    price == raw_price * 10**exponent and likewise for confidence.
    """

    market: str
    price: Decimal
    confidence: Decimal
    exponent: int
    publish_time: int
    status: PriceStatus | int
    raw_price: int
    raw_confidence: int

    def to_dict(self) -> dict:
        return {
            "market": self.market,
            "price": float(self.price),
            "confidence": float(self.confidence),
            "publishTime": self.publish_time,
            "status": int(self.status),
            "exponent": self.exponent,
            "raw": {
                "price": self.raw_price,
                "confidence": self.raw_confidence,
            },
        }


@dataclass(frozen=True)
class RawPosition:
    """Snapshot of an on-chain Position account."""

    pubkey: Pubkey
    owner: Pubkey
    market: Pubkey
    side: Side
    notional_lamports: int
    margin_lamports: int
    entry_price_raw: int

    @property
    def entry_price_usd(self) -> Decimal:
        return Decimal(self.entry_price_raw) / PRICE_SCALE


@dataclass(frozen=True)
class RawMarket:
    """Snapshot of an on-chain Market account."""

    pubkey: Pubkey
    oracle: Pubkey
    maintenance_margin_bps: int = DEFAULT_MAINTENANCE_MARGIN_BPS


@dataclass(frozen=True)
class PositionMetrics:
    """User-facing risk view of a single position."""

    id: str
    asset: str
    side: Side
    notional: Decimal
    entry_price: Decimal
    current_price: Decimal
    pnl_usd: Decimal
    pnl_pct: Decimal
    margin: Decimal
    liquidation_price: Decimal
    risk_level: RiskLevel
    risk_distance_pct: Decimal

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset": self.asset,
            "side": self.side.value,
            "notional": float(self.notional),
            "entryPrice": float(self.entry_price),
            "currentPrice": float(self.current_price),
            "pnlUsd": float(self.pnl_usd),
            "pnlPct": float(self.pnl_pct),
            "margin": float(self.margin),
            "liquidationPrice": float(self.liquidation_price),
            "riskLevel": self.risk_level.value,
            "riskDistancePct": float(self.risk_distance_pct),
        }


@dataclass(frozen=True)
class OpenSimulation:
    """Projected outcome of opening a position at the current oracle price."""

    market: str
    side: Side
    entry_price: Decimal
    liquidation_price: Decimal
    max_loss: Decimal
    estimated_funding: Decimal
    notional: Decimal
    oracle: OraclePrice

    def to_dict(self) -> dict:
        return {
            "market": self.market,
            "side": self.side.value,
            "entryPrice": float(self.entry_price),
            "liquidationPrice": float(self.liquidation_price),
            "maxLoss": float(self.max_loss),
            "estimatedFunding": float(self.estimated_funding),
            "notional": float(self.notional),
            "oracle": self.oracle.to_dict(),
        }


@dataclass(frozen=True)
class CloseSimulation:
    """Projected settlement of closing a position at the current mark price."""

    market: str
    side: Side
    mark_price: Decimal
    pnl: Decimal
    funding_impact: Decimal
    settlement: Decimal
    oracle: OraclePrice

    def to_dict(self) -> dict:
        return {
            "market": self.market,
            "side": self.side.value,
            "markPrice": float(self.mark_price),
            "pnl": float(self.pnl),
            "fundingImpact": float(self.funding_impact),
            "settlement": float(self.settlement),
            "oracle": self.oracle.to_dict(),
        }


@dataclass(frozen=True)
class PositionsSnapshot:
    """Result of a positions listing for one owner."""

    positions: list[PositionMetrics]
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "positions": [p.to_dict() for p in self.positions],
            "updatedAt": self.updated_at.isoformat().replace("+00:00", "Z"),
        }
