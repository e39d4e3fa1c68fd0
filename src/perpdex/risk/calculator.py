"""Risk and PnL metrics for on-chain positions.

Turns a decoded Position + Market snapshot and an oracle price into the
user-facing PositionMetrics record. All calculations use Decimal.

Unit conventions (reproduced from the on-chain program's accounting):
  - notional and margin are lamports; entry price is USD * 1e6
  - base size is notional lamports divided by the USD entry price, so PnL
    comes out in lamports and is converted through SOL at the *current*
    price. Long and short PnL therefore have opposite signs but are not
    mirror images in magnitude. The trade simulator uses plain USD
    arithmetic instead; the two are deliberately not unified.

Degradation policy: a missing oracle price falls back to the entry price
(flat PnL) and a missing market falls back to 800 bps maintenance, so a
complete record is always produced.
"""

from decimal import Decimal

from perpdex.markets.registry import UNKNOWN_ASSET
from perpdex.models import (
    BPS_DENOMINATOR,
    DEFAULT_MAINTENANCE_MARGIN_BPS,
    LAMPORTS_PER_SOL,
    OraclePrice,
    PositionMetrics,
    RawMarket,
    RawPosition,
    RiskLevel,
    Side,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Upper bounds (inclusive) of each risk bucket, in percent distance to liquidation
HIGH_RISK_MAX_DISTANCE_PCT = Decimal("5")
CAUTION_MAX_DISTANCE_PCT = Decimal("12")


def classify_risk(distance_pct: Decimal) -> RiskLevel:
    """Bucket a liquidation distance: <=5% high, <=12% caution, else safe."""
    if distance_pct <= HIGH_RISK_MAX_DISTANCE_PCT:
        return RiskLevel.HIGH
    if distance_pct <= CAUTION_MAX_DISTANCE_PCT:
        return RiskLevel.CAUTION
    return RiskLevel.SAFE


def liquidation_price(
    side: Side,
    entry_price: Decimal,
    base_size: Decimal,
    maintenance: Decimal,
    margin: Decimal,
) -> Decimal:
    """Price at which margin exactly covers the maintenance requirement.

    Shared by the positions calculator (lamport units) and the open-trade
    simulator (USD units); returns entry_price when base_size is zero.
    """
    if not base_size:
        return entry_price
    shift = (maintenance - margin) / base_size
    if side == Side.SHORT:
        return entry_price - shift
    return entry_price + shift


def risk_distance_pct(side: Side, current_price: Decimal, liq_price: Decimal) -> Decimal:
    """Percent gap between current and liquidation price, clamped at zero."""
    if not current_price:
        return ZERO
    if side == Side.SHORT:
        fraction = (liq_price - current_price) / current_price
    else:
        fraction = (current_price - liq_price) / current_price
    return max(ZERO, fraction * HUNDRED)


def compute_position_metrics(
    position: RawPosition,
    market: RawMarket | None,
    oracle: OraclePrice | None,
    asset: str = UNKNOWN_ASSET,
) -> PositionMetrics:
    """Compute PnL, margin, liquidation price and risk level for one position.

    Args:
        position: Decoded Position account.
        market: Decoded Market account, or None if it could not be resolved.
        oracle: Current oracle price for the market, or None if unavailable.
        asset: Display symbol for the position's market.

    Returns:
        A fully populated PositionMetrics; never raises for zero inputs.
    """
    side = position.side
    notional = Decimal(position.notional_lamports)
    margin = Decimal(position.margin_lamports)
    entry_price = position.entry_price_usd
    current_price = oracle.price if oracle is not None else entry_price

    base_size = notional / entry_price if entry_price else ZERO
    if side == Side.SHORT:
        price_delta = entry_price - current_price
    else:
        price_delta = current_price - entry_price
    pnl_lamports = price_delta * base_size if base_size else ZERO

    pnl_usd = (pnl_lamports / LAMPORTS_PER_SOL) * current_price
    margin_usd = (margin / LAMPORTS_PER_SOL) * current_price
    pnl_pct = (pnl_usd / margin_usd) * HUNDRED if margin_usd else ZERO

    maintenance_bps = (
        market.maintenance_margin_bps if market is not None else DEFAULT_MAINTENANCE_MARGIN_BPS
    )
    maintenance = notional * (Decimal(maintenance_bps) / BPS_DENOMINATOR)
    liq_price = liquidation_price(side, entry_price, base_size, maintenance, margin)
    distance_pct = risk_distance_pct(side, current_price, liq_price)

    return PositionMetrics(
        id=str(position.pubkey),
        asset=asset,
        side=side,
        notional=(notional / LAMPORTS_PER_SOL) * entry_price if notional else ZERO,
        entry_price=entry_price,
        current_price=current_price,
        pnl_usd=pnl_usd,
        pnl_pct=pnl_pct,
        margin=margin_usd,
        liquidation_price=liq_price,
        risk_level=classify_risk(distance_pct),
        risk_distance_pct=distance_pct,
    )
