"""Risk layer: position PnL, liquidation price, and risk classification."""

from perpdex.risk.calculator import classify_risk, compute_position_metrics, liquidation_price

__all__ = ["classify_risk", "compute_position_metrics", "liquidation_price"]
