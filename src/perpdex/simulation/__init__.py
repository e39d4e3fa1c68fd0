"""Trade simulation: pre-trade liquidation and settlement projections."""

from perpdex.simulation.simulator import TradeSimulator

__all__ = ["TradeSimulator"]
