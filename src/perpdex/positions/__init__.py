"""Positions listing: owner positions with live risk metrics."""

from perpdex.positions.service import PositionService

__all__ = ["PositionService"]
