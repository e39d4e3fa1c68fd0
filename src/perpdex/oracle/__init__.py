"""Oracle layer: Pyth price account decoding and price adapter."""

from perpdex.oracle.adapter import OracleAdapter
from perpdex.oracle.pyth import PythPriceData, parse_price_data

__all__ = ["OracleAdapter", "PythPriceData", "parse_price_data"]
