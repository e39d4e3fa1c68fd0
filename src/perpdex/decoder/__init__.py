"""Account decoding: Anchor layouts for Position and Market accounts."""

from perpdex.decoder.accounts import (
    decode_market,
    decode_markets,
    decode_position,
    decode_positions,
    normalize_side,
)

__all__ = [
    "decode_market",
    "decode_markets",
    "decode_position",
    "decode_positions",
    "normalize_side",
]
