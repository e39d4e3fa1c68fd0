"""Anchor account layouts for the perpdex program.

Every account starts with an 8-byte discriminator,
sha256("account:<Name>")[:8]. Market accounts exist in two versions:
v1 predates the per-market maintenance margin field.
"""

import hashlib

from construct import Bytes, Const, Int8ul, Int32ul, Int64sl, Int64ul, Struct

DISCRIMINATOR_SIZE = 8
OWNER_OFFSET = DISCRIMINATOR_SIZE  # Position.owner follows the discriminator

PublicKeyBytes = Bytes(32)


def account_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode("utf-8")).digest()[:DISCRIMINATOR_SIZE]


POSITION_DISCRIMINATOR = account_discriminator("Position")
MARKET_DISCRIMINATOR = account_discriminator("Market")

POSITION_LAYOUT = Struct(
    "discriminator" / Const(POSITION_DISCRIMINATOR),
    "owner" / PublicKeyBytes,
    "market" / PublicKeyBytes,
    "side" / Int8ul,  # borsh enum index: 0 = Long, 1 = Short
    "notional" / Int64ul,
    "margin" / Int64ul,
    "entry_price" / Int64sl,
    "bump" / Int8ul,
)

MARKET_LAYOUT_V2 = Struct(
    "discriminator" / Const(MARKET_DISCRIMINATOR),
    "authority" / PublicKeyBytes,
    "oracle" / PublicKeyBytes,
    "maintenance_margin_bps" / Int32ul,
    "bump" / Int8ul,
)

MARKET_LAYOUT_V1 = Struct(
    "discriminator" / Const(MARKET_DISCRIMINATOR),
    "authority" / PublicKeyBytes,
    "oracle" / PublicKeyBytes,
    "bump" / Int8ul,
)

# Newest first; decoding takes the first layout that fits.
MARKET_LAYOUTS = (MARKET_LAYOUT_V2, MARKET_LAYOUT_V1)
