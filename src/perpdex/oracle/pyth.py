"""Pyth v2 price account layout and decoding.

Only the header, exponent, publish timestamp and aggregate price info are
named; everything else in the account is skipped with padding.

Offsets (bytes):
  0   magic u32 (0xa1b2c3d4), version u32, account type u32 (3 = price), size u32
  20  exponent i32
  96  timestamp i64 (unix seconds of the last aggregate)
  208 aggregate price i64, conf u64, status u32, corporate action u32, pub slot u64
"""

from dataclasses import dataclass
from decimal import Decimal

from construct import (
    Bytes,
    Const,
    ConstructError,
    Int32sl,
    Int32ul,
    Int64sl,
    Int64ul,
    Padding,
    Struct,
)

from perpdex.exceptions import DecodeFailure

PYTH_MAGIC = 0xA1B2C3D4
PYTH_PRICE_ACCOUNT_TYPE = 3

PRICE_INFO = Struct(
    "price" / Int64sl,
    "confidence" / Int64ul,
    "status" / Int32ul,
    "corporate_action" / Int32ul,
    "publish_slot" / Int64ul,
)

PRICE_ACCOUNT = Struct(
    "magic" / Const(PYTH_MAGIC, Int32ul),
    "version" / Int32ul,
    "account_type" / Const(PYTH_PRICE_ACCOUNT_TYPE, Int32ul),
    "size" / Int32ul,
    "price_type" / Int32ul,
    "exponent" / Int32sl,
    "num_components" / Int32ul,
    "num_quoters" / Int32ul,
    "last_slot" / Int64ul,
    "valid_slot" / Int64ul,
    Padding(48),  # ema price / ema confidence derivations
    "timestamp" / Int64sl,
    Padding(8),  # min publishers + reserved
    "product" / Bytes(32),
    "next" / Bytes(32),
    "previous_slot" / Int64ul,
    "previous_price" / Int64sl,
    "previous_confidence" / Int64ul,
    "previous_timestamp" / Int64sl,
    "aggregate" / PRICE_INFO,
)


@dataclass(frozen=True)
class PythPriceData:
    """Unscaled aggregate price fields of a Pyth price account."""

    price: int
    confidence: int
    exponent: int
    publish_time: int
    status: int

    @property
    def scaled_price(self) -> Decimal:
        return Decimal(self.price).scaleb(self.exponent)

    @property
    def scaled_confidence(self) -> Decimal:
        return Decimal(self.confidence).scaleb(self.exponent)


def parse_price_data(data: bytes) -> PythPriceData:
    """Decode a Pyth price account.

    Raises:
        DecodeFailure: If the bytes are not a Pyth v2 price account.
    """
    try:
        parsed = PRICE_ACCOUNT.parse(data)
    except ConstructError as e:
        raise DecodeFailure(f"Not a Pyth price account: {e}") from e

    return PythPriceData(
        price=parsed.aggregate.price,
        confidence=parsed.aggregate.confidence,
        exponent=parsed.exponent,
        publish_time=parsed.timestamp,
        status=parsed.aggregate.status,
    )
