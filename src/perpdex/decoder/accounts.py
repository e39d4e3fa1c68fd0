"""Position and Market account decoding.

Side normalisation happens here and only here: downstream code always sees
a Side member. Batch decoding drops accounts that fail to decode (stale or
foreign layouts under the same program) after logging them.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from construct import ConstructError
from solders.pubkey import Pubkey

from perpdex.decoder.layouts import MARKET_LAYOUTS, POSITION_LAYOUT
from perpdex.exceptions import DecodeFailure
from perpdex.logging import get_logger
from perpdex.models import DEFAULT_MAINTENANCE_MARGIN_BPS, RawMarket, RawPosition, Side

logger = get_logger(__name__)

SHORT_ENUM_INDEX = 1


def normalize_side(value: Any) -> Side:
    """Collapse the shapes a decoded side can take into a Side.

    Accepts a string ("short" in any case is short, anything else long),
    a tagged-variant mapping such as {"short": {}}, a borsh enum index,
    or nothing at all (long).
    """
    if isinstance(value, Side):
        return value
    if not value:
        return Side.LONG
    if isinstance(value, str):
        return Side.SHORT if value.lower() == "short" else Side.LONG
    if isinstance(value, Mapping):
        return Side.SHORT if "short" in value else Side.LONG
    if isinstance(value, int):
        return Side.SHORT if value == SHORT_ENUM_INDEX else Side.LONG
    return Side.LONG


def decode_position(pubkey: Pubkey, data: bytes) -> RawPosition:
    """Decode a Position account.

    Raises:
        DecodeFailure: If the bytes do not match the Position layout.
    """
    try:
        parsed = POSITION_LAYOUT.parse(data)
    except ConstructError as e:
        raise DecodeFailure(f"Position {pubkey}: {e}") from e

    return RawPosition(
        pubkey=pubkey,
        owner=Pubkey.from_bytes(parsed.owner),
        market=Pubkey.from_bytes(parsed.market),
        side=normalize_side(parsed.side),
        notional_lamports=parsed.notional,
        margin_lamports=parsed.margin,
        entry_price_raw=parsed.entry_price,
    )


def decode_market(pubkey: Pubkey, data: bytes) -> RawMarket:
    """Decode a Market account, trying each known layout version.

    Legacy accounts without a maintenance margin field get 800 bps.

    Raises:
        DecodeFailure: If no layout version matches.
    """
    last_error: ConstructError | None = None
    for layout in MARKET_LAYOUTS:
        try:
            parsed = layout.parse(data)
        except ConstructError as e:
            last_error = e
            continue
        return RawMarket(
            pubkey=pubkey,
            oracle=Pubkey.from_bytes(parsed.oracle),
            maintenance_margin_bps=parsed.get("maintenance_margin_bps", DEFAULT_MAINTENANCE_MARGIN_BPS),
        )

    raise DecodeFailure(f"Market {pubkey}: {last_error}")


def decode_positions(accounts: Iterable[tuple[Pubkey, bytes]]) -> list[RawPosition]:
    """Decode a batch of Position accounts, skipping the ones that fail."""
    positions: list[RawPosition] = []
    for pubkey, data in accounts:
        try:
            positions.append(decode_position(pubkey, data))
        except DecodeFailure as e:
            logger.warning("position_decode_skipped", account=str(pubkey), error=str(e))
    return positions


def decode_markets(
    keys: list[Pubkey], datas: list[bytes | None]
) -> dict[Pubkey, RawMarket]:
    """Decode market accounts fetched positionally; missing or bad ones are skipped."""
    markets: dict[Pubkey, RawMarket] = {}
    for key, data in zip(keys, datas):
        if data is None:
            logger.warning("market_account_missing", market=str(key))
            continue
        try:
            markets[key] = decode_market(key, data)
        except DecodeFailure as e:
            logger.warning("market_decode_skipped", market=str(key), error=str(e))
    return markets
