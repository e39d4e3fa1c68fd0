"""Oracle price adapter: reads a Pyth feed account and scales it to USD.

One account read per call, with no caching or retries. Batch callers
deduplicate feed keys before calling.
"""

from solders.pubkey import Pubkey

from perpdex.chain.client import AccountStore
from perpdex.exceptions import DecodeFailure, InvalidAddress, OracleUnavailable, UnsupportedMarket
from perpdex.logging import get_logger
from perpdex.markets.registry import UNKNOWN_ASSET, FeedRegistry
from perpdex.models import OraclePrice, PriceStatus
from perpdex.oracle.pyth import parse_price_data

logger = get_logger(__name__)


class OracleAdapter:
    """Fetches normalized OraclePrice snapshots by symbol or feed key.

    Args:
        store: Account store used to read feed accounts.
        feeds: Symbol <-> feed key table.
    """

    def __init__(self, store: AccountStore, feeds: FeedRegistry) -> None:
        self._store = store
        self._feeds = feeds

    async def fetch(self, market: str) -> OraclePrice:
        """Fetch the current price for a market symbol.

        Raises:
            UnsupportedMarket: No feed key is registered for the symbol.
            OracleUnavailable: The feed account is missing or unreadable.
        """
        symbol = market.upper()
        feed_key = self._feeds.feed_key(symbol)
        if feed_key is None:
            raise UnsupportedMarket(symbol)
        return await self.fetch_by_key(feed_key, market_label=symbol)

    async def fetch_by_key(
        self, oracle_key: Pubkey | str, market_label: str = UNKNOWN_ASSET
    ) -> OraclePrice:
        """Fetch the current price from an explicit feed account key.

        Used when the key comes from a decoded market account; `market_label`
        only affects the `market` field of the result.
        """
        key = _to_pubkey(oracle_key)

        try:
            data = await self._store.get_account_data(key)
        except Exception as e:
            logger.warning("oracle_read_failed", feed_key=str(key), error=str(e))
            raise OracleUnavailable(str(key), reason=f"Oracle read failed: {e}") from e

        if data is None:
            raise OracleUnavailable(str(key))

        try:
            decoded = parse_price_data(data)
        except DecodeFailure as e:
            raise OracleUnavailable(str(key), reason="Oracle account is not a price feed") from e

        price = OraclePrice(
            market=market_label,
            price=decoded.scaled_price,
            confidence=decoded.scaled_confidence,
            exponent=decoded.exponent,
            publish_time=decoded.publish_time,
            status=_status(decoded.status),
            raw_price=decoded.price,
            raw_confidence=decoded.confidence,
        )
        logger.debug(
            "oracle_price_fetched",
            market=market_label,
            feed_key=str(key),
            price=str(price.price),
            confidence=str(price.confidence),
        )
        return price


def _to_pubkey(value: Pubkey | str) -> Pubkey:
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise InvalidAddress(value) from e


def _status(raw: int) -> PriceStatus | int:
    try:
        return PriceStatus(raw)
    except ValueError:
        return raw
