"""Positions listing: chain accounts -> PositionMetrics for one owner.

Pipeline:
1. getProgramAccounts filtered by the Position discriminator and owner
2. Decode positions, dropping accounts that fail to decode
3. Fetch each distinct market account once (getMultipleAccounts)
4. Fetch each distinct oracle feed once, concurrently via asyncio.gather
5. Compute metrics per position, degrading to stale fallback on any miss

A per-position or per-market failure never fails the batch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from solders.pubkey import Pubkey

from perpdex.chain.client import MemcmpFilter
from perpdex.decoder.accounts import decode_markets, decode_positions
from perpdex.decoder.layouts import OWNER_OFFSET, POSITION_DISCRIMINATOR
from perpdex.exceptions import InvalidAddress, OracleUnavailable
from perpdex.logging import get_logger
from perpdex.markets.registry import UNKNOWN_ASSET
from perpdex.models import OraclePrice, PositionMetrics, PositionsSnapshot, RawMarket
from perpdex.risk.calculator import compute_position_metrics

if TYPE_CHECKING:
    from perpdex.chain.client import AccountStore
    from perpdex.markets.registry import FeedRegistry
    from perpdex.oracle.adapter import OracleAdapter

logger = get_logger(__name__)


class PositionService:
    """Lists an owner's positions with live risk metrics.

    Args:
        store: Account store for program and market accounts.
        oracle: Adapter for oracle feed reads.
        feeds: Feed table used to label positions with their asset symbol.
        program_id: The perpdex program that owns Position accounts.
    """

    def __init__(
        self,
        store: AccountStore,
        oracle: OracleAdapter,
        feeds: FeedRegistry,
        program_id: Pubkey,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._feeds = feeds
        self._program_id = program_id

    async def list_positions(self, owner: str | None) -> PositionsSnapshot:
        """Return all positions held by `owner`.

        An empty owner yields an empty snapshot rather than an error.

        Raises:
            InvalidAddress: owner is not a valid base58 public key.
        """
        updated_at = datetime.now(timezone.utc)
        if not owner:
            return PositionsSnapshot(positions=[], updated_at=updated_at)

        try:
            owner_key = Pubkey.from_string(owner)
        except ValueError as e:
            raise InvalidAddress(owner) from e

        structlog.contextvars.bind_contextvars(owner=str(owner_key))
        try:
            positions = await self._load_positions(owner_key)
        finally:
            structlog.contextvars.unbind_contextvars("owner")

        return PositionsSnapshot(positions=positions, updated_at=updated_at)

    async def _load_positions(self, owner: Pubkey) -> list[PositionMetrics]:
        accounts = await self._store.get_program_accounts(
            self._program_id,
            [
                MemcmpFilter(offset=0, data=POSITION_DISCRIMINATOR),
                MemcmpFilter(offset=OWNER_OFFSET, data=bytes(owner)),
            ],
        )
        if not accounts:
            return []

        positions = decode_positions(accounts)
        market_keys = list(dict.fromkeys(p.market for p in positions))
        markets = await self._fetch_markets(market_keys)
        prices = await self._fetch_oracles(markets.values())

        results: list[PositionMetrics] = []
        for position in positions:
            market = markets.get(position.market)
            if market is None:
                results.append(compute_position_metrics(position, None, None, asset=UNKNOWN_ASSET))
                continue
            results.append(
                compute_position_metrics(
                    position,
                    market,
                    prices.get(market.oracle),
                    asset=self._feeds.symbol_for_oracle(market.oracle),
                )
            )

        logger.info(
            "positions_listed",
            accounts=len(accounts),
            decoded=len(positions),
            markets=len(markets),
            oracles=len(prices),
        )
        return results

    async def _fetch_markets(self, keys: list[Pubkey]) -> dict[Pubkey, RawMarket]:
        if not keys:
            return {}
        datas = await self._store.get_multiple_account_data(keys)
        return decode_markets(keys, datas)

    async def _fetch_oracles(self, markets: Iterable[RawMarket]) -> dict[Pubkey, OraclePrice]:
        """Fetch each distinct oracle key once; failed feeds are left out."""
        oracle_keys = list(dict.fromkeys(m.oracle for m in markets))
        if not oracle_keys:
            return {}

        results = await asyncio.gather(
            *(
                self._oracle.fetch_by_key(key, market_label=self._feeds.symbol_for_oracle(key))
                for key in oracle_keys
            ),
            return_exceptions=True,
        )

        prices: dict[Pubkey, OraclePrice] = {}
        for key, result in zip(oracle_keys, results):
            if isinstance(result, OracleUnavailable):
                logger.warning("oracle_fetch_failed", feed_key=str(key), error=str(result))
            elif isinstance(result, Exception):
                logger.error("oracle_fetch_error", feed_key=str(key), error=repr(result))
            elif isinstance(result, BaseException):
                raise result
            else:
                prices[key] = result
        return prices
