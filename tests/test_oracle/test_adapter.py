"""Tests for Pyth price account decoding and the OracleAdapter.

Feed accounts are served from an in-memory account store.
"""

from decimal import Decimal

import pytest
from conftest import ETH_FEED, SOL_FEED, FakeAccountStore, build_price_account
from solders.pubkey import Pubkey

from perpdex.exceptions import DecodeFailure, InvalidAddress, OracleUnavailable, UnsupportedMarket
from perpdex.markets.registry import FeedRegistry
from perpdex.models import PriceStatus
from perpdex.oracle.adapter import OracleAdapter
from perpdex.oracle.pyth import parse_price_data


@pytest.fixture
def adapter(store: FakeAccountStore, feeds: FeedRegistry) -> OracleAdapter:
    return OracleAdapter(store, feeds)


class TestParsePriceData:
    def test_reads_aggregate_fields(self) -> None:
        data = build_price_account(
            price=250_012_345_678, confidence=1_500_000, exponent=-8, timestamp=1_710_000_000
        )
        decoded = parse_price_data(data)

        assert decoded.price == 250_012_345_678
        assert decoded.confidence == 1_500_000
        assert decoded.exponent == -8
        assert decoded.publish_time == 1_710_000_000
        assert decoded.status == 1

    def test_scaling_is_exact(self) -> None:
        decoded = parse_price_data(build_price_account(price=250_012_345_678, confidence=1_500_000))

        assert decoded.scaled_price == Decimal("2500.12345678")
        assert decoded.scaled_confidence == Decimal("0.015")

    def test_two_digit_exponent(self) -> None:
        decoded = parse_price_data(build_price_account(price=12_345, confidence=10, exponent=-2))
        assert decoded.scaled_price == Decimal("123.45")

    def test_negative_price_survives(self) -> None:
        decoded = parse_price_data(build_price_account(price=-5, exponent=0))
        assert decoded.scaled_price == Decimal("-5")

    def test_wrong_magic_rejected(self) -> None:
        data = bytearray(build_price_account(price=1))
        data[0:4] = b"\x00\x00\x00\x00"
        with pytest.raises(DecodeFailure):
            parse_price_data(bytes(data))

    def test_truncated_account_rejected(self) -> None:
        with pytest.raises(DecodeFailure):
            parse_price_data(build_price_account(price=1)[:100])


class TestOracleAdapterFetch:
    @pytest.mark.asyncio
    async def test_fetch_by_symbol(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        store.accounts[ETH_FEED] = build_price_account(price=300_000_000_000, confidence=200_000_000)

        price = await adapter.fetch("eth")

        assert price.market == "ETH"
        assert price.price == Decimal("3000")
        assert price.confidence == Decimal("2")
        assert price.raw_price == 300_000_000_000
        assert price.raw_confidence == 200_000_000
        assert price.exponent == -8
        assert price.status == PriceStatus.TRADING
        assert store.account_reads == [ETH_FEED]

    @pytest.mark.asyncio
    async def test_unsupported_symbol(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        with pytest.raises(UnsupportedMarket):
            await adapter.fetch("XRP")
        assert store.account_reads == []

    @pytest.mark.asyncio
    async def test_missing_feed_account(self, adapter: OracleAdapter) -> None:
        with pytest.raises(OracleUnavailable, match="Oracle account not found"):
            await adapter.fetch("SOL")

    @pytest.mark.asyncio
    async def test_read_failure_becomes_oracle_unavailable(
        self, adapter: OracleAdapter, store: FakeAccountStore
    ) -> None:
        store.failing.add(SOL_FEED)
        with pytest.raises(OracleUnavailable, match="rpc timeout"):
            await adapter.fetch("SOL")

    @pytest.mark.asyncio
    async def test_non_price_account(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        store.accounts[SOL_FEED] = b"\x01" * 64
        with pytest.raises(OracleUnavailable, match="not a price feed"):
            await adapter.fetch("SOL")


class TestOracleAdapterFetchByKey:
    @pytest.mark.asyncio
    async def test_default_label_is_unknown(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        key = Pubkey.new_unique()
        store.accounts[key] = build_price_account(price=15_000_000_000)

        price = await adapter.fetch_by_key(key)

        assert price.market == "UNKNOWN"
        assert price.price == Decimal("150")

    @pytest.mark.asyncio
    async def test_string_key_and_label_override(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        store.accounts[SOL_FEED] = build_price_account(price=15_000_000_000)

        price = await adapter.fetch_by_key(str(SOL_FEED), market_label="SOL")

        assert price.market == "SOL"

    @pytest.mark.asyncio
    async def test_malformed_key(self, adapter: OracleAdapter) -> None:
        with pytest.raises(InvalidAddress):
            await adapter.fetch_by_key("definitely not base58!")

    @pytest.mark.asyncio
    async def test_unrecognised_status_kept_as_int(self, adapter: OracleAdapter, store: FakeAccountStore) -> None:
        store.accounts[SOL_FEED] = build_price_account(price=1, status=9)

        price = await adapter.fetch_by_key(SOL_FEED)

        assert price.status == 9
