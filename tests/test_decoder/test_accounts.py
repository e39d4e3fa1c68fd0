"""Tests for Position/Market account decoding and side normalisation."""

import pytest
from conftest import build_market, build_position
from solders.pubkey import Pubkey

from perpdex.decoder.accounts import (
    decode_market,
    decode_markets,
    decode_position,
    decode_positions,
    normalize_side,
)
from perpdex.decoder.layouts import (
    MARKET_DISCRIMINATOR,
    POSITION_DISCRIMINATOR,
    POSITION_LAYOUT,
    account_discriminator,
)
from perpdex.exceptions import DecodeFailure
from perpdex.models import Side


class TestNormalizeSide:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("short", Side.SHORT),
            ("SHORT", Side.SHORT),
            ("long", Side.LONG),
            ("sideways", Side.LONG),
            ("", Side.LONG),
            (None, Side.LONG),
            ({"short": {}}, Side.SHORT),
            ({"long": {}}, Side.LONG),
            ({}, Side.LONG),
            (1, Side.SHORT),
            (0, Side.LONG),
            (7, Side.LONG),
            (Side.SHORT, Side.SHORT),
            (3.5, Side.LONG),
        ],
    )
    def test_shapes(self, value: object, expected: Side) -> None:
        assert normalize_side(value) == expected


class TestDiscriminators:
    def test_anchor_account_discriminator(self) -> None:
        assert len(POSITION_DISCRIMINATOR) == 8
        assert POSITION_DISCRIMINATOR == account_discriminator("Position")
        assert POSITION_DISCRIMINATOR != MARKET_DISCRIMINATOR

    def test_position_layout_size(self) -> None:
        # 8 disc + 32 owner + 32 market + 1 side + 3 * 8 amounts + 1 bump
        assert POSITION_LAYOUT.sizeof() == 98


class TestDecodePosition:
    def test_round_trip_fields(self) -> None:
        owner, market, address = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
        data = build_position(owner, market, side=1, notional=5_000, margin=700, entry_price=2_500_000_000)

        position = decode_position(address, data)

        assert position.pubkey == address
        assert position.owner == owner
        assert position.market == market
        assert position.side == Side.SHORT
        assert position.notional_lamports == 5_000
        assert position.margin_lamports == 700
        assert position.entry_price_raw == 2_500_000_000

    def test_wrong_discriminator(self) -> None:
        data = bytearray(build_position(Pubkey.new_unique(), Pubkey.new_unique()))
        data[0] ^= 0xFF
        with pytest.raises(DecodeFailure):
            decode_position(Pubkey.new_unique(), bytes(data))

    def test_market_account_is_not_a_position(self) -> None:
        with pytest.raises(DecodeFailure):
            decode_position(Pubkey.new_unique(), build_market(Pubkey.new_unique()))

    def test_truncated(self) -> None:
        data = build_position(Pubkey.new_unique(), Pubkey.new_unique())
        with pytest.raises(DecodeFailure):
            decode_position(Pubkey.new_unique(), data[:40])


class TestDecodeMarket:
    def test_current_layout(self) -> None:
        oracle = Pubkey.new_unique()
        market = decode_market(Pubkey.new_unique(), build_market(oracle, maintenance_margin_bps=650))

        assert market.oracle == oracle
        assert market.maintenance_margin_bps == 650

    def test_legacy_layout_defaults_to_800_bps(self) -> None:
        oracle = Pubkey.new_unique()
        market = decode_market(Pubkey.new_unique(), build_market(oracle, maintenance_margin_bps=None))

        assert market.oracle == oracle
        assert market.maintenance_margin_bps == 800

    def test_garbage(self) -> None:
        with pytest.raises(DecodeFailure):
            decode_market(Pubkey.new_unique(), b"\x00" * 16)


class TestBatchDecode:
    def test_skips_corrupt_accounts(self) -> None:
        owner, market = Pubkey.new_unique(), Pubkey.new_unique()
        good_a, good_b, bad = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
        accounts = [
            (good_a, build_position(owner, market)),
            (bad, b"\xde\xad\xbe\xef" * 10),
            (good_b, build_position(owner, market, side=1)),
        ]

        positions = decode_positions(accounts)

        assert [p.pubkey for p in positions] == [good_a, good_b]

    def test_empty_batch(self) -> None:
        assert decode_positions([]) == []

    def test_markets_skip_missing_and_corrupt(self) -> None:
        keys = [Pubkey.new_unique() for _ in range(3)]
        oracle = Pubkey.new_unique()
        datas = [build_market(oracle), None, b"junk"]

        markets = decode_markets(keys, datas)

        assert list(markets) == [keys[0]]
        assert markets[keys[0]].oracle == oracle
