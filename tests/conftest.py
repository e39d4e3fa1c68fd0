"""Shared test fixtures for the perpdex risk engine.

Account bytes are built with the same construct layouts the decoders use,
so fixtures stay in sync with the on-chain schema.
"""

from collections.abc import Callable

import pytest
from solders.pubkey import Pubkey

from perpdex.chain.client import AccountStore, MemcmpFilter
from perpdex.config import AppSettings, ProgramSettings, PythSettings, SolanaSettings
from perpdex.decoder.layouts import MARKET_LAYOUT_V1, MARKET_LAYOUT_V2, POSITION_LAYOUT
from perpdex.markets.registry import FeedRegistry, MarketRiskRegistry
from perpdex.oracle.pyth import PRICE_ACCOUNT

ETH_FEED = Pubkey.from_string("EdVCmQ9FSPcVe5YySXDPCRmc8aDQLKJ9xvYBMZPie1Vw")
SOL_FEED = Pubkey.from_string("J83w4HKfqxwcq3BEMMkPFSppX3gqekLyLJBexebFVkix")
PROGRAM_ID = Pubkey.from_string("HGqW2bHqovHnVqMDsz59TdcXGZi5eEbVWVDuvScDUrEQ")


def build_position(
    owner: Pubkey,
    market: Pubkey,
    side: int = 0,
    notional: int = 1_000,
    margin: int = 500,
    entry_price: int = 100_000_000,
) -> bytes:
    """Serialize a Position account (entry_price is USD * 1e6)."""
    return POSITION_LAYOUT.build(
        dict(
            owner=bytes(owner),
            market=bytes(market),
            side=side,
            notional=notional,
            margin=margin,
            entry_price=entry_price,
            bump=254,
        )
    )


def build_market(oracle: Pubkey, maintenance_margin_bps: int | None = 600) -> bytes:
    """Serialize a Market account; None builds the legacy layout without bps."""
    fields = dict(authority=bytes(Pubkey.new_unique()), oracle=bytes(oracle), bump=255)
    if maintenance_margin_bps is None:
        return MARKET_LAYOUT_V1.build(fields)
    return MARKET_LAYOUT_V2.build(dict(fields, maintenance_margin_bps=maintenance_margin_bps))


def build_price_account(
    price: int,
    confidence: int = 0,
    exponent: int = -8,
    status: int = 1,
    timestamp: int = 1_700_000_000,
) -> bytes:
    """Serialize a Pyth v2 price account with the given aggregate."""
    return PRICE_ACCOUNT.build(
        dict(
            version=2,
            size=3312,
            price_type=1,
            exponent=exponent,
            num_components=1,
            num_quoters=1,
            last_slot=100,
            valid_slot=99,
            timestamp=timestamp,
            product=bytes(32),
            next=bytes(32),
            previous_slot=98,
            previous_price=price,
            previous_confidence=confidence,
            previous_timestamp=timestamp - 1,
            aggregate=dict(
                price=price,
                confidence=confidence,
                status=status,
                corporate_action=0,
                publish_slot=100,
            ),
        )
    )


class FakeAccountStore(AccountStore):
    """In-memory AccountStore that records every read."""

    def __init__(self) -> None:
        self.accounts: dict[Pubkey, bytes] = {}
        self.program_accounts: list[tuple[Pubkey, bytes]] = []
        self.balances: dict[Pubkey, int] = {}
        self.healthy = True
        self.failing: set[Pubkey] = set()
        self.account_reads: list[Pubkey] = []
        self.multiple_reads: list[list[Pubkey]] = []
        self.program_filters: list[list[MemcmpFilter]] = []
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def get_account_data(self, key: Pubkey) -> bytes | None:
        self.account_reads.append(key)
        if key in self.failing:
            raise ConnectionError(f"rpc timeout reading {key}")
        return self.accounts.get(key)

    async def get_multiple_account_data(self, keys: list[Pubkey]) -> list[bytes | None]:
        self.multiple_reads.append(list(keys))
        return [self.accounts.get(key) for key in keys]

    async def get_program_accounts(
        self, program_id: Pubkey, filters: list[MemcmpFilter]
    ) -> list[tuple[Pubkey, bytes]]:
        self.program_filters.append(filters)
        return list(self.program_accounts)

    async def get_balance(self, key: Pubkey) -> int:
        if key in self.failing:
            raise ConnectionError(f"rpc timeout reading {key}")
        return self.balances.get(key, 0)

    async def is_healthy(self) -> bool:
        return self.healthy


@pytest.fixture
def store() -> FakeAccountStore:
    return FakeAccountStore()


@pytest.fixture
def feeds() -> FeedRegistry:
    return FeedRegistry(PythSettings().feeds())


@pytest.fixture
def risk_registry() -> MarketRiskRegistry:
    return MarketRiskRegistry()


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (devnet RPC, default program and feeds)."""
    return AppSettings(
        log_level="DEBUG",
        solana=SolanaSettings(rpc_url="https://api.devnet.solana.com"),
        program=ProgramSettings(),
        pyth=PythSettings(),
    )


@pytest.fixture
def position_bytes() -> Callable[..., bytes]:
    return build_position


@pytest.fixture
def market_bytes() -> Callable[..., bytes]:
    return build_market


@pytest.fixture
def price_bytes() -> Callable[..., bytes]:
    return build_price_account
