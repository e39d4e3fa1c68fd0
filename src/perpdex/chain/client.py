"""Abstract account store interface.

Defines the read-only contract the risk engine needs from the chain.
Oracle, decoder and listing code depends only on this interface,
keeping RPC transport details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class MemcmpFilter:
    """Match accounts whose data contains `data` at byte `offset`."""

    offset: int
    data: bytes


class AccountStore(ABC):
    """Abstract base class for on-chain account readers."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport."""
        ...

    @abstractmethod
    async def get_account_data(self, key: Pubkey) -> bytes | None:
        """Return raw account data, or None if the account does not exist."""
        ...

    @abstractmethod
    async def get_multiple_account_data(self, keys: list[Pubkey]) -> list[bytes | None]:
        """Return raw data for each key, positionally aligned with `keys`.

        Missing accounts appear as None in their slot.
        """
        ...

    @abstractmethod
    async def get_program_accounts(
        self, program_id: Pubkey, filters: list[MemcmpFilter]
    ) -> list[tuple[Pubkey, bytes]]:
        """Return (address, data) for every program account matching all filters."""
        ...

    @abstractmethod
    async def get_balance(self, key: Pubkey) -> int:
        """Return the lamport balance of an account."""
        ...

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Return True if the endpoint answers a lightweight request."""
        ...
