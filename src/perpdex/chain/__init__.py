"""Chain access layer: read-only Solana account store."""

from perpdex.chain.client import AccountStore, MemcmpFilter
from perpdex.chain.solana_store import SolanaAccountStore

__all__ = ["AccountStore", "MemcmpFilter", "SolanaAccountStore"]
