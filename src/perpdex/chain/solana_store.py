"""Solana account store implementation via solana-py AsyncClient.

Wraps solana.rpc.async_api.AsyncClient with base64 account reads,
memcmp program-account filtering, and async cleanup.
"""

import base58
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.models import MemcmpOpts
from solders.pubkey import Pubkey

from perpdex.chain.client import AccountStore, MemcmpFilter
from perpdex.config import SolanaSettings
from perpdex.logging import get_logger

logger = get_logger(__name__)

# getMultipleAccounts rejects more than 100 keys per request
MAX_MULTIPLE_ACCOUNTS = 100


class SolanaAccountStore(AccountStore):
    """Concrete account store backed by a Solana JSON-RPC endpoint."""

    def __init__(self, settings: SolanaSettings, client: AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client or AsyncClient(
            settings.rpc_url, commitment=Commitment(settings.commitment)
        )

    @property
    def client(self) -> AsyncClient:
        """Access the underlying solana-py client."""
        return self._client

    async def close(self) -> None:
        logger.info("closing_solana_client", rpc_url=self._settings.rpc_url)
        await self._client.close()

    async def get_account_data(self, key: Pubkey) -> bytes | None:
        resp = await self._client.get_account_info(key, encoding="base64")
        if resp.value is None:
            return None
        return bytes(resp.value.data)

    async def get_multiple_account_data(self, keys: list[Pubkey]) -> list[bytes | None]:
        results: list[bytes | None] = []
        for start in range(0, len(keys), MAX_MULTIPLE_ACCOUNTS):
            chunk = keys[start : start + MAX_MULTIPLE_ACCOUNTS]
            resp = await self._client.get_multiple_accounts(chunk, encoding="base64")
            results.extend(
                bytes(account.data) if account is not None else None for account in resp.value
            )
        return results

    async def get_program_accounts(
        self, program_id: Pubkey, filters: list[MemcmpFilter]
    ) -> list[tuple[Pubkey, bytes]]:
        opts = [
            MemcmpOpts(offset=f.offset, bytes=base58.b58encode(f.data).decode("ascii"))
            for f in filters
        ]
        resp = await self._client.get_program_accounts(
            program_id, encoding="base64", filters=opts
        )
        logger.debug(
            "fetched_program_accounts",
            program_id=str(program_id),
            count=len(resp.value),
        )
        return [(keyed.pubkey, bytes(keyed.account.data)) for keyed in resp.value]

    async def get_balance(self, key: Pubkey) -> int:
        resp = await self._client.get_balance(key)
        return resp.value

    async def is_healthy(self) -> bool:
        try:
            await self._client.get_latest_blockhash()
        except Exception as e:
            logger.warning("rpc_health_check_failed", error=str(e))
            return False
        return True
