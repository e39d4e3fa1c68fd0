"""Program-derived addresses for perpdex accounts."""

from solders.pubkey import Pubkey

MARKET_SEED = b"market"
VAULT_SEED = b"vault"
COLLATERAL_VAULT_SEED = b"vault_collateral"
POSITION_SEED = b"position"


def market_pda(program_id: Pubkey, oracle: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([MARKET_SEED, bytes(oracle)], program_id)


def vault_pda(program_id: Pubkey, market: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([VAULT_SEED, bytes(market)], program_id)


def collateral_vault_pda(program_id: Pubkey, market: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([COLLATERAL_VAULT_SEED, bytes(market)], program_id)


def position_pda(program_id: Pubkey, market: Pubkey, owner: Pubkey) -> tuple[Pubkey, int]:
    """Position accounts are unique per (market, owner)."""
    return Pubkey.find_program_address([POSITION_SEED, bytes(market), bytes(owner)], program_id)
