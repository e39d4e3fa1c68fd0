"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey

DEFAULT_RPC_URL = "https://api.devnet.solana.com"


def _base58_pubkey(value: str) -> str:
    try:
        Pubkey.from_string(value)
    except ValueError as e:
        raise ValueError(f"not a base58 public key: {value!r}") from e
    return value


class SolanaSettings(BaseSettings):
    """Solana RPC connection settings."""

    model_config = SettingsConfigDict(env_prefix="SOLANA_")

    rpc_url: str = DEFAULT_RPC_URL
    cluster: str | None = None  # explicit label wins over URL sniffing
    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"


class ProgramSettings(BaseSettings):
    """On-chain perpdex program settings."""

    model_config = SettingsConfigDict(env_prefix="PROGRAM_")

    program_id: str = "HGqW2bHqovHnVqMDsz59TdcXGZi5eEbVWVDuvScDUrEQ"

    @field_validator("program_id")
    @classmethod
    def _check_program_id(cls, value: str) -> str:
        return _base58_pubkey(value)


class PythSettings(BaseSettings):
    """Pyth price feed account keys per market symbol."""

    model_config = SettingsConfigDict(env_prefix="PYTH_")

    eth_feed: str = "EdVCmQ9FSPcVe5YySXDPCRmc8aDQLKJ9xvYBMZPie1Vw"
    sol_feed: str = "J83w4HKfqxwcq3BEMMkPFSppX3gqekLyLJBexebFVkix"

    @field_validator("eth_feed", "sol_feed")
    @classmethod
    def _check_feed_key(cls, value: str) -> str:
        return _base58_pubkey(value)

    def feeds(self) -> dict[str, str]:
        """Return the symbol -> feed key table."""
        return {"ETH": self.eth_feed, "SOL": self.sol_feed}


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production
    solana: SolanaSettings = SolanaSettings()
    program: ProgramSettings = ProgramSettings()
    pyth: PythSettings = PythSettings()
    api: ApiSettings = ApiSettings()


def cluster_label(settings: SolanaSettings) -> str:
    """Derive a human-readable cluster name for the configured RPC endpoint.

    An explicit SOLANA_CLUSTER wins; otherwise the RPC URL is sniffed for
    a well-known cluster name, falling back to "custom".
    """
    if settings.cluster:
        return settings.cluster

    lower = settings.rpc_url.lower()
    if "devnet" in lower:
        return "devnet"
    if "testnet" in lower:
        return "testnet"
    if "mainnet" in lower:
        return "mainnet-beta"
    return "custom"
