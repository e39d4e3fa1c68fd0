"""Custom exceptions for the perpdex risk engine.

Every error a caller can see lives here so the HTTP layer can map the whole
family to a 400 response with the exception message as the body.
"""


class PerpdexError(Exception):
    """Base exception for all risk engine errors."""


class UnsupportedMarket(PerpdexError):
    """Raised when a symbol is not in the risk registry or feed table."""

    def __init__(self, market: str = "") -> None:
        self.market = market
        super().__init__("Unsupported market")


class InvalidAddress(PerpdexError):
    """Raised when an owner or account key is not a valid base58 public key."""

    def __init__(self, address: str = "") -> None:
        self.address = address
        super().__init__("Invalid wallet address")


class OracleUnavailable(PerpdexError):
    """Raised when an oracle feed account is missing or cannot be read."""

    def __init__(self, feed_key: str = "", reason: str = "Oracle account not found") -> None:
        self.feed_key = feed_key
        super().__init__(reason)


class MissingField(PerpdexError):
    """Raised when a required simulation input is zero or absent."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"{_join_fields(fields)} {'is' if len(fields) == 1 else 'are'} required")


class LeverageExceedsMax(PerpdexError):
    """Raised when requested leverage is above the market's cap."""

    def __init__(self, leverage: object = None, max_leverage: object = None) -> None:
        self.leverage = leverage
        self.max_leverage = max_leverage
        super().__init__("Leverage exceeds max")


class DecodeFailure(PerpdexError):
    """Raised when account bytes do not match the expected layout."""


class RpcUnavailable(PerpdexError):
    """Raised when a direct RPC read fails outside the oracle path."""

    def __init__(self, method: str = "", detail: str = "") -> None:
        self.method = method
        self.detail = detail
        super().__init__("RPC request failed")


class InputOutOfRange(PerpdexError):
    """Raised when simulation inputs produce values too large to report."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"{_join_fields(fields)} out of range")


def _join_fields(fields: list[str]) -> str:
    if len(fields) <= 2:
        return " and ".join(fields)
    return ", ".join(fields[:-1]) + f", and {fields[-1]}"
