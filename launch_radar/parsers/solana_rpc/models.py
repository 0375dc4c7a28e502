"""Pydantic models for Solana JSON-RPC responses (jsonParsed encoding)."""

from decimal import Decimal

from pydantic import BaseModel


def normalize_amount(raw_amount: int, decimals: int) -> Decimal:
    """Raw integer token units -> decimal amount at the token's own precision."""
    return Decimal(raw_amount).scaleb(-decimals)


class TokenBalance(BaseModel):
    """Pre/post token balance snapshot from transaction meta."""

    account_index: int = 0
    mint: str
    owner: str = ""
    raw_amount: int = 0
    decimals: int = 0

    @property
    def amount(self) -> Decimal:
        return normalize_amount(self.raw_amount, self.decimals)


class ParsedTransaction(BaseModel):
    """Resolved transaction with the fields the pipeline reads."""

    signature: str
    slot: int = 0
    block_time: int = 0  # unix
    account_keys: list[str] = []
    err: dict | str | None = None  # non-None means failed
    log_messages: list[str] = []
    pre_token_balances: list[TokenBalance] = []
    post_token_balances: list[TokenBalance] = []

    @property
    def failed(self) -> bool:
        return self.err is not None

    def raw_balance(self, owner: str, mint: str, *, post: bool) -> int:
        """Sum of raw balances held by owner for mint (0 if no snapshot)."""
        balances = self.post_token_balances if post else self.pre_token_balances
        return sum(
            b.raw_amount for b in balances if b.owner == owner and b.mint == mint
        )


class TokenAccount(BaseModel):
    """SPL token account holding units of a mint."""

    address: str
    owner: str = ""
    mint: str = ""
    raw_amount: int = 0
    decimals: int = 0

    @property
    def amount(self) -> Decimal:
        return normalize_amount(self.raw_amount, self.decimals)


class MintSupply(BaseModel):
    """Total supply of a mint in raw units."""

    raw_supply: int = 0
    decimals: int = 0

    @property
    def supply(self) -> Decimal:
        return normalize_amount(self.raw_supply, self.decimals)


class SignatureInfo(BaseModel):
    """Transaction signature metadata."""

    signature: str
    slot: int = 0
    timestamp: int = 0
    err: dict | str | None = None  # non-None means failed
