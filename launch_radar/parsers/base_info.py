"""Pool-creation gate — pull the new token's identity out of an LP init tx.

A new Raydium pool transaction leaves the pool authority holding both sides
of the pair. The side that is not a quote mint (wrapped SOL) is the new token;
its post-balance is the LP amount.
"""

from decimal import Decimal

from pydantic import BaseModel

from launch_radar.parsers.exceptions import MalformedTransaction
from launch_radar.parsers.solana_rpc.models import ParsedTransaction


class BaseInfo(BaseModel):
    """Identity of the newly pooled token."""

    mint_address: str
    decimals: int
    lp_amount: Decimal


def extract_base_info(
    tx: ParsedTransaction,
    *,
    lp_owner: str,
    quote_mints: set[str] | frozenset[str],
) -> BaseInfo:
    """Find the LP-owned post-balance of the non-quote mint.

    Raises MalformedTransaction if the transaction did not leave the pool
    authority holding a non-quote token.
    """
    for balance in tx.post_token_balances:
        if balance.owner != lp_owner or balance.mint in quote_mints:
            continue
        return BaseInfo(
            mint_address=balance.mint,
            decimals=balance.decimals,
            lp_amount=balance.amount,
        )

    raise MalformedTransaction(
        f"{tx.signature}: no post-balance owned by LP authority {lp_owner}"
    )


def extract_creator(tx: ParsedTransaction) -> str:
    """Creator = fee payer = first account key of the message."""
    if not tx.account_keys or not tx.account_keys[0]:
        raise MalformedTransaction(f"{tx.signature}: no account keys")
    return tx.account_keys[0]
