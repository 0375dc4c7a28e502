"""Full holder set and supply for a mint, built from one token-account scan."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from loguru import logger

from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.solana_rpc.models import TokenAccount

if TYPE_CHECKING:
    from launch_radar.parsers.solana_rpc.client import SolanaRpcClient

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Holder:
    """Wallet owning a positive balance of a mint."""

    address: str
    amount: Decimal
    percentage: Decimal  # 0.0 - 100.0 of total supply


@dataclass(frozen=True)
class TokenDistribution:
    """Holder set of one mint at scan time. Never cached or shared."""

    mint: str
    total_supply: Decimal
    holders: tuple[Holder, ...] = ()

    @property
    def holder_count(self) -> int:
        return len(self.holders)


def build_distribution(mint: str, accounts: list[TokenAccount]) -> TokenDistribution:
    """Fold raw token accounts into per-owner holders with supply shares.

    Accounts with a zero balance (closed, emptied) are dropped. Several token
    accounts of one owner collapse into one holder.
    """
    balances: dict[str, Decimal] = {}
    for account in accounts:
        amount = account.amount
        if amount <= 0:
            continue
        owner = account.owner or account.address
        balances[owner] = balances.get(owner, ZERO) + amount

    total_supply = sum(balances.values(), ZERO)

    holders = tuple(
        Holder(
            address=address,
            amount=amount,
            percentage=amount / total_supply * HUNDRED if total_supply > 0 else ZERO,
        )
        for address, amount in balances.items()
    )
    return TokenDistribution(mint=mint, total_supply=total_supply, holders=holders)


async def aggregate_holders(rpc: SolanaRpcClient, mint: str) -> TokenDistribution:
    """Scan all token accounts of mint and build its distribution.

    An empty scan is a valid zero-holder distribution. A failed scan raises
    DataUnavailable instead of pretending there are no holders.
    """
    try:
        accounts = await rpc.get_token_accounts_for_mint(mint)
    except DataUnavailable:
        logger.warning(f"[HOLDERS] Token account scan failed for {mint[:12]}")
        raise

    distribution = build_distribution(mint, accounts)
    logger.debug(
        f"[HOLDERS] {mint[:12]}: {len(accounts)} accounts -> "
        f"{distribution.holder_count} holders, supply={distribution.total_supply}"
    )
    return distribution
