"""Creator activity — current holding share and recent sell-off detection.

Sell-off detection diffs pre/post token balances of the creator's recent
transactions. It only sees the last `window_size` signatures: a False result
means "no sell found in the window", not "never sold".
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.holder_aggregator import HUNDRED, ZERO
from launch_radar.parsers.solana_rpc.models import normalize_amount

if TYPE_CHECKING:
    from launch_radar.parsers.solana_rpc.client import SolanaRpcClient

DEFAULT_WINDOW_SIZE = 50

T = TypeVar("T")


@dataclass(frozen=True)
class CreatorActivity:
    holding_percentage: Decimal = ZERO  # 0.0 - 100.0
    has_sold: bool = False


async def holding_percentage(rpc: SolanaRpcClient, creator: str, mint: str) -> Decimal:
    """Share of mint supply held by creator right now.

    0 when the creator has no account for the mint or the supply is 0.
    Collaborator failures degrade to 0.
    """
    try:
        mint_supply = await rpc.get_mint_supply(mint)
        raw_balance = await rpc.get_owner_token_balance(creator, mint)
    except DataUnavailable as e:
        logger.warning(f"[CREATOR] Holding lookup failed for {creator[:12]}/{mint[:12]}: {e}")
        return ZERO

    if raw_balance is None or mint_supply.raw_supply <= 0:
        return ZERO

    balance = normalize_amount(raw_balance, mint_supply.decimals)
    return balance / mint_supply.supply * HUNDRED


async def has_sold(
    rpc: SolanaRpcClient,
    creator: str,
    mint: str,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> bool:
    """True if any of creator's last window_size transactions reduced its mint balance.

    Scans newest first and stops at the first decrease. Failed or unresolvable
    transactions are skipped. Collaborator failures on the history lookup
    degrade to False.
    """
    try:
        signatures = await rpc.get_signatures_for_address(creator, limit=window_size)
    except DataUnavailable as e:
        logger.warning(f"[CREATOR] History lookup failed for {creator[:12]}: {e}")
        return False

    for sig in signatures[:window_size]:
        if sig.err is not None:
            continue
        try:
            tx = await rpc.get_transaction(sig.signature)
        except DataUnavailable as e:
            logger.debug(f"[CREATOR] Skipping unresolvable tx {sig.signature[:16]}: {e}")
            continue
        if tx is None or tx.failed:
            continue

        pre = tx.raw_balance(creator, mint, post=False)
        post = tx.raw_balance(creator, mint, post=True)
        if pre > post:
            logger.info(
                f"[CREATOR] {creator[:12]} sold {mint[:12]} in {sig.signature[:16]} "
                f"({pre} -> {post} raw)"
            )
            return True

    return False


async def _within(coro: Awaitable[T], default: T, timeout: float | None, label: str, creator: str) -> T:
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[CREATOR] {label} timed out for {creator[:12]}")
        return default


async def analyse_creator(
    rpc: SolanaRpcClient,
    creator: str,
    mint: str,
    *,
    window_size: int = DEFAULT_WINDOW_SIZE,
    timeout: float | None = None,
) -> CreatorActivity:
    """Run both creator checks concurrently.

    Each check gets its own `timeout`, so a long history scan cannot cost
    the holding share.
    """
    pct, sold = await asyncio.gather(
        _within(holding_percentage(rpc, creator, mint), ZERO, timeout, "holding lookup", creator),
        _within(has_sold(rpc, creator, mint, window_size), False, timeout, "sell-off scan", creator),
    )
    return CreatorActivity(holding_percentage=pct, has_sold=sold)
