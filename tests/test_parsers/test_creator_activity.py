"""Tests for creator holding share and bounded sell-off detection."""

from decimal import Decimal

import pytest

from launch_radar.parsers.creator_activity import (
    CreatorActivity,
    analyse_creator,
    has_sold,
    holding_percentage,
)
from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.solana_rpc.models import (
    MintSupply,
    ParsedTransaction,
    SignatureInfo,
    TokenBalance,
)

CREATOR = "CreatorWallet111111111111111111111111111111"
MINT = "NewTokenMint1111111111111111111111111111111"
OTHER_MINT = "OtherMint111111111111111111111111111111111"


def _tx(sig: str, pre: int | None, post: int | None, *, mint: str = MINT, err=None) -> ParsedTransaction:
    pre_b = [] if pre is None else [TokenBalance(mint=mint, owner=CREATOR, raw_amount=pre, decimals=6)]
    post_b = [] if post is None else [TokenBalance(mint=mint, owner=CREATOR, raw_amount=post, decimals=6)]
    return ParsedTransaction(
        signature=sig,
        account_keys=[CREATOR],
        err=err,
        pre_token_balances=pre_b,
        post_token_balances=post_b,
    )


class FakeRpc:
    """Account reader + transaction history stub."""

    def __init__(
        self,
        *,
        supply: MintSupply | None = None,
        balance: int | None = None,
        txs: list[ParsedTransaction] | None = None,
        sig_errors: dict[str, dict] | None = None,
        fail: set[str] | None = None,
    ):
        self._supply = supply or MintSupply(raw_supply=0, decimals=6)
        self._balance = balance
        self._txs = {tx.signature: tx for tx in txs or []}
        self._order = [tx.signature for tx in txs or []]
        self._sig_errors = sig_errors or {}
        self._fail = fail or set()
        self.resolved: list[str] = []
        self.history_limit: int | None = None

    async def get_mint_supply(self, mint: str) -> MintSupply:
        if "supply" in self._fail:
            raise DataUnavailable("getTokenSupply timeout")
        return self._supply

    async def get_owner_token_balance(self, owner: str, mint: str) -> int | None:
        if "balance" in self._fail:
            raise DataUnavailable("getTokenAccountsByOwner timeout")
        return self._balance

    async def get_signatures_for_address(self, address: str, *, limit: int = 50):
        if "history" in self._fail:
            raise DataUnavailable("getSignaturesForAddress timeout")
        self.history_limit = limit
        return [
            SignatureInfo(signature=s, err=self._sig_errors.get(s))
            for s in self._order[:limit]
        ]

    async def get_transaction(self, signature: str) -> ParsedTransaction | None:
        self.resolved.append(signature)
        if signature in self._fail:
            raise DataUnavailable("getTransaction timeout")
        return self._txs.get(signature)


# --- holding_percentage ---


@pytest.mark.asyncio
async def test_holding_percentage_normal():
    rpc = FakeRpc(supply=MintSupply(raw_supply=1_000_000_000, decimals=6), balance=250_000_000)
    assert await holding_percentage(rpc, CREATOR, MINT) == Decimal("25")


@pytest.mark.asyncio
async def test_holding_percentage_no_account():
    rpc = FakeRpc(supply=MintSupply(raw_supply=1_000_000, decimals=6), balance=None)
    assert await holding_percentage(rpc, CREATOR, MINT) == Decimal("0")


@pytest.mark.asyncio
async def test_holding_percentage_zero_supply():
    """Supply 0 → 0, never a division by zero."""
    rpc = FakeRpc(supply=MintSupply(raw_supply=0, decimals=6), balance=10)
    assert await holding_percentage(rpc, CREATOR, MINT) == Decimal("0")


@pytest.mark.asyncio
async def test_holding_percentage_degrades_on_failure():
    rpc = FakeRpc(supply=MintSupply(raw_supply=100, decimals=0), balance=50, fail={"balance"})
    assert await holding_percentage(rpc, CREATOR, MINT) == Decimal("0")


# --- has_sold ---


@pytest.mark.asyncio
async def test_has_sold_empty_window():
    assert await has_sold(FakeRpc(), CREATOR, MINT) is False


@pytest.mark.asyncio
async def test_has_sold_detects_decrease_and_stops():
    """First decrease wins; later transactions are not even resolved."""
    txs = [
        _tx("s1", pre=100, post=150),  # buy
        _tx("s2", pre=150, post=40),  # sell
        _tx("s3", pre=40, post=40),
    ]
    rpc = FakeRpc(txs=txs)

    assert await has_sold(rpc, CREATOR, MINT) is True
    assert rpc.resolved == ["s1", "s2"]


@pytest.mark.asyncio
async def test_has_sold_full_exit_counts():
    """Account closed after sell → no post snapshot → counts as 0."""
    rpc = FakeRpc(txs=[_tx("s1", pre=100, post=None)])
    assert await has_sold(rpc, CREATOR, MINT) is True


@pytest.mark.asyncio
async def test_has_sold_ignores_other_mints():
    rpc = FakeRpc(txs=[_tx("s1", pre=100, post=0, mint=OTHER_MINT)])
    assert await has_sold(rpc, CREATOR, MINT) is False


@pytest.mark.asyncio
async def test_has_sold_skips_failed_and_unavailable():
    txs = [
        _tx("failed_sig", pre=100, post=0),
        _tx("failed_tx", pre=100, post=0, err={"InstructionError": [0, "Custom"]}),
        _tx("broken", pre=100, post=0),
    ]
    rpc = FakeRpc(
        txs=txs,
        sig_errors={"failed_sig": {"InstructionError": [0, "Custom"]}},
        fail={"broken"},
    )
    assert await has_sold(rpc, CREATOR, MINT) is False
    assert "failed_sig" not in rpc.resolved


@pytest.mark.asyncio
async def test_has_sold_respects_window():
    """A sell beyond the window is invisible: the scan is bounded."""
    txs = [_tx(f"s{i}", pre=10, post=10) for i in range(5)] + [_tx("old_sell", pre=10, post=0)]
    rpc = FakeRpc(txs=txs)

    assert await has_sold(rpc, CREATOR, MINT, window_size=5) is False
    assert rpc.history_limit == 5


@pytest.mark.asyncio
async def test_has_sold_degrades_on_history_failure():
    rpc = FakeRpc(txs=[_tx("s1", pre=100, post=0)], fail={"history"})
    assert await has_sold(rpc, CREATOR, MINT) is False


@pytest.mark.asyncio
async def test_analyse_creator_combines_both():
    rpc = FakeRpc(
        supply=MintSupply(raw_supply=1000, decimals=0),
        balance=100,
        txs=[_tx("s1", pre=200, post=100)],
    )
    result = await analyse_creator(rpc, CREATOR, MINT, window_size=10)
    assert result == CreatorActivity(holding_percentage=Decimal("10"), has_sold=True)
