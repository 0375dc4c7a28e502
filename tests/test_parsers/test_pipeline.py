"""End-to-end pipeline tests with fake RPC and Rugcheck collaborators."""

import asyncio
from decimal import Decimal

import pytest

from launch_radar.parsers.exceptions import DataUnavailable
from launch_radar.parsers.pipeline import PipelineConfig, process_transaction
from launch_radar.parsers.rugcheck.models import RugcheckReport
from launch_radar.parsers.solana_rpc.models import (
    MintSupply,
    ParsedTransaction,
    SignatureInfo,
    TokenAccount,
    TokenBalance,
)

LP_OWNER = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
WSOL = "So11111111111111111111111111111111111111112"
MINT = "PipelineMint111111111111111111111111111111"
CREATOR = "PipelineCreator11111111111111111111111111111"

CONFIG = PipelineConfig(
    lp_owner=LP_OWNER,
    quote_mints=frozenset({WSOL}),
    rug_score_threshold=10000,
    bundled_threshold_pct=Decimal("15"),
    top_holders_n=10,
    history_window=50,
    branch_timeout_sec=5.0,
)


def _pool_tx(signature: str = "sig_pool") -> ParsedTransaction:
    return ParsedTransaction(
        signature=signature,
        account_keys=[CREATOR, LP_OWNER],
        post_token_balances=[
            TokenBalance(mint=WSOL, owner=LP_OWNER, raw_amount=5_000_000_000, decimals=9),
            TokenBalance(mint=MINT, owner=LP_OWNER, raw_amount=100_000_000, decimals=6),
        ],
    )


class FakeRpc:
    def __init__(self, *, fail: set[str] | None = None, slow: set[str] | None = None):
        self._fail = fail or set()
        self._slow = slow or set()
        self.accounts = [
            TokenAccount(address="a1", owner="A", mint=MINT, raw_amount=700_000_000, decimals=6),
            TokenAccount(address="a2", owner="B", mint=MINT, raw_amount=200_000_000, decimals=6),
            TokenAccount(address="a3", owner=CREATOR, mint=MINT, raw_amount=100_000_000, decimals=6),
        ]

    async def _maybe(self, name: str) -> None:
        if name in self._slow:
            await asyncio.sleep(10)
        if name in self._fail:
            raise DataUnavailable(f"{name} failed")

    async def get_token_accounts_for_mint(self, mint: str):
        await self._maybe("scan")
        return self.accounts

    async def get_mint_supply(self, mint: str):
        await self._maybe("supply")
        return MintSupply(raw_supply=1_000_000_000, decimals=6)

    async def get_owner_token_balance(self, owner: str, mint: str):
        await self._maybe("balance")
        return 100_000_000

    async def get_signatures_for_address(self, address: str, *, limit: int = 50):
        await self._maybe("history")
        return [SignatureInfo(signature="sell_sig")]

    async def get_transaction(self, signature: str):
        return ParsedTransaction(
            signature=signature,
            account_keys=[CREATOR],
            pre_token_balances=[TokenBalance(mint=MINT, owner=CREATOR, raw_amount=300, decimals=6)],
            post_token_balances=[TokenBalance(mint=MINT, owner=CREATOR, raw_amount=100, decimals=6)],
        )


class FakeRugcheck:
    def __init__(self, score: int | None = 15000):
        self._score = score

    async def get_token_report(self, mint: str):
        if self._score is None:
            return None
        return RugcheckReport(score=self._score, mint=mint, raw={"score": self._score})


@pytest.mark.asyncio
async def test_full_report():
    report = await process_transaction(
        "sig_pool", _pool_tx(), CONFIG, rpc=FakeRpc(), rugcheck=FakeRugcheck(15000)
    )

    assert report is not None
    assert report.signature == "sig_pool"
    assert report.creator == CREATOR
    assert report.creator_rug_risk is True
    assert report.base_info.mint_address == MINT
    assert report.base_info.lp_amount == 100.0
    assert report.risk_metrics.dev_holding_percentage == 10.0
    assert report.risk_metrics.dev_has_sold_tokens is True
    assert report.distribution_metrics.top10_holders_percentage == 100.0
    # A 70% + B 20% at threshold 15
    assert report.distribution_metrics.bundled_holdings.bundled_percentage == 90.0
    assert report.rug_check_raw == {"score": 15000}


@pytest.mark.asyncio
async def test_no_lp_balance_drops_transaction():
    tx = ParsedTransaction(
        signature="sig_swap",
        account_keys=[CREATOR],
        post_token_balances=[TokenBalance(mint=MINT, owner=CREATOR, raw_amount=5, decimals=6)],
    )
    report = await process_transaction(
        "sig_swap", tx, CONFIG, rpc=FakeRpc(), rugcheck=FakeRugcheck()
    )
    assert report is None


@pytest.mark.asyncio
async def test_unresolved_or_failed_tx_dropped():
    assert await process_transaction(
        "sig_none", None, CONFIG, rpc=FakeRpc(), rugcheck=FakeRugcheck()
    ) is None

    failed = _pool_tx("sig_failed").model_copy(update={"err": {"InstructionError": [0, 1]}})
    assert await process_transaction(
        "sig_failed", failed, CONFIG, rpc=FakeRpc(), rugcheck=FakeRugcheck()
    ) is None


@pytest.mark.asyncio
async def test_every_branch_failing_still_reports():
    """All collaborators down → complete report with zeroed fields."""
    rpc = FakeRpc(fail={"scan", "supply", "balance", "history"})
    report = await process_transaction(
        "sig_pool", _pool_tx(), CONFIG, rpc=rpc, rugcheck=FakeRugcheck(None)
    )

    assert report is not None
    assert report.creator_rug_risk is False
    assert report.rug_check_raw is None
    assert report.risk_metrics.dev_holding_percentage == 0.0
    assert report.risk_metrics.dev_has_sold_tokens is False
    assert report.distribution_metrics.top10_holders_percentage == 0.0
    assert report.distribution_metrics.bundled_holdings.bundled_percentage == 0.0


@pytest.mark.asyncio
async def test_slow_branch_times_out_alone():
    """A hanging scan only zeroes distribution; other signals survive."""
    config = PipelineConfig(
        lp_owner=LP_OWNER,
        quote_mints=frozenset({WSOL}),
        bundled_threshold_pct=Decimal("15"),
        branch_timeout_sec=0.05,
    )
    report = await process_transaction(
        "sig_pool", _pool_tx(), config, rpc=FakeRpc(slow={"scan"}), rugcheck=FakeRugcheck(500)
    )

    assert report is not None
    assert report.distribution_metrics.top10_holders_percentage == 0.0
    assert report.risk_metrics.dev_holding_percentage == 10.0
    assert report.creator_rug_risk is False
    assert report.rug_check_raw == {"score": 500}


@pytest.mark.asyncio
async def test_slow_history_keeps_creator_holding():
    """A hanging sell-off scan only costs hasSold, not the holding share."""
    config = PipelineConfig(
        lp_owner=LP_OWNER,
        quote_mints=frozenset({WSOL}),
        bundled_threshold_pct=Decimal("15"),
        branch_timeout_sec=0.05,
    )
    report = await process_transaction(
        "sig_pool", _pool_tx(), config, rpc=FakeRpc(slow={"history"}), rugcheck=FakeRugcheck()
    )

    assert report is not None
    assert report.risk_metrics.dev_has_sold_tokens is False
    assert report.risk_metrics.dev_holding_percentage == 10.0
    assert report.distribution_metrics.top10_holders_percentage == 100.0
