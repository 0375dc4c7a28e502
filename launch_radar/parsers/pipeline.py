"""Per-transaction report pipeline.

(signature, resolved tx, config) -> MonitoredTokenReport | None

Extracted -> [risk score | creator activity | distribution]
in parallel -> Assembled. Only the extraction gate can drop a transaction;
every later branch degrades to its default on failure or timeout, so a
qualifying transaction always yields a complete report.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from launch_radar.parsers.base_info import extract_base_info, extract_creator
from launch_radar.parsers.creator_activity import CreatorActivity, analyse_creator
from launch_radar.parsers.distribution import DistributionMetrics, analyse_distribution
from launch_radar.parsers.exceptions import DataUnavailable, MalformedTransaction
from launch_radar.parsers.holder_aggregator import aggregate_holders
from launch_radar.parsers.report import MonitoredTokenReport, assemble_report
from launch_radar.parsers.risk_fuser import RiskVerdict, fuse_risk
from launch_radar.parsers.solana_rpc.models import ParsedTransaction

if TYPE_CHECKING:
    from config.settings import Settings
    from launch_radar.parsers.rugcheck.client import RugcheckClient
    from launch_radar.parsers.solana_rpc.client import SolanaRpcClient

T = TypeVar("T")


@dataclass(frozen=True)
class PipelineConfig:
    """Thresholds and addresses the pipeline needs, decoupled from env loading."""

    lp_owner: str
    quote_mints: frozenset[str]
    rug_score_threshold: int = 10000
    bundled_threshold_pct: Decimal = Decimal("1")
    top_holders_n: int = 10
    history_window: int = 50
    branch_timeout_sec: float = 60.0

    @classmethod
    def from_settings(cls, cfg: Settings) -> PipelineConfig:
        return cls(
            lp_owner=cfg.lp_owner_address,
            quote_mints=frozenset(cfg.quote_mints),
            rug_score_threshold=cfg.rug_score_threshold,
            bundled_threshold_pct=Decimal(str(cfg.bundled_threshold_pct)),
            top_holders_n=cfg.top_holders_n,
            history_window=cfg.history_window,
            branch_timeout_sec=cfg.pipeline_timeout_sec,
        )


async def _degrade(
    label: str, mint: str, coro: Awaitable[T], default: T, timeout: float | None
) -> T:
    """Await one branch; on timeout or failure log and return its default."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[PIPELINE] {label} timed out after {timeout:.0f}s for {mint[:12]}")
    except DataUnavailable as e:
        logger.warning(f"[PIPELINE] {label} unavailable for {mint[:12]}: {e}")
    except Exception as e:
        logger.error(f"[PIPELINE] {label} failed for {mint[:12]}: {type(e).__name__}: {e}")
    return default


async def _distribution_metrics(
    rpc: SolanaRpcClient, mint: str, config: PipelineConfig
) -> DistributionMetrics:
    distribution = await aggregate_holders(rpc, mint)
    return analyse_distribution(
        distribution,
        top_n=config.top_holders_n,
        bundled_threshold=config.bundled_threshold_pct,
    )


async def process_transaction(
    signature: str,
    tx: ParsedTransaction | None,
    config: PipelineConfig,
    *,
    rpc: SolanaRpcClient,
    rugcheck: RugcheckClient,
) -> MonitoredTokenReport | None:
    """Build the report for one pool-creation transaction.

    Returns None when the transaction is not a usable pool creation
    (unresolved, failed, or no LP-owned token balance).
    """
    if tx is None:
        logger.debug(f"[PIPELINE] {signature[:16]} unresolved, skipping")
        return None
    if tx.failed:
        logger.debug(f"[PIPELINE] {signature[:16]} failed on-chain, skipping")
        return None

    try:
        base_info = extract_base_info(
            tx, lp_owner=config.lp_owner, quote_mints=config.quote_mints
        )
        creator = extract_creator(tx)
    except MalformedTransaction as e:
        logger.debug(f"[PIPELINE] Dropped {signature[:16]}: {e}")
        return None

    mint = base_info.mint_address
    timeout = config.branch_timeout_sec
    logger.info(f"[PIPELINE] New pool {mint} by {creator} ({signature[:16]})")

    verdict, creator_activity, dist_metrics = await asyncio.gather(
        _degrade(
            "risk score", mint,
            fuse_risk(rugcheck, mint, config.rug_score_threshold),
            RiskVerdict(), timeout,
        ),
        _degrade(
            "creator activity", mint,
            analyse_creator(
                rpc, creator, mint,
                window_size=config.history_window, timeout=timeout,
            ),
            # each creator check carries its own timeout
            CreatorActivity(), None,
        ),
        _degrade(
            "distribution", mint,
            _distribution_metrics(rpc, mint, config),
            DistributionMetrics(), timeout,
        ),
    )

    report = assemble_report(
        signature,
        creator,
        base_info,
        verdict,
        creator_activity,
        dist_metrics,
    )
    logger.info(
        f"[PIPELINE] {mint[:12]}: rug_risk={report.creator_rug_risk} "
        f"dev={report.risk_metrics.dev_holding_percentage:.2f}% "
        f"sold={report.risk_metrics.dev_has_sold_tokens} "
        f"top10={report.distribution_metrics.top10_holders_percentage:.2f}%"
    )
    return report
