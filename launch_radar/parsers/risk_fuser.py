"""External risk score vs threshold -> creator rug-risk verdict."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from launch_radar.parsers.rugcheck.models import RugcheckReport

if TYPE_CHECKING:
    from launch_radar.parsers.rugcheck.client import RugcheckClient


@dataclass(frozen=True)
class RiskVerdict:
    """external_score None means the score is unknown, not that the token is safe."""

    external_score: RugcheckReport | None = None
    score_above_threshold: bool = False


async def fuse_risk(rugcheck: RugcheckClient, mint: str, threshold: int) -> RiskVerdict:
    """One Rugcheck lookup; score >= threshold flags the token."""
    try:
        report = await rugcheck.get_token_report(mint)
    except Exception as e:
        logger.warning(f"[RISK] Rugcheck lookup raised for {mint[:12]}: {e}")
        report = None

    if report is None:
        logger.debug(f"[RISK] No rugcheck score for {mint[:12]}")
        return RiskVerdict()

    above = report.score >= threshold
    if above:
        logger.info(f"[RISK] {mint[:12]} rugcheck score {report.score} >= {threshold}")
    return RiskVerdict(external_score=report, score_above_threshold=above)
