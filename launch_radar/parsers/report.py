"""The one record produced per new pool, and how it is assembled."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from launch_radar.parsers.base_info import BaseInfo
from launch_radar.parsers.creator_activity import CreatorActivity
from launch_radar.parsers.distribution import DistributionMetrics
from launch_radar.parsers.risk_fuser import RiskVerdict


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ReportBaseInfo(_ReportModel):
    mint_address: str
    decimals: int
    lp_amount: float


class ReportRiskMetrics(_ReportModel):
    dev_holding_percentage: float
    dev_has_sold_tokens: bool


class ReportBundledHoldings(_ReportModel):
    total_bundled_amount: float
    bundled_percentage: float


class ReportDistributionMetrics(_ReportModel):
    top10_holders_percentage: float
    bundled_holdings: ReportBundledHoldings


class MonitoredTokenReport(_ReportModel):
    """Immutable once assembled. Serialize with to_payload() for camelCase keys."""

    signature: str
    creator: str
    creator_rug_risk: bool
    timestamp: datetime
    base_info: ReportBaseInfo
    risk_metrics: ReportRiskMetrics
    distribution_metrics: ReportDistributionMetrics
    rug_check_raw: dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict; rugCheckRaw omitted when the score was unavailable."""
        payload = self.model_dump(mode="json", by_alias=True)
        if payload.get("rugCheckRaw") is None:
            payload.pop("rugCheckRaw", None)
        return payload


def assemble_report(
    signature: str,
    creator: str,
    base_info: BaseInfo,
    risk_verdict: RiskVerdict,
    creator_activity: CreatorActivity,
    distribution_metrics: DistributionMetrics,
    *,
    captured_at: datetime | None = None,
) -> MonitoredTokenReport:
    """Build the report. No I/O; stamps the capture time."""
    bundled = distribution_metrics.bundled_holdings
    external = risk_verdict.external_score

    return MonitoredTokenReport(
        signature=signature,
        creator=creator,
        creator_rug_risk=risk_verdict.score_above_threshold,
        timestamp=captured_at or datetime.now(UTC),
        base_info=ReportBaseInfo(
            mint_address=base_info.mint_address,
            decimals=base_info.decimals,
            lp_amount=float(base_info.lp_amount),
        ),
        risk_metrics=ReportRiskMetrics(
            dev_holding_percentage=float(creator_activity.holding_percentage),
            dev_has_sold_tokens=creator_activity.has_sold,
        ),
        distribution_metrics=ReportDistributionMetrics(
            top10_holders_percentage=float(distribution_metrics.top10_holders_percentage),
            bundled_holdings=ReportBundledHoldings(
                total_bundled_amount=float(bundled.total_bundled_amount),
                bundled_percentage=float(bundled.bundled_percentage),
            ),
        ),
        rug_check_raw=external.raw if external is not None else None,
    )
