"""Holder concentration metrics — top-N share and bundled (large holder) share.

Pure functions over an immutable TokenDistribution.
"""

from dataclasses import dataclass
from decimal import Decimal

from launch_radar.parsers.holder_aggregator import ZERO, Holder, TokenDistribution


@dataclass(frozen=True)
class BundledHoldings:
    """Aggregate of holders at or above the large-holder threshold."""

    total_bundled_amount: Decimal = ZERO
    bundled_percentage: Decimal = ZERO


@dataclass(frozen=True)
class DistributionMetrics:
    top10_holders_percentage: Decimal = ZERO
    bundled_holdings: BundledHoldings = BundledHoldings()


def ranked_holders(distribution: TokenDistribution) -> list[Holder]:
    """Largest first; equal shares ordered by address so output is reproducible."""
    return sorted(distribution.holders, key=lambda h: (-h.percentage, h.address))


def top_n_share(distribution: TokenDistribution, n: int) -> Decimal:
    """Summed percentage of the n largest holders (all of them if fewer)."""
    if n <= 0:
        return ZERO
    return sum((h.percentage for h in ranked_holders(distribution)[:n]), ZERO)


def bundled_share(distribution: TokenDistribution, threshold: Decimal) -> BundledHoldings:
    """Sum amounts and shares of holders with percentage >= threshold (inclusive)."""
    if distribution.total_supply <= 0:
        return BundledHoldings()

    bundled = [h for h in distribution.holders if h.percentage >= threshold]
    return BundledHoldings(
        total_bundled_amount=sum((h.amount for h in bundled), ZERO),
        bundled_percentage=sum((h.percentage for h in bundled), ZERO),
    )


def analyse_distribution(
    distribution: TokenDistribution,
    *,
    top_n: int = 10,
    bundled_threshold: Decimal = Decimal("1"),
) -> DistributionMetrics:
    return DistributionMetrics(
        top10_holders_percentage=top_n_share(distribution, top_n),
        bundled_holdings=bundled_share(distribution, bundled_threshold),
    )
