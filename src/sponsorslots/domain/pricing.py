"""Pricing & size-tier calculator.

Pure functions: nothing here reads storage or keeps state between calls.
Fixed and positional campaigns size a sponsor by the price bracket of the
position they bought; pay-what-you-want campaigns size a sponsor against the
amounts paid so far, using either percentile buckets or amount tiers.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

from .campaign import SIZES_ASCENDING, Campaign, DisplaySize, SizeTier


@dataclass(frozen=True)
class DisplayMetrics:
    """Concrete display values for one sponsor."""

    size: DisplaySize
    font_size: int
    logo_width: int


# Shared by every campaign; not configurable per campaign.
DISPLAY_METRICS: dict[DisplaySize, DisplayMetrics] = {
    DisplaySize.small: DisplayMetrics(DisplaySize.small, font_size=14, logo_width=60),
    DisplaySize.medium: DisplayMetrics(DisplaySize.medium, font_size=18, logo_width=90),
    DisplaySize.large: DisplayMetrics(DisplaySize.large, font_size=24, logo_width=120),
    DisplaySize.xlarge: DisplayMetrics(DisplaySize.xlarge, font_size=32, logo_width=160),
}

DEFAULT_SIZE_TIERS: tuple[SizeTier, ...] = (
    SizeTier(size=DisplaySize.small, min_amount=5, max_amount=24),
    SizeTier(size=DisplaySize.medium, min_amount=25, max_amount=49),
    SizeTier(size=DisplaySize.large, min_amount=50, max_amount=99),
    SizeTier(size=DisplaySize.xlarge, min_amount=100, max_amount=None),
)


def metrics_for(size: DisplaySize) -> DisplayMetrics:
    return DISPLAY_METRICS[size]


@runtime_checkable
class SizingPolicy(Protocol):
    """Map a contribution amount to a display size."""

    def size_for(self, amount: float) -> DisplaySize: ...


class PriceBracketPolicy:
    """Size by rank of a price among the campaign's distinct position prices.

    The cheapest bracket is small and the most expensive xlarge; brackets in
    between are spread evenly. A single price level renders medium.
    """

    def __init__(self, prices: Iterable[float]) -> None:
        self._prices = sorted(set(prices))

    def size_for(self, amount: float) -> DisplaySize:
        n = len(self._prices)
        if n <= 1:
            return DisplaySize.medium
        rank = max(0, bisect_right(self._prices, amount) - 1)
        index = int(rank * 3 / (n - 1) + 0.5)
        return SIZES_ASCENDING[index]


class AmountTierPolicy:
    """Size by fixed amount thresholds.

    The highest-ranked tier whose ``min_amount`` is reached wins, so the
    result never decreases as the amount grows, even with gaps between tiers.
    Amounts below every threshold get the tier with the lowest minimum.
    """

    def __init__(self, tiers: Iterable[SizeTier] | None = None) -> None:
        self._tiers = sorted(tiers or DEFAULT_SIZE_TIERS, key=lambda t: t.min_amount)

    def size_for(self, amount: float) -> DisplaySize:
        reached = [t.size for t in self._tiers if amount >= t.min_amount]
        if not reached:
            return self._tiers[0].size
        return max(reached, key=lambda size: size.rank)


class PercentilePolicy:
    """Size by the share of paid amounts strictly below this amount.

    Shares are bucketed into quarters: the lowest amount is small, the
    highest xlarge. Equal amounts always share a tier within one snapshot.
    """

    def __init__(self, population: Iterable[float]) -> None:
        self._population = sorted(population)

    def size_for(self, amount: float) -> DisplaySize:
        n = len(self._population)
        if n <= 1:
            return DisplaySize.medium
        below = bisect_left(self._population, amount)
        share = below / (n - 1)
        return SIZES_ASCENDING[min(3, int(share * 4))]


def policy_for(
    campaign: Campaign,
    *,
    position_prices: Iterable[float] = (),
    paid_amounts: Iterable[float] = (),
    default_policy: str = "percentile",
) -> SizingPolicy:
    """Pick the sizing policy for a campaign snapshot."""
    if campaign.is_positional:
        return PriceBracketPolicy(position_prices)
    choice = campaign.pricing.sizing_policy or default_policy
    if choice == "tiers":
        return AmountTierPolicy(campaign.pricing.size_tiers)
    return PercentilePolicy(paid_amounts)


def compute_display(policy: SizingPolicy, amount: float) -> DisplayMetrics:
    """Return size, font size and logo width for ``amount`` under ``policy``."""
    return metrics_for(policy.size_for(amount))
