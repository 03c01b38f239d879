"""Campaign, pricing configuration and position template models."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .errors import (
    CAMPAIGN_CLOSED,
    INVALID_PRICING_CONFIG,
    LAYOUT_STYLE_MISMATCH,
    ValidationError,
)


def _normalize_dt(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CampaignType(str, Enum):
    fixed = "fixed"
    positional = "positional"
    pay_what_you_want = "pay-what-you-want"


class LayoutStyle(str, Enum):
    grid = "grid"
    size_ordered = "size-ordered"
    amount_ordered = "amount-ordered"
    section_based = "section-based"
    word_cloud = "word-cloud"


class SponsorDisplayType(str, Enum):
    text_only = "text-only"
    logo_only = "logo-only"
    both = "both"


class DisplaySize(str, Enum):
    small = "small"
    medium = "medium"
    large = "large"
    xlarge = "xlarge"

    @property
    def rank(self) -> int:
        return _SIZE_RANK[self]


_SIZE_RANK = {
    DisplaySize.small: 1,
    DisplaySize.medium: 2,
    DisplaySize.large: 3,
    DisplaySize.xlarge: 4,
}

SIZES_ASCENDING: tuple[DisplaySize, ...] = (
    DisplaySize.small,
    DisplaySize.medium,
    DisplaySize.large,
    DisplaySize.xlarge,
)


class CampaignSchedule(BaseModel):
    """Schedule window for a campaign."""

    start_at: datetime | None = Field(default=None, description="UTC start time for campaign")
    end_at: datetime | None = Field(default=None, description="UTC end time for campaign")

    @field_validator("start_at", "end_at")
    @classmethod
    def _ensure_tz(cls, value: datetime | None) -> datetime | None:
        return _normalize_dt(value)

    def has_ended(self, now: datetime | None = None) -> bool:
        """Return True once the end of the window has passed."""
        now = _normalize_dt(now or utcnow())
        return self.end_at is not None and now > self.end_at


class SizeTier(BaseModel):
    """Amount bracket for pay-what-you-want size tiers."""

    size: DisplaySize = Field(..., description="Tier assigned to amounts in this bracket")
    min_amount: float = Field(..., description="Inclusive lower bound")
    max_amount: float | None = Field(default=None, description="Inclusive upper bound; None for the top tier")


class SectionPricing(BaseModel):
    """A named run of consecutive positions sharing one price."""

    name: str = Field(..., min_length=1, description="Section tag, e.g. 'top' or 'premium'")
    price: float = Field(..., description="Price of every position in the section")
    slots: int = Field(..., ge=1, description="Number of positions in the section")


class PricingConfig(BaseModel):
    """Campaign pricing; which fields apply depends on the campaign type."""

    # fixed
    fixed_price: float | None = Field(default=None, description="Price of every position")

    # positional
    position_prices: dict[str, float] | None = Field(
        default=None, description="Explicit price per position id"
    )
    sections: list[SectionPricing] | None = Field(default=None, description="Section-based prices, in template order")
    price_multiplier: float | None = Field(default=None, description="Multiplicative: position x multiplier")
    base_price: float | None = Field(default=None, description="Additive: base + position x price_per_position")
    price_per_position: float | None = Field(default=None, description="Additive increment per position")

    # pay-what-you-want
    minimum_amount: float | None = Field(default=None, description="Smallest accepted contribution")
    suggested_amounts: list[float] = Field(default_factory=list, description="Amounts offered in the checkout UI")
    size_tiers: list[SizeTier] | None = Field(default=None, description="Amount brackets for the 'tiers' policy")
    sizing_policy: Literal["percentile", "tiers"] | None = Field(
        default=None, description="Size-tier policy; None uses the runtime default"
    )


class LayoutTemplate(BaseModel):
    """Shape of the position grid for fixed and positional campaigns."""

    total_positions: int | None = Field(default=None, ge=1, description="Number of positions")
    columns: int = Field(default=5, ge=1, description="Grid columns")
    arrangement: Literal["horizontal", "vertical"] = Field(
        default="horizontal", description="Numbering order: row-first or column-first"
    )


class Position(BaseModel):
    """One addressable slot of a campaign's layout template."""

    position_id: str = Field(..., description="Unique within the campaign, e.g. '3'")
    ordinal: int = Field(..., ge=1, description="Natural placement order")
    row: int = Field(..., ge=1)
    col: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    section: str | None = Field(default=None, description="Optional grouping tag")
    is_taken: bool = Field(default=False, description="Derived from active sponsor entries on read")
    sponsor_entry_id: str | None = Field(default=None, description="Active claimant, when taken")


class Campaign(BaseModel):
    """A single fundraising drive with its own pricing, layout and positions."""

    campaign_id: str = Field(..., description="Campaign identifier")
    slug: str = Field(..., description="URL-friendly unique name")
    owner_id: str = Field(..., description="Organizer identifier")
    title: str = Field(..., min_length=1)
    description: str | None = None
    campaign_type: CampaignType
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    layout_style: LayoutStyle = LayoutStyle.grid
    sponsor_display_type: SponsorDisplayType = SponsorDisplayType.text_only
    currency: Literal["NZD", "AUD", "USD"] = "NZD"
    template: LayoutTemplate = Field(default_factory=LayoutTemplate)
    schedule: CampaignSchedule = Field(default_factory=CampaignSchedule)
    is_closed: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_positional(self) -> bool:
        """True for campaigns that sell template positions (fixed and positional)."""
        return self.campaign_type in (CampaignType.fixed, CampaignType.positional)

    def position_count(self) -> int:
        if self.template.total_positions:
            return self.template.total_positions
        if self.pricing.sections:
            return sum(s.slots for s in self.pricing.sections)
        if self.pricing.position_prices:
            return len(self.pricing.position_prices)
        return 0

    def ensure_open(self, now: datetime | None = None) -> None:
        """Raise ValidationError(CampaignClosed) if the campaign stopped selling."""
        if self.is_closed:
            raise ValidationError(CAMPAIGN_CLOSED, f"Campaign {self.slug!r} is closed")
        if self.schedule.has_ended(now):
            raise ValidationError(CAMPAIGN_CLOSED, f"Campaign {self.slug!r} has ended")


def _invalid(message: str) -> ValidationError:
    return ValidationError(INVALID_PRICING_CONFIG, message)


def validate_pricing_config(campaign: Campaign) -> None:
    """Check the pricing config and template against the campaign type."""
    cfg = campaign.pricing
    if campaign.campaign_type == CampaignType.fixed:
        if not cfg.fixed_price or cfg.fixed_price <= 0:
            raise _invalid("Fixed pricing requires a positive fixed_price")
    elif campaign.campaign_type == CampaignType.positional:
        has_map = bool(cfg.position_prices)
        has_sections = bool(cfg.sections)
        has_multiplicative = cfg.price_multiplier is not None and cfg.price_multiplier > 0
        has_additive = (
            cfg.base_price is not None
            and cfg.base_price >= 0
            and cfg.price_per_position is not None
            and cfg.price_per_position >= 0
        )
        if not (has_map or has_sections or has_multiplicative or has_additive):
            raise _invalid(
                "Positional pricing requires position_prices, sections, price_multiplier "
                "or (base_price + price_per_position)"
            )
        if has_map and any(p <= 0 for p in cfg.position_prices.values()):
            raise _invalid("position_prices must be positive")
        if has_sections and any(s.price <= 0 for s in cfg.sections):
            raise _invalid("Section prices must be positive")
    else:
        if not cfg.minimum_amount or cfg.minimum_amount <= 0:
            raise _invalid("Pay-what-you-want requires a positive minimum_amount")
        for index, tier in enumerate(cfg.size_tiers or []):
            if tier.min_amount < 0:
                raise _invalid(f"Size tier {index} has invalid min_amount")
            if tier.max_amount is not None and tier.max_amount < tier.min_amount:
                raise _invalid(f"Size tier {index} has max_amount below min_amount")

    if campaign.is_positional:
        total = campaign.position_count()
        if total <= 0:
            raise _invalid("Fixed and positional campaigns need at least one position")
        if cfg.sections and sum(s.slots for s in cfg.sections) != total:
            raise _invalid("Section slots must add up to total_positions")
        if cfg.position_prices and campaign.campaign_type == CampaignType.positional:
            expected = {str(n) for n in range(1, total + 1)}
            if set(cfg.position_prices) != expected:
                raise _invalid("position_prices must price every position '1'..'N' exactly once")
        # a claim must pay the exact price and amounts are always positive
        if any(position_price(n, campaign) <= 0 for n in range(1, total + 1)):
            raise _invalid("Every position needs a positive price")
    elif campaign.layout_style == LayoutStyle.section_based:
        raise ValidationError(
            LAYOUT_STYLE_MISMATCH, "section-based layouts need a fixed or positional campaign"
        )


def _section_for(number: int, sections: list[SectionPricing] | None) -> SectionPricing | None:
    if not sections:
        return None
    upper = 0
    for section in sections:
        upper += section.slots
        if number <= upper:
            return section
    return None


def position_price(number: int, campaign: Campaign) -> float:
    """Price of the 1-based position ``number`` under the campaign's pricing."""
    cfg = campaign.pricing
    if campaign.campaign_type == CampaignType.fixed:
        return float(cfg.fixed_price or 0.0)
    if cfg.position_prices:
        return float(cfg.position_prices[str(number)])
    section = _section_for(number, cfg.sections)
    if section is not None:
        return float(section.price)
    if cfg.price_multiplier:
        return number * cfg.price_multiplier
    if cfg.base_price is not None and cfg.price_per_position is not None:
        return cfg.base_price + number * cfg.price_per_position
    raise _invalid("Invalid pricing config for positional pricing")


def generate_positions(campaign: Campaign) -> list[Position]:
    """Build the position template: ids '1'..'N' laid out row- or column-first."""
    total = campaign.position_count()
    columns = campaign.template.columns
    rows = math.ceil(total / columns) if total else 0
    cells: list[tuple[int, int]] = []
    if campaign.template.arrangement == "horizontal":
        cells = [(r, c) for r in range(1, rows + 1) for c in range(1, columns + 1)]
    else:
        cells = [(r, c) for c in range(1, columns + 1) for r in range(1, rows + 1)]

    positions: list[Position] = []
    for number, (row, col) in enumerate(cells[:total], start=1):
        section = _section_for(number, campaign.pricing.sections)
        positions.append(
            Position(
                position_id=str(number),
                ordinal=number,
                row=row,
                col=col,
                price=position_price(number, campaign),
                section=section.name if section else None,
            )
        )
    return positions
