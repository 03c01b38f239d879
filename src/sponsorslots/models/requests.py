"""Request DTOs for campaign setup and checkout."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..domain.campaign import (
    CampaignSchedule,
    CampaignType,
    LayoutStyle,
    LayoutTemplate,
    PricingConfig,
    SponsorDisplayType,
)


class CampaignDraft(BaseModel):
    """Input DTO for creating a campaign; ids and slug are assigned by the service."""

    title: str = Field(..., min_length=1, max_length=200, description="Campaign title")
    description: str | None = Field(default=None, description="Free-form description")
    campaign_type: CampaignType = Field(..., description="fixed, positional or pay-what-you-want")
    pricing: PricingConfig = Field(default_factory=PricingConfig, description="Pricing for the campaign type")
    layout_style: LayoutStyle = Field(default=LayoutStyle.grid, description="Rendering strategy")
    sponsor_display_type: SponsorDisplayType = Field(
        default=SponsorDisplayType.text_only, description="text-only, logo-only or both"
    )
    currency: Literal["NZD", "AUD", "USD"] = Field(default="NZD", description="Campaign currency")
    template: LayoutTemplate = Field(default_factory=LayoutTemplate, description="Position grid shape")
    schedule: CampaignSchedule = Field(default_factory=CampaignSchedule, description="Selling window")
