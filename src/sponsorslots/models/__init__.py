"""Domain and request models."""

from ..domain.campaign import (
    Campaign,
    CampaignSchedule,
    CampaignType,
    DisplaySize,
    LayoutStyle,
    LayoutTemplate,
    Position,
    PricingConfig,
    SectionPricing,
    SizeTier,
    SponsorDisplayType,
)
from ..domain.layout import PlacementItem, PlacementPlan, SectionSummary, SponsorView
from ..domain.sponsor import (
    LogoApprovalStatus,
    PaymentOutcome,
    PaymentStatus,
    SponsorDraft,
    SponsorEntry,
    SponsorType,
)
from .requests import CampaignDraft

__all__ = [
    # Domain
    "Campaign",
    "CampaignSchedule",
    "CampaignType",
    "DisplaySize",
    "LayoutStyle",
    "LayoutTemplate",
    "LogoApprovalStatus",
    "PaymentOutcome",
    "PaymentStatus",
    "Position",
    "PricingConfig",
    "SectionPricing",
    "SizeTier",
    "SponsorDisplayType",
    "SponsorDraft",
    "SponsorEntry",
    "SponsorType",
    # Plans
    "PlacementItem",
    "PlacementPlan",
    "SectionSummary",
    "SponsorView",
    # Requests
    "CampaignDraft",
]
