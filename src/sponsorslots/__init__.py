"""Sponsorslots application package."""

from .models import (
    Campaign,
    CampaignDraft,
    PlacementPlan,
    Position,
    PricingConfig,
    SponsorDraft,
    SponsorEntry,
)

__version__ = "0.1.0"
__all__ = [
    "Campaign",
    "CampaignDraft",
    "PlacementPlan",
    "Position",
    "PricingConfig",
    "SponsorDraft",
    "SponsorEntry",
]
