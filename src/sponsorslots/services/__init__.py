"""Services: campaigns, position ledger, moderation, layout."""

from .campaign_service import CampaignService, require_owner, slugify
from .layout_service import AvailablePosition, AvailablePositions, LayoutService
from .ledger_service import PositionAvailability, PositionLedger
from .moderation_service import ModerationService

__all__ = [
    "AvailablePosition",
    "AvailablePositions",
    "CampaignService",
    "LayoutService",
    "ModerationService",
    "PositionAvailability",
    "PositionLedger",
    "require_owner",
    "slugify",
]
