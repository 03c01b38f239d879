"""Domain layer: models, pricing, moderation and layout strategies."""

from .campaign import (
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
    generate_positions,
    position_price,
    validate_pricing_config,
)
from .errors import (
    ConflictError,
    NotFoundError,
    NotOwnerError,
    SponsorSlotsError,
    StateError,
    ValidationError,
)
from .layout import STRATEGIES, Audience, LayoutInput, PlacementPlan, RenderMode, build_plan
from .moderation import ModerationAction, is_publicly_visible, next_status
from .pricing import (
    DISPLAY_METRICS,
    AmountTierPolicy,
    DisplayMetrics,
    PercentilePolicy,
    PriceBracketPolicy,
    SizingPolicy,
    compute_display,
    policy_for,
)
from .sponsor import (
    LogoApprovalStatus,
    PaymentOutcome,
    PaymentStatus,
    SponsorDraft,
    SponsorEntry,
    SponsorType,
)

__all__ = [
    "AmountTierPolicy",
    "Audience",
    "Campaign",
    "CampaignSchedule",
    "CampaignType",
    "ConflictError",
    "DISPLAY_METRICS",
    "DisplayMetrics",
    "DisplaySize",
    "LayoutInput",
    "LayoutStyle",
    "LayoutTemplate",
    "LogoApprovalStatus",
    "ModerationAction",
    "NotFoundError",
    "NotOwnerError",
    "PaymentOutcome",
    "PaymentStatus",
    "PercentilePolicy",
    "PlacementPlan",
    "Position",
    "PriceBracketPolicy",
    "PricingConfig",
    "RenderMode",
    "STRATEGIES",
    "SectionPricing",
    "SizeTier",
    "SizingPolicy",
    "SponsorDisplayType",
    "SponsorDraft",
    "SponsorEntry",
    "SponsorSlotsError",
    "SponsorType",
    "StateError",
    "ValidationError",
    "build_plan",
    "compute_display",
    "generate_positions",
    "is_publicly_visible",
    "next_status",
    "policy_for",
    "position_price",
    "validate_pricing_config",
]
