"""Typed errors raised by the placement engine.

Every error carries a stable ``code`` (the error family) and a ``reason``
(the specific rule that was violated) so interface layers can render them
as structured results instead of free-form strings.
"""

from __future__ import annotations

from typing import Any


class SponsorSlotsError(Exception):
    """Base class for all domain errors."""

    code = "error"

    def __init__(self, reason: str, message: str | None = None, **details: Any) -> None:
        self.reason = reason
        self.message = message or reason
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "reason": self.reason, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ConflictError(SponsorSlotsError):
    """A claim lost the race for a position."""

    code = "conflict"


class ValidationError(SponsorSlotsError):
    """Input or campaign state rejects the operation; retrying will not help."""

    code = "validation"


class NotFoundError(SponsorSlotsError):
    """Unknown campaign, position or sponsor entry."""

    code = "not_found"


class StateError(SponsorSlotsError):
    """Transition out of a terminal state."""

    code = "state"


class NotOwnerError(SponsorSlotsError, PermissionError):
    """Owner-only action attempted by someone else."""

    code = "forbidden"


# Reasons
POSITION_ALREADY_TAKEN = "PositionAlreadyTaken"
INVALID_PRICING_CONFIG = "InvalidPricingConfig"
CAMPAIGN_CLOSED = "CampaignClosed"
CAMPAIGN_TYPE_MISMATCH = "CampaignTypeMismatch"
CAMPAIGN_LOCKED = "CampaignLocked"
LAYOUT_STYLE_MISMATCH = "LayoutStyleMismatch"
AMOUNT_MISMATCH = "AmountMismatch"
BELOW_MINIMUM_AMOUNT = "BelowMinimumAmount"
MISSING_LOGO_URL = "MissingLogoUrl"
MISSING_REJECTION_REASON = "MissingRejectionReason"
NOT_LOGO_ENTRY = "NotLogoEntry"
TERMINAL_TRANSITION = "TerminalTransition"
PAYMENT_ALREADY_SETTLED = "PaymentAlreadySettled"
NOT_CAMPAIGN_OWNER = "NotCampaignOwner"
