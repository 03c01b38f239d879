"""Logo moderation state machine.

pending -> approved | rejected. Both outcomes are terminal for review
actions; the only way back to pending is a logo resubmission.
"""

from __future__ import annotations

from enum import Enum

from .errors import (
    MISSING_LOGO_URL,
    MISSING_REJECTION_REASON,
    NOT_LOGO_ENTRY,
    TERMINAL_TRANSITION,
    StateError,
    ValidationError,
)
from .sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType


class ModerationAction(str, Enum):
    approve = "approve"
    reject = "reject"
    resubmit = "resubmit"


_REVIEW_TARGETS = {
    ModerationAction.approve: LogoApprovalStatus.approved,
    ModerationAction.reject: LogoApprovalStatus.rejected,
}


def initial_status(sponsor_type: SponsorType) -> LogoApprovalStatus | None:
    """Review state a new entry starts in; text entries are never reviewed."""
    return LogoApprovalStatus.pending if sponsor_type == SponsorType.logo else None


def next_status(
    entry: SponsorEntry,
    action: ModerationAction,
    *,
    reason: str | None = None,
    logo_url: str | None = None,
) -> LogoApprovalStatus:
    """Validate ``action`` against the entry's review state and return the target state."""
    if not entry.is_logo:
        raise ValidationError(NOT_LOGO_ENTRY, f"Entry {entry.entry_id} is not a logo sponsorship")

    if action == ModerationAction.resubmit:
        if not (logo_url and logo_url.strip()):
            raise ValidationError(MISSING_LOGO_URL, "A resubmission needs a stored logo_url")
        return LogoApprovalStatus.pending

    current = entry.logo_approval_status
    if current != LogoApprovalStatus.pending:
        raise StateError(
            TERMINAL_TRANSITION,
            f"Cannot {action.value} a logo that is already {current.value if current else 'unset'}",
            entry_id=entry.entry_id,
        )

    if action == ModerationAction.reject and not (reason and reason.strip()):
        raise ValidationError(MISSING_REJECTION_REASON, "Rejecting a logo requires a reason")
    return _REVIEW_TARGETS[action]


def is_logo_visible(entry: SponsorEntry) -> bool:
    """Text entries are always visible; logo entries only once approved."""
    return not entry.is_logo or entry.logo_approval_status == LogoApprovalStatus.approved


def is_publicly_visible(entry: SponsorEntry) -> bool:
    """Paid, and either text or an approved logo."""
    return entry.payment_status == PaymentStatus.paid and is_logo_visible(entry)
