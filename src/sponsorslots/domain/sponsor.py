"""Sponsor entry models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .campaign import DisplaySize, utcnow


class SponsorType(str, Enum):
    text = "text"
    logo = "logo"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"


class PaymentOutcome(str, Enum):
    succeeded = "succeeded"
    failed = "failed"


class LogoApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SponsorDraft(BaseModel):
    """What a sponsor submits at checkout, before a ledger entry exists."""

    name: str = Field(..., min_length=1, max_length=200, description="Sponsor name")
    display_name: str | None = Field(default=None, max_length=200, description="Name shown under a logo")
    email: str | None = Field(default=None, description="Contact address; never rendered publicly")
    message: str | None = Field(default=None, max_length=1000)
    amount: float = Field(..., gt=0, description="Contribution amount in campaign currency")
    sponsor_type: SponsorType = SponsorType.text
    logo_url: str | None = Field(default=None, description="Stored logo URL supplied by the upload service")
    payment_method: Literal["card", "cash"] = "card"


class SponsorEntry(BaseModel):
    """One sponsor's contribution record, possibly bound to a position."""

    entry_id: str
    campaign_id: str
    position_id: str | None = None
    name: str
    display_name: str | None = None
    email: str | None = None
    message: str | None = None
    amount: float
    sponsor_type: SponsorType = SponsorType.text
    logo_url: str | None = None
    payment_status: PaymentStatus = PaymentStatus.pending
    payment_method: Literal["card", "cash"] = "card"
    failure_reason: str | None = None
    logo_approval_status: LogoApprovalStatus | None = None
    logo_rejection_reason: str | None = None
    display_size: DisplaySize | None = None
    calculated_font_size: int | None = None
    calculated_logo_width: int | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        """Pending or paid entries hold their position."""
        return self.payment_status in (PaymentStatus.pending, PaymentStatus.paid)

    @property
    def is_logo(self) -> bool:
        return self.sponsor_type == SponsorType.logo
