"""Port: persistence for campaigns, positions and sponsor entries.

The store owns the only atomic primitives the ledger relies on:

* ``insert_entry`` must reject a second active (pending or paid) entry for
  the same position in a single all-or-nothing step.
* ``settle_payment`` and ``set_logo_status`` are compare-and-set updates
  that only apply when the row is still in the expected state.
* ``expire_pending`` re-checks status inside the same statement that
  releases, so a payment that settled first always wins.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from ..domain.campaign import Campaign, DisplaySize, Position
from ..domain.sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType


@runtime_checkable
class LedgerStore(Protocol):
    """Read/write interface for the sponsorship database."""

    # --- campaigns ---

    def save_campaign(self, campaign: Campaign, positions: list[Position]) -> None: ...

    def update_campaign(self, campaign: Campaign, positions: list[Position] | None = None) -> None: ...

    def get_campaign(self, campaign_id: str) -> Campaign | None: ...

    def get_campaign_by_slug(self, slug: str) -> Campaign | None: ...

    def slug_exists(self, slug: str) -> bool: ...

    def list_campaigns(self, owner_id: str) -> list[Campaign]: ...

    def campaign_version(self, campaign_id: str) -> int: ...

    # --- positions ---

    def list_positions(self, campaign_id: str) -> list[Position]: ...

    # --- sponsor entries ---

    def insert_entry(self, entry: SponsorEntry) -> SponsorEntry: ...

    def get_entry(self, entry_id: str) -> SponsorEntry | None: ...

    def list_entries(
        self,
        campaign_id: str,
        *,
        payment_statuses: tuple[PaymentStatus, ...] | None = None,
        sponsor_type: SponsorType | None = None,
        logo_status: LogoApprovalStatus | None = None,
    ) -> list[SponsorEntry]: ...

    def count_entries(self, campaign_id: str) -> int: ...

    def settle_payment(
        self,
        entry_id: str,
        status: PaymentStatus,
        *,
        now: datetime,
        failure_reason: str | None = None,
    ) -> bool: ...

    def update_display(
        self, entry_id: str, size: DisplaySize, font_size: int, logo_width: int
    ) -> None: ...

    def expire_pending(self, campaign_id: str, *, cutoff: datetime, now: datetime) -> int: ...

    def set_logo_status(
        self,
        entry_id: str,
        status: LogoApprovalStatus,
        *,
        expected: LogoApprovalStatus | None,
        now: datetime,
        rejection_reason: str | None = None,
        logo_url: str | None = None,
    ) -> bool: ...
