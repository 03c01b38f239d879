"""ModerationService: owner review of logo sponsorships."""

from __future__ import annotations

import logging

from ..domain.campaign import Campaign
from ..domain.errors import TERMINAL_TRANSITION, NotFoundError, StateError
from ..domain.moderation import ModerationAction, next_status
from ..domain.sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType
from ..ports.clock import Clock, SystemClock
from ..ports.ledger_store import LedgerStore
from .campaign_service import require_owner

_LOGGER = logging.getLogger("sponsorslots.moderation")


class ModerationService:
    """Approve, reject and resubmit logos. Review transitions are compare-and-set."""

    def __init__(self, store: LedgerStore, *, clock: Clock | None = None) -> None:
        self._store = store
        self._clock = clock or SystemClock()

    def _entry(self, entry_id: str) -> SponsorEntry:
        entry = self._store.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("SponsorEntry", f"Sponsor entry {entry_id} not found")
        return entry

    def _owned_campaign(self, campaign_id: str, owner_id: str) -> Campaign:
        campaign = self._store.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", f"Campaign {campaign_id} not found")
        require_owner(campaign, owner_id)
        return campaign

    def _review(
        self, entry_id: str, owner_id: str, action: ModerationAction, reason: str | None = None
    ) -> SponsorEntry:
        entry = self._entry(entry_id)
        self._owned_campaign(entry.campaign_id, owner_id)
        target = next_status(entry, action, reason=reason)
        applied = self._store.set_logo_status(
            entry_id,
            target,
            expected=LogoApprovalStatus.pending,
            now=self._clock.now(),
            rejection_reason=reason.strip() if reason else None,
        )
        if not applied:
            # another reviewer got there first
            current = self._entry(entry_id)
            status = current.logo_approval_status.value if current.logo_approval_status else "unset"
            raise StateError(
                TERMINAL_TRANSITION,
                f"Cannot {action.value} a logo that is already {status}",
                entry_id=entry_id,
            )
        _LOGGER.info(
            "logo_reviewed",
            extra={"entry_id": entry_id, "campaign_id": entry.campaign_id, "status": target.value},
        )
        return self._entry(entry_id)

    def approve(self, entry_id: str, owner_id: str) -> SponsorEntry:
        return self._review(entry_id, owner_id, ModerationAction.approve)

    def reject(self, entry_id: str, owner_id: str, reason: str | None) -> SponsorEntry:
        return self._review(entry_id, owner_id, ModerationAction.reject, reason)

    def resubmit_logo(self, entry_id: str, logo_url: str | None) -> SponsorEntry:
        """Store a new logo and send the entry back to review, from any review state."""
        entry = self._entry(entry_id)
        target = next_status(entry, ModerationAction.resubmit, logo_url=logo_url)
        applied = self._store.set_logo_status(
            entry_id,
            target,
            expected=None,
            now=self._clock.now(),
            logo_url=logo_url.strip(),
        )
        if not applied:
            raise NotFoundError("SponsorEntry", f"Sponsor entry {entry_id} not found")
        _LOGGER.info("logo_resubmitted", extra={"entry_id": entry_id, "campaign_id": entry.campaign_id})
        return self._entry(entry_id)

    def pending_logos(self, campaign_id: str, owner_id: str) -> list[SponsorEntry]:
        """Logo entries still awaiting review, oldest first. Failed payments are skipped."""
        self._owned_campaign(campaign_id, owner_id)
        entries = self._store.list_entries(
            campaign_id,
            payment_statuses=(PaymentStatus.pending, PaymentStatus.paid),
            sponsor_type=SponsorType.logo,
            logo_status=LogoApprovalStatus.pending,
        )
        return entries

    def all_sponsors(self, campaign_id: str, owner_id: str) -> list[SponsorEntry]:
        self._owned_campaign(campaign_id, owner_id)
        return self._store.list_entries(campaign_id)
