"""PositionLedger: claim, payment settlement and expiry of sponsor entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..domain.campaign import Campaign, CampaignType, Position
from ..domain.errors import (
    AMOUNT_MISMATCH,
    BELOW_MINIMUM_AMOUNT,
    CAMPAIGN_TYPE_MISMATCH,
    MISSING_LOGO_URL,
    PAYMENT_ALREADY_SETTLED,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ..domain.moderation import initial_status
from ..domain.pricing import compute_display, policy_for
from ..domain.sponsor import (
    PaymentOutcome,
    PaymentStatus,
    SponsorDraft,
    SponsorEntry,
    SponsorType,
)
from ..ports.clock import Clock, SystemClock
from ..ports.id_gen import IdProvider, UuidIdProvider
from ..ports.ledger_store import LedgerStore

_LOGGER = logging.getLogger("sponsorslots.ledger")

_PRICE_TOLERANCE = 1e-6


@dataclass(frozen=True)
class PositionAvailability:
    """Occupancy counts; ``claimed + remaining == total`` always."""

    total: int
    claimed: int
    remaining: int


class PositionLedger:
    """The only writer of position occupancy."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
        hold_window: timedelta = timedelta(minutes=30),
        default_policy: str = "percentile",
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._ids = id_provider or UuidIdProvider()
        self._hold_window = hold_window
        self._default_policy = default_policy

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    def _campaign(self, campaign_id: str) -> Campaign:
        campaign = self._store.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", f"Campaign {campaign_id} not found")
        return campaign

    def _entry(self, entry_id: str) -> SponsorEntry:
        entry = self._store.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("SponsorEntry", f"Sponsor entry {entry_id} not found")
        return entry

    def availability(self, campaign_id: str) -> PositionAvailability:
        positions = self._store.list_positions(campaign_id)
        claimed = sum(1 for p in positions if p.is_taken)
        return PositionAvailability(total=len(positions), claimed=claimed, remaining=len(positions) - claimed)

    # ------------------------------------------------------------------
    # submissions
    # ------------------------------------------------------------------

    def submit(self, campaign_id: str, draft: SponsorDraft, position_id: str | None = None) -> SponsorEntry:
        """Route a checkout to ``claim`` or ``accept`` by campaign type."""
        campaign = self._campaign(campaign_id)
        if campaign.is_positional:
            if position_id is None:
                raise ValidationError(
                    CAMPAIGN_TYPE_MISMATCH, f"{campaign.campaign_type.value} campaigns require a position_id"
                )
            return self.claim(campaign_id, position_id, draft)
        return self.accept(campaign_id, draft)

    def claim(self, campaign_id: str, position_id: str, draft: SponsorDraft) -> SponsorEntry:
        """Reserve ``position_id`` and create its pending entry in one atomic step.

        Raises ConflictError(PositionAlreadyTaken) when another active entry
        holds the position. No retry is attempted.
        """
        campaign = self._campaign(campaign_id)
        if not campaign.is_positional:
            raise ValidationError(CAMPAIGN_TYPE_MISMATCH, "Pay-what-you-want campaigns have no positions to claim")
        now = self._clock.now()
        campaign.ensure_open(now)
        position = self._position(campaign_id, position_id)
        if abs(draft.amount - position.price) > _PRICE_TOLERANCE:
            raise ValidationError(
                AMOUNT_MISMATCH,
                f"Amount {draft.amount} does not match position price {position.price}",
            )
        entry = self._new_entry(campaign, draft, position_id=position_id, now=now)
        try:
            stored = self._store.insert_entry(entry)
        except ConflictError:
            _LOGGER.info("claim_conflict", extra={"campaign_id": campaign_id, "position_id": position_id})
            raise
        _LOGGER.info(
            "position_claimed",
            extra={"campaign_id": campaign_id, "position_id": position_id, "entry_id": stored.entry_id},
        )
        return stored

    def accept(self, campaign_id: str, draft: SponsorDraft) -> SponsorEntry:
        """Record a pay-what-you-want contribution; no position is involved."""
        campaign = self._campaign(campaign_id)
        if campaign.campaign_type != CampaignType.pay_what_you_want:
            raise ValidationError(CAMPAIGN_TYPE_MISMATCH, "Positional campaigns must claim a position")
        now = self._clock.now()
        campaign.ensure_open(now)
        minimum = campaign.pricing.minimum_amount or 0.0
        if draft.amount < minimum:
            raise ValidationError(BELOW_MINIMUM_AMOUNT, f"Minimum contribution is {minimum} {campaign.currency}")
        stored = self._store.insert_entry(self._new_entry(campaign, draft, position_id=None, now=now))
        _LOGGER.info("contribution_accepted", extra={"campaign_id": campaign_id, "entry_id": stored.entry_id})
        return stored

    def _position(self, campaign_id: str, position_id: str) -> Position:
        for position in self._store.list_positions(campaign_id):
            if position.position_id == position_id:
                return position
        raise NotFoundError("Position", f"Position {position_id} not found")

    def _new_entry(
        self, campaign: Campaign, draft: SponsorDraft, *, position_id: str | None, now: datetime
    ) -> SponsorEntry:
        if draft.sponsor_type == SponsorType.logo and not draft.logo_url:
            raise ValidationError(MISSING_LOGO_URL, "Logo sponsorships need an uploaded logo_url")
        return SponsorEntry(
            entry_id=self._ids.new_id("entry"),
            campaign_id=campaign.campaign_id,
            position_id=position_id,
            name=draft.name,
            display_name=draft.display_name,
            email=draft.email,
            message=draft.message,
            amount=draft.amount,
            sponsor_type=draft.sponsor_type,
            logo_url=draft.logo_url if draft.sponsor_type == SponsorType.logo else None,
            payment_status=PaymentStatus.pending,
            payment_method=draft.payment_method,
            logo_approval_status=initial_status(draft.sponsor_type),
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # settlement
    # ------------------------------------------------------------------

    def confirm_payment(self, entry_id: str, outcome: PaymentOutcome | str) -> SponsorEntry:
        """Apply a payment-processor outcome; replays of a settled outcome are no-ops."""
        outcome = PaymentOutcome(outcome)
        target = PaymentStatus.paid if outcome == PaymentOutcome.succeeded else PaymentStatus.failed
        entry = self._entry(entry_id)

        if entry.payment_status == target:
            _LOGGER.info("payment_replay_ignored", extra={"entry_id": entry_id, "status": target.value})
            return entry
        if entry.payment_status != PaymentStatus.pending:
            raise self._already_settled(entry, target)

        if target == PaymentStatus.paid:
            applied = self._store.settle_payment(entry_id, PaymentStatus.paid, now=self._clock.now())
        else:
            applied = self._release(entry_id, "payment_failed")

        current = self._entry(entry_id)
        if not applied:
            # a concurrent callback or the expiry sweep settled it first
            if current.payment_status == target:
                return current
            raise self._already_settled(current, target)

        _LOGGER.info(
            "payment_settled",
            extra={"entry_id": entry_id, "campaign_id": current.campaign_id, "status": target.value},
        )
        if target == PaymentStatus.paid:
            current = self._refresh_display(current)
        return current

    @staticmethod
    def _already_settled(entry: SponsorEntry, target: PaymentStatus) -> StateError:
        return StateError(
            PAYMENT_ALREADY_SETTLED,
            f"Entry {entry.entry_id} is already {entry.payment_status.value}; cannot become {target.value}",
            entry_id=entry.entry_id,
            failure_reason=entry.failure_reason,
        )

    def _refresh_display(self, entry: SponsorEntry) -> SponsorEntry:
        """Persist the last computed display metrics for fast reads."""
        campaign = self._campaign(entry.campaign_id)
        positions = self._store.list_positions(entry.campaign_id)
        paid = self._store.list_entries(entry.campaign_id, payment_statuses=(PaymentStatus.paid,))
        policy = policy_for(
            campaign,
            position_prices=[p.price for p in positions],
            paid_amounts=[e.amount for e in paid],
            default_policy=self._default_policy,
        )
        prices = {p.position_id: p.price for p in positions}
        basis = prices.get(entry.position_id, entry.amount) if entry.position_id else entry.amount
        metrics = compute_display(policy, basis)
        self._store.update_display(entry.entry_id, metrics.size, metrics.font_size, metrics.logo_width)
        return entry.model_copy(
            update={
                "display_size": metrics.size,
                "calculated_font_size": metrics.font_size,
                "calculated_logo_width": metrics.logo_width,
            }
        )

    def _release(self, entry_id: str, reason: str) -> bool:
        """Fail a pending entry, which frees its position. Internal only."""
        return self._store.settle_payment(
            entry_id, PaymentStatus.failed, now=self._clock.now(), failure_reason=reason
        )

    # ------------------------------------------------------------------
    # expiry
    # ------------------------------------------------------------------

    def expire_pending_claims(
        self, campaign_id: str, older_than: timedelta | datetime | None = None
    ) -> int:
        """Release pending claims created before the cutoff; returns how many were released.

        ``older_than`` is either an age (timedelta) or an absolute cutoff;
        it defaults to the configured hold window.
        """
        self._campaign(campaign_id)
        now = self._clock.now()
        if isinstance(older_than, datetime):
            cutoff = older_than
        else:
            cutoff = now - (older_than if older_than is not None else self._hold_window)
        released = self._store.expire_pending(campaign_id, cutoff=cutoff, now=now)
        _LOGGER.info(
            "pending_claims_expired",
            extra={"campaign_id": campaign_id, "released": released, "cutoff": cutoff.isoformat()},
        )
        return released
