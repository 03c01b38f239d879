"""CampaignService: campaign setup, edits and lifecycle."""

from __future__ import annotations

import logging
import re
from typing import Any

from ..domain.campaign import Campaign, generate_positions, validate_pricing_config
from ..domain.errors import (
    CAMPAIGN_CLOSED,
    CAMPAIGN_LOCKED,
    NOT_CAMPAIGN_OWNER,
    NotFoundError,
    NotOwnerError,
    ValidationError,
)
from ..models.requests import CampaignDraft
from ..ports.clock import Clock, SystemClock
from ..ports.id_gen import IdProvider, UuidIdProvider
from ..ports.ledger_store import LedgerStore

_LOGGER = logging.getLogger("sponsorslots.campaigns")

_SLUG_RE = re.compile(r"[^a-z0-9]+")

# Changing these after a sale would reinterpret existing positions or prices.
LOCKED_FIELDS = frozenset({"campaign_type", "pricing", "template", "currency"})
# Fields that rebuild the position template when they change.
TEMPLATE_FIELDS = frozenset({"campaign_type", "pricing", "template"})
IMMUTABLE_FIELDS = frozenset({"campaign_id", "slug", "owner_id", "created_at", "is_closed"})


def slugify(title: str) -> str:
    return _SLUG_RE.sub("-", title.lower()).strip("-") or "campaign"


def require_owner(campaign: Campaign, owner_id: str | None) -> None:
    if owner_id is None or campaign.owner_id != owner_id:
        raise NotOwnerError(NOT_CAMPAIGN_OWNER, f"Not authorized for campaign {campaign.slug!r}")


class CampaignService:
    """Creates campaigns with their position template and guards later edits."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._ids = id_provider or UuidIdProvider()

    def _unique_slug(self, title: str) -> str:
        base = slugify(title)
        slug, counter = base, 1
        while self._store.slug_exists(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def create_campaign(self, owner_id: str, draft: CampaignDraft | dict[str, Any]) -> Campaign:
        if isinstance(draft, dict):
            draft = CampaignDraft.model_validate(draft)
        campaign = Campaign(
            campaign_id=self._ids.new_id("campaign"),
            slug=self._unique_slug(draft.title),
            owner_id=owner_id,
            created_at=self._clock.now(),
            **draft.model_dump(),
        )
        validate_pricing_config(campaign)
        positions = generate_positions(campaign) if campaign.is_positional else []
        self._store.save_campaign(campaign, positions)
        _LOGGER.info(
            "campaign_created",
            extra={
                "campaign_id": campaign.campaign_id,
                "slug": campaign.slug,
                "campaign_type": campaign.campaign_type.value,
                "positions": len(positions),
            },
        )
        return campaign

    def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = self._store.get_campaign(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", f"Campaign {campaign_id} not found")
        return campaign

    def get_by_slug(self, slug: str) -> Campaign:
        campaign = self._store.get_campaign_by_slug(slug)
        if campaign is None:
            raise NotFoundError("Campaign", f"Campaign {slug!r} not found")
        return campaign

    def list_for_owner(self, owner_id: str) -> list[Campaign]:
        return self._store.list_campaigns(owner_id)

    def update_campaign(self, campaign_id: str, owner_id: str, updates: dict[str, Any]) -> Campaign:
        """Apply edits; type, pricing, template and currency lock once any entry exists."""
        campaign = self.get_campaign(campaign_id)
        require_owner(campaign, owner_id)
        if campaign.is_closed:
            raise ValidationError(CAMPAIGN_CLOSED, "Cannot update a closed campaign")

        updates = {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}
        merged = Campaign.model_validate({**campaign.model_dump(), **updates})
        touched = {name for name in updates if getattr(merged, name, None) != getattr(campaign, name, None)}
        if touched & LOCKED_FIELDS and self._store.count_entries(campaign_id):
            raise ValidationError(
                CAMPAIGN_LOCKED,
                "Cannot change campaign type, pricing, template or currency once sponsors exist",
                fields=sorted(touched & LOCKED_FIELDS),
            )
        validate_pricing_config(merged)
        positions = None
        if touched & TEMPLATE_FIELDS:
            positions = generate_positions(merged) if merged.is_positional else []
        self._store.update_campaign(merged, positions)
        _LOGGER.info("campaign_updated", extra={"campaign_id": campaign_id, "fields": sorted(touched)})
        return merged

    def close_campaign(self, campaign_id: str, owner_id: str) -> Campaign:
        campaign = self.get_campaign(campaign_id)
        require_owner(campaign, owner_id)
        if campaign.is_closed:
            raise ValidationError(CAMPAIGN_CLOSED, "Campaign is already closed")
        closed = campaign.model_copy(update={"is_closed": True})
        self._store.update_campaign(closed)
        _LOGGER.info("campaign_closed", extra={"campaign_id": campaign_id})
        return closed
