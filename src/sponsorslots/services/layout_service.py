"""LayoutService: public and owner placement plans, keyed by campaign version."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import datetime

from pydantic import BaseModel, Field

from ..domain.campaign import Campaign
from ..domain.errors import NotFoundError
from ..domain.layout import Audience, LayoutInput, PlacementPlan, build_plan
from ..ports.clock import Clock, SystemClock
from ..ports.ledger_store import LedgerStore
from .campaign_service import require_owner

_LOGGER = logging.getLogger("sponsorslots.layout")


class AvailablePosition(BaseModel):
    position_id: str
    ordinal: int
    row: int
    col: int
    price: float
    section: str | None = None


class AvailablePositions(BaseModel):
    """Selection-UI view of a campaign's unclaimed positions."""

    campaign_id: str
    slug: str
    currency: str
    is_open: bool
    total_positions: int
    claimed_positions: int
    remaining_positions: int
    positions: list[AvailablePosition] = Field(default_factory=list)


class LayoutService:
    """Builds placement plans from snapshot reads of the ledger store.

    Plans are cached by (campaign, audience, version, open). Every ledger or
    moderation write bumps the campaign version, so a cached plan is never
    served after the sponsor population changes.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        clock: Clock | None = None,
        default_policy: str = "percentile",
        canvas_width: float = 600.0,
        max_attempts: int = 2000,
        cache_size: int = 256,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._default_policy = default_policy
        self._canvas_width = canvas_width
        self._max_attempts = max_attempts
        self._cache_size = cache_size
        self._cache: OrderedDict[tuple, PlacementPlan] = OrderedDict()
        self._lock = threading.Lock()

    def _campaign(self, slug: str) -> Campaign:
        campaign = self._store.get_campaign_by_slug(slug)
        if campaign is None:
            raise NotFoundError("Campaign", f"Campaign {slug!r} not found")
        return campaign

    @staticmethod
    def _is_open(campaign: Campaign, now: datetime) -> bool:
        return not (campaign.is_closed or campaign.schedule.has_ended(now))

    def get_layout_plan(
        self,
        slug: str,
        audience: Audience | str = Audience.public,
        owner_id: str | None = None,
    ) -> PlacementPlan:
        audience = Audience(audience)
        campaign = self._campaign(slug)
        if audience == Audience.owner:
            require_owner(campaign, owner_id)

        now = self._clock.now()
        version = self._store.campaign_version(campaign.campaign_id)
        key = (campaign.campaign_id, audience.value, version, self._is_open(campaign, now))
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        plan = build_plan(
            LayoutInput(
                campaign=campaign,
                positions=self._store.list_positions(campaign.campaign_id),
                entries=self._store.list_entries(campaign.campaign_id),
                audience=audience,
                default_policy=campaign.pricing.sizing_policy or self._default_policy,
                canvas_width=self._canvas_width,
                max_attempts=self._max_attempts,
                version=version,
                now=now,
            )
        )
        _LOGGER.debug(
            "plan_built",
            extra={
                "campaign_id": campaign.campaign_id,
                "audience": audience.value,
                "version": version,
                "items": len(plan.items),
            },
        )
        if self._cache_size:
            with self._lock:
                self._cache[key] = plan
                while len(self._cache) > self._cache_size:
                    self._cache.popitem(last=False)
        return plan

    def get_available_positions(self, slug: str) -> AvailablePositions:
        campaign = self._campaign(slug)
        positions = self._store.list_positions(campaign.campaign_id)
        claimed = sum(1 for p in positions if p.is_taken)
        is_open = self._is_open(campaign, self._clock.now())
        free = [
            AvailablePosition(
                position_id=p.position_id,
                ordinal=p.ordinal,
                row=p.row,
                col=p.col,
                price=p.price,
                section=p.section,
            )
            for p in positions
            if not p.is_taken
        ]
        return AvailablePositions(
            campaign_id=campaign.campaign_id,
            slug=campaign.slug,
            currency=campaign.currency,
            is_open=is_open,
            total_positions=len(positions),
            claimed_positions=claimed,
            remaining_positions=len(positions) - claimed,
            positions=free if is_open else [],
        )
