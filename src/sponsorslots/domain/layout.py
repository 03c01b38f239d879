"""Layout rendering dispatcher.

Turns a campaign snapshot (campaign, position template, sponsor entries)
into an ordered placement plan. One strategy per ``LayoutStyle``; the
dispatch table is closed over the enum so every style is covered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from pydantic import BaseModel, Field

from .campaign import Campaign, DisplaySize, LayoutStyle, Position, SponsorDisplayType, utcnow
from .moderation import is_publicly_visible
from .packing import Box, pack_spiral
from .pricing import SizingPolicy, compute_display, policy_for
from .sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType


class Audience(str, Enum):
    public = "public"
    owner = "owner"


class RenderMode(str, Enum):
    text = "text"
    logo = "logo"
    logo_with_name = "logo-with-name"


class SponsorView(BaseModel):
    """What a renderer needs to draw one sponsor."""

    entry_id: str
    position_id: str | None = None
    name: str
    display_name: str | None = None
    message: str | None = None
    amount: float
    sponsor_type: SponsorType
    render_mode: RenderMode
    logo_url: str | None = None
    display_size: DisplaySize
    font_size: int
    logo_width: int
    payment_status: PaymentStatus
    is_pending: bool = Field(default=False, description="Owner preview only: not final yet")
    created_at: datetime


class PlacementItem(BaseModel):
    """One (slot, sponsor-or-empty) pair of a placement plan."""

    slot: str
    position_id: str | None = None
    section: str | None = None
    price: float | None = None
    is_taken: bool = False
    selectable: bool = False
    sponsor: SponsorView | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None


class SectionSummary(BaseModel):
    name: str
    price: float
    total: int
    taken: int
    remaining: int
    available_position_ids: list[str] = Field(default_factory=list)


class PlacementPlan(BaseModel):
    campaign_id: str
    slug: str
    layout_style: LayoutStyle
    sponsor_display_type: SponsorDisplayType
    audience: Audience
    items: list[PlacementItem] = Field(default_factory=list)
    sections: list[SectionSummary] | None = None
    total_positions: int = 0
    claimed_positions: int = 0
    remaining_positions: int = 0
    version: int = 0


@dataclass
class LayoutInput:
    """Snapshot handed to a strategy."""

    campaign: Campaign
    positions: list[Position]
    entries: list[SponsorEntry]
    audience: Audience = Audience.public
    default_policy: str = "percentile"
    canvas_width: float = 600.0
    max_attempts: int = 2000
    version: int = 0
    now: datetime = field(default_factory=utcnow)


UNSECTIONED = "general"


def is_visible_to(entry: SponsorEntry, audience: Audience) -> bool:
    """Public: paid and (text or approved logo). Owner: also in-flight entries."""
    if audience == Audience.public:
        return is_publicly_visible(entry)
    if entry.payment_status == PaymentStatus.failed:
        return False
    return entry.logo_approval_status != LogoApprovalStatus.rejected


def render_mode(entry: SponsorEntry, display_type: SponsorDisplayType) -> RenderMode:
    if entry.sponsor_type != SponsorType.logo or not entry.logo_url:
        return RenderMode.text
    if display_type == SponsorDisplayType.text_only:
        return RenderMode.text
    if display_type == SponsorDisplayType.both and entry.display_name:
        return RenderMode.logo_with_name
    return RenderMode.logo


class _Snapshot:
    """Per-plan lookups shared by the strategies."""

    def __init__(self, data: LayoutInput) -> None:
        self.data = data
        self.campaign = data.campaign
        self.positions = sorted(data.positions, key=lambda p: p.ordinal)
        self.prices = {p.position_id: p.price for p in self.positions}
        self.is_open = not (self.campaign.is_closed or self.campaign.schedule.has_ended(data.now))
        self.policy: SizingPolicy = policy_for(
            self.campaign,
            position_prices=self.prices.values(),
            paid_amounts=[e.amount for e in data.entries if e.payment_status == PaymentStatus.paid],
            default_policy=data.default_policy,
        )
        self.visible = [e for e in data.entries if is_visible_to(e, data.audience)]
        self.views = {e.entry_id: self._view(e) for e in self.visible}

    def _view(self, entry: SponsorEntry) -> SponsorView:
        basis = self.prices.get(entry.position_id, entry.amount) if entry.position_id else entry.amount
        metrics = compute_display(self.policy, basis)
        mode = render_mode(entry, self.campaign.sponsor_display_type)
        pending = entry.payment_status == PaymentStatus.pending or (
            entry.is_logo and entry.logo_approval_status != LogoApprovalStatus.approved
        )
        return SponsorView(
            entry_id=entry.entry_id,
            position_id=entry.position_id,
            name=entry.name,
            display_name=entry.display_name,
            message=entry.message,
            amount=entry.amount,
            sponsor_type=entry.sponsor_type,
            render_mode=mode,
            logo_url=entry.logo_url if mode != RenderMode.text else None,
            display_size=metrics.size,
            font_size=metrics.font_size,
            logo_width=metrics.logo_width,
            payment_status=entry.payment_status,
            is_pending=pending,
            created_at=entry.created_at,
        )

    def position_item(self, position: Position) -> PlacementItem:
        view = self.views.get(position.sponsor_entry_id) if position.sponsor_entry_id else None
        return PlacementItem(
            slot=position.position_id,
            position_id=position.position_id,
            section=position.section,
            price=position.price,
            is_taken=position.is_taken,
            selectable=self.is_open and not position.is_taken,
            sponsor=view,
        )

    def by_size(self) -> list[SponsorView]:
        return sorted(
            self.views.values(),
            key=lambda v: (-v.display_size.rank, -v.amount, v.created_at, v.entry_id),
        )

    def by_amount(self) -> list[SponsorView]:
        return sorted(self.views.values(), key=lambda v: (-v.amount, v.created_at, v.entry_id))


def _sponsor_items(views: list[SponsorView]) -> list[PlacementItem]:
    return [
        PlacementItem(slot=str(i), position_id=v.position_id, is_taken=True, sponsor=v)
        for i, v in enumerate(views, start=1)
    ]


def _grid(snap: _Snapshot) -> tuple[list[PlacementItem], list[SectionSummary] | None]:
    if snap.campaign.is_positional:
        return [snap.position_item(p) for p in snap.positions], None
    # no template: slots follow sponsor arrival order
    views = sorted(snap.views.values(), key=lambda v: (v.created_at, v.entry_id))
    return _sponsor_items(views), None


def _size_ordered(snap: _Snapshot) -> tuple[list[PlacementItem], list[SectionSummary] | None]:
    return _sponsor_items(snap.by_size()), None


def _amount_ordered(snap: _Snapshot) -> tuple[list[PlacementItem], list[SectionSummary] | None]:
    return _sponsor_items(snap.by_amount()), None


def _section_based(snap: _Snapshot) -> tuple[list[PlacementItem], list[SectionSummary] | None]:
    grouped: dict[str, list[Position]] = {}
    for position in snap.positions:
        grouped.setdefault(position.section or UNSECTIONED, []).append(position)

    items: list[PlacementItem] = []
    summaries: list[SectionSummary] = []
    for name, members in grouped.items():
        items.extend(snap.position_item(p) for p in members)
        taken = sum(1 for p in members if p.is_taken)
        summaries.append(
            SectionSummary(
                name=name,
                price=members[0].price,
                total=len(members),
                taken=taken,
                remaining=len(members) - taken,
                available_position_ids=[p.position_id for p in members if not p.is_taken] if snap.is_open else [],
            )
        )
    return items, summaries


def _box_for(view: SponsorView) -> Box:
    if view.render_mode == RenderMode.logo_with_name:
        width = max(view.logo_width + 16, 60)
        height = view.logo_width * 0.8 + 12 * 1.2 * 2 + 12
    elif view.render_mode == RenderMode.logo:
        width = view.logo_width + 16
        height = view.logo_width * 0.8 + 16
    else:
        width = max(view.font_size * len(view.name) * 0.6, view.font_size * 3)
        height = view.font_size * 1.5
    return Box(key=view.entry_id, width=round(width, 2), height=round(height, 2))


def _word_cloud(snap: _Snapshot) -> tuple[list[PlacementItem], list[SectionSummary] | None]:
    ordered = snap.by_size()
    placed = pack_spiral(
        [_box_for(v) for v in ordered],
        snap.data.canvas_width,
        max_attempts=snap.data.max_attempts,
    )
    items = _sponsor_items(ordered)
    for item, spot in zip(items, placed):
        item.x, item.y, item.width, item.height = spot.x, spot.y, spot.width, spot.height
    return items, None


Strategy = Callable[[_Snapshot], tuple[list[PlacementItem], list[SectionSummary] | None]]

STRATEGIES: dict[LayoutStyle, Strategy] = {
    LayoutStyle.grid: _grid,
    LayoutStyle.size_ordered: _size_ordered,
    LayoutStyle.amount_ordered: _amount_ordered,
    LayoutStyle.section_based: _section_based,
    LayoutStyle.word_cloud: _word_cloud,
}


def build_plan(data: LayoutInput) -> PlacementPlan:
    """Dispatch on the campaign's layout style and assemble the plan."""
    snap = _Snapshot(data)
    items, sections = STRATEGIES[data.campaign.layout_style](snap)
    total = len(snap.positions)
    claimed = sum(1 for p in snap.positions if p.is_taken)
    return PlacementPlan(
        campaign_id=data.campaign.campaign_id,
        slug=data.campaign.slug,
        layout_style=data.campaign.layout_style,
        sponsor_display_type=data.campaign.sponsor_display_type,
        audience=data.audience,
        items=items,
        sections=sections,
        total_positions=total,
        claimed_positions=claimed,
        remaining_positions=total - claimed,
        version=data.version,
    )
