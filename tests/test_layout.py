"""Tests for the layout rendering dispatcher and the word-cloud packer."""

import time
from datetime import datetime, timedelta, timezone

import pytest

from sponsorslots.domain.campaign import (
    Campaign,
    DisplaySize,
    LayoutStyle,
    Position,
    SponsorDisplayType,
)
from sponsorslots.domain.layout import (
    STRATEGIES,
    Audience,
    LayoutInput,
    RenderMode,
    build_plan,
    is_visible_to,
    render_mode,
)
from sponsorslots.domain.packing import Box, pack_spiral
from sponsorslots.domain.sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _campaign(style=LayoutStyle.grid, campaign_type="positional", display=SponsorDisplayType.both) -> Campaign:
    return Campaign(
        campaign_id="campaign-1",
        slug="shirt",
        owner_id="org-1",
        title="Shirt",
        campaign_type=campaign_type,
        layout_style=style,
        sponsor_display_type=display,
        created_at=T0,
    )


def _entry(entry_id, amount, *, position_id=None, minutes=0, **overrides) -> SponsorEntry:
    fields = {
        "entry_id": entry_id,
        "campaign_id": "campaign-1",
        "position_id": position_id,
        "name": f"Sponsor {entry_id}",
        "amount": amount,
        "payment_status": PaymentStatus.paid,
        "created_at": T0 + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return SponsorEntry(**fields)


def _positions(prices, sections=None, taken=None) -> list[Position]:
    taken = taken or {}
    out = []
    for i, price in enumerate(prices, start=1):
        pid = str(i)
        out.append(
            Position(
                position_id=pid,
                ordinal=i,
                row=1,
                col=i,
                price=price,
                section=sections[i - 1] if sections else None,
                is_taken=pid in taken,
                sponsor_entry_id=taken.get(pid),
            )
        )
    return out


def _plan(campaign, positions, entries, audience=Audience.public):
    return build_plan(
        LayoutInput(campaign=campaign, positions=positions, entries=entries, audience=audience, now=T0)
    )


def test_every_layout_style_has_a_strategy():
    assert set(STRATEGIES) == set(LayoutStyle)


@pytest.mark.parametrize("style", list(LayoutStyle))
def test_every_style_builds_a_plan(style):
    entries = [_entry("e1", 50, position_id="1"), _entry("e2", 100, position_id="3", minutes=1)]
    positions = _positions([50, 50, 100, 100], sections=["a", "a", "b", "b"], taken={"1": "e1", "3": "e2"})
    plan = _plan(_campaign(style), positions, entries)
    assert plan.layout_style == style
    assert plan.total_positions == 4
    assert plan.claimed_positions + plan.remaining_positions == plan.total_positions
    shown = [item.sponsor.entry_id for item in plan.items if item.sponsor]
    assert sorted(shown) == ["e1", "e2"]


class TestGrid:
    def test_template_order_with_empty_markers(self):
        entries = [_entry("e-big", 100, position_id="3"), _entry("e-small", 50, position_id="1", minutes=5)]
        positions = _positions([50, 50, 100, 100], taken={"1": "e-small", "3": "e-big"})
        plan = _plan(_campaign(LayoutStyle.grid), positions, entries)
        assert [item.position_id for item in plan.items] == ["1", "2", "3", "4"]
        assert [item.sponsor.entry_id if item.sponsor else None for item in plan.items] == [
            "e-small",
            None,
            "e-big",
            None,
        ]
        assert [item.selectable for item in plan.items] == [False, True, False, True]

    def test_closed_campaign_offers_nothing_to_select(self):
        campaign = _campaign(LayoutStyle.grid).model_copy(update={"is_closed": True})
        plan = _plan(campaign, _positions([10, 10]), [])
        assert not any(item.selectable for item in plan.items)

    def test_pay_what_you_want_grid_follows_arrival_order(self):
        entries = [_entry("late", 500, minutes=9), _entry("early", 5, minutes=1)]
        plan = _plan(_campaign(LayoutStyle.grid, "pay-what-you-want"), [], entries)
        assert [item.sponsor.entry_id for item in plan.items] == ["early", "late"]
        assert [item.slot for item in plan.items] == ["1", "2"]


class TestOrderedStrategies:
    def _pwyw_entries(self):
        return [
            _entry("a", 25, minutes=1),
            _entry("b", 100, minutes=2),
            _entry("c", 25, minutes=0),
            _entry("d", 10, minutes=3),
        ]

    def test_amount_ordered_ties_break_by_creation_time(self):
        plan = _plan(_campaign(LayoutStyle.amount_ordered, "pay-what-you-want"), [], self._pwyw_entries())
        assert [item.sponsor.entry_id for item in plan.items] == ["b", "c", "a", "d"]

    def test_size_ordered_groups_by_size_then_amount(self):
        plan = _plan(_campaign(LayoutStyle.size_ordered, "pay-what-you-want"), [], self._pwyw_entries())
        views = [item.sponsor for item in plan.items]
        ranks = [v.display_size.rank for v in views]
        assert ranks == sorted(ranks, reverse=True)
        assert views[0].entry_id == "b"
        assert views[-1].entry_id == "d"
        assert [v.entry_id for v in views if v.amount == 25] == ["c", "a"]

    def test_fixed_price_sponsors_share_size(self):
        entries = [_entry("x", 40, position_id="1"), _entry("y", 40, position_id="2", minutes=1)]
        positions = _positions([40, 40], taken={"1": "x", "2": "y"})
        plan = _plan(_campaign(LayoutStyle.size_ordered, "fixed"), positions, entries)
        assert {item.sponsor.display_size for item in plan.items} == {DisplaySize.medium}
        assert [item.sponsor.entry_id for item in plan.items] == ["x", "y"]


class TestSectionBased:
    def test_sections_report_counts_and_free_targets(self):
        entries = [_entry("e1", 100, position_id="2")]
        positions = _positions([100, 100, 50, 50, 50], sections=["top", "top", "back", "back", "back"], taken={"2": "e1"})
        plan = _plan(_campaign(LayoutStyle.section_based), positions, entries)
        summary = {s.name: s for s in plan.sections}
        assert list(summary) == ["top", "back"]
        assert (summary["top"].price, summary["top"].total, summary["top"].taken, summary["top"].remaining) == (
            100,
            2,
            1,
            1,
        )
        assert summary["top"].available_position_ids == ["1"]
        assert summary["back"].available_position_ids == ["3", "4", "5"]

    def test_unsectioned_positions_are_grouped(self):
        plan = _plan(_campaign(LayoutStyle.section_based), _positions([10, 10]), [])
        assert [s.name for s in plan.sections] == ["general"]


class TestVisibility:
    def _logo(self, status, payment=PaymentStatus.paid):
        return _entry(
            "logo",
            100,
            position_id="1",
            sponsor_type=SponsorType.logo,
            logo_url="https://cdn.example/l.png",
            logo_approval_status=status,
            payment_status=payment,
        )

    def test_pending_logo_never_public(self):
        positions = _positions([100], taken={"1": "logo"})
        plan = _plan(_campaign(LayoutStyle.grid), positions, [self._logo(LogoApprovalStatus.pending)])
        assert plan.items[0].sponsor is None
        assert plan.items[0].is_taken

    def test_approval_alone_makes_logo_appear(self):
        positions = _positions([100], taken={"1": "logo"})
        plan = _plan(_campaign(LayoutStyle.grid), positions, [self._logo(LogoApprovalStatus.approved)])
        assert plan.items[0].sponsor.render_mode == RenderMode.logo

    def test_owner_preview_marks_in_flight_entries(self):
        positions = _positions([100, 100], taken={"1": "logo", "2": "cash"})
        entries = [
            self._logo(LogoApprovalStatus.pending),
            _entry("cash", 100, position_id="2", payment_status=PaymentStatus.pending),
        ]
        plan = _plan(_campaign(LayoutStyle.grid), positions, entries, Audience.owner)
        assert [item.sponsor.is_pending for item in plan.items] == [True, True]

    def test_owner_preview_hides_rejected_and_failed(self):
        rejected = self._logo(LogoApprovalStatus.rejected)
        failed = _entry("f", 10, payment_status=PaymentStatus.failed)
        assert not is_visible_to(rejected, Audience.owner)
        assert not is_visible_to(failed, Audience.owner)
        assert not is_visible_to(failed, Audience.public)

    def test_render_mode_follows_display_type(self):
        logo = self._logo(LogoApprovalStatus.approved)
        named = logo.model_copy(update={"display_name": "Acme Ltd"})
        assert render_mode(logo, SponsorDisplayType.text_only) == RenderMode.text
        assert render_mode(logo, SponsorDisplayType.logo_only) == RenderMode.logo
        assert render_mode(named, SponsorDisplayType.both) == RenderMode.logo_with_name
        assert render_mode(_entry("t", 5), SponsorDisplayType.logo_only) == RenderMode.text


class TestWordCloud:
    def _entries(self):
        return [_entry(f"e{i}", amount, minutes=i) for i, amount in enumerate([5, 500, 25, 100, 25, 10, 60])]

    def test_each_sponsor_placed_once_largest_first(self):
        plan = _plan(_campaign(LayoutStyle.word_cloud, "pay-what-you-want"), [], self._entries())
        ids = [item.sponsor.entry_id for item in plan.items]
        assert sorted(ids) == sorted(e.entry_id for e in self._entries())
        assert ids[0] == "e1"
        assert all(item.x is not None and item.width for item in plan.items)

    def test_layout_is_deterministic(self):
        campaign = _campaign(LayoutStyle.word_cloud, "pay-what-you-want")
        first = _plan(campaign, [], self._entries())
        second = _plan(campaign, [], self._entries())
        assert first.model_dump() == second.model_dump()


def _assert_disjoint(placed, canvas_width=600):
    for i, a in enumerate(placed):
        assert 0 <= a.x and a.x + a.width <= canvas_width
        for b in placed[i + 1 :]:
            separate = (
                a.x + a.width <= b.x
                or b.x + b.width <= a.x
                or a.y + a.height <= b.y
                or b.y + b.height <= a.y
            )
            assert separate, (a, b)


class TestPacking:
    def test_no_overlap_and_in_bounds(self):
        boxes = [Box(key=f"b{i}", width=40 + (i % 4) * 20, height=20 + (i % 3) * 10) for i in range(12)]
        placed = pack_spiral(boxes, 600)
        assert [p.key for p in placed] == [b.key for b in boxes]
        _assert_disjoint(placed)

    def test_hundreds_of_sponsors_pack_quickly(self):
        boxes = [Box(key=f"big{i}", width=120, height=30) for i in range(20)]
        boxes += [Box(key=f"b{i}", width=70, height=21) for i in range(480)]
        started = time.perf_counter()
        placed = pack_spiral(boxes, 600)
        elapsed = time.perf_counter() - started
        assert len(placed) == 500
        assert elapsed < 10.0, f"packing 500 boxes took {elapsed:.2f}s"
        _assert_disjoint(placed)

    def test_row_scan_finds_room_the_spiral_missed(self):
        boxes = [Box(key=str(i), width=100, height=40) for i in range(6)]
        placed = pack_spiral(boxes, 600, max_attempts=1)
        assert [p.key for p in placed] == [b.key for b in boxes]
        _assert_disjoint(placed)

    def test_empty_input(self):
        assert pack_spiral([]) == []

    def test_exhausted_attempts_still_place_every_box(self):
        boxes = [Box(key=str(i), width=300, height=300) for i in range(5)]
        placed = pack_spiral(boxes, 600, max_attempts=1)
        assert [p.key for p in placed] == ["0", "1", "2", "3", "4"]
