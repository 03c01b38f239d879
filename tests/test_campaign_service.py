"""Tests for CampaignService: setup, pricing validation and edit locking."""

import pytest

from conftest import OWNER, positional_draft, pwyw_draft
from sponsorslots.domain.campaign import CampaignType
from sponsorslots.domain.errors import (
    CAMPAIGN_CLOSED,
    CAMPAIGN_LOCKED,
    INVALID_PRICING_CONFIG,
    LAYOUT_STYLE_MISMATCH,
    NotFoundError,
    NotOwnerError,
    ValidationError,
)
from sponsorslots.domain.sponsor import SponsorDraft
from sponsorslots.models.requests import CampaignDraft
from sponsorslots.services.campaign_service import slugify


def _draft(**fields) -> CampaignDraft:
    return CampaignDraft.model_validate({"title": "Banner", **fields})


class TestCreate:
    def test_slug_is_unique(self, campaigns):
        first = campaigns.create_campaign(OWNER, positional_draft([10], title="Club Shirt 2026!"))
        second = campaigns.create_campaign(OWNER, positional_draft([10], title="Club Shirt 2026"))
        third = campaigns.create_campaign(OWNER, positional_draft([10], title="club shirt 2026"))
        assert [first.slug, second.slug, third.slug] == [
            "club-shirt-2026",
            "club-shirt-2026-1",
            "club-shirt-2026-2",
        ]
        assert slugify("  ***  ") == "campaign"

    def test_fixed_price_template(self, campaigns, store):
        banner = campaigns.create_campaign(
            OWNER,
            _draft(campaign_type="fixed", pricing={"fixed_price": 40}, template={"total_positions": 7, "columns": 3}),
        )
        positions = store.list_positions(banner.campaign_id)
        assert [p.position_id for p in positions] == [str(i) for i in range(1, 8)]
        assert {p.price for p in positions} == {40}
        assert [(p.row, p.col) for p in positions[:4]] == [(1, 1), (1, 2), (1, 3), (2, 1)]

    def test_vertical_arrangement_fills_columns_first(self, campaigns, store):
        banner = campaigns.create_campaign(
            OWNER,
            _draft(
                campaign_type="fixed",
                pricing={"fixed_price": 5},
                template={"total_positions": 6, "columns": 3, "arrangement": "vertical"},
            ),
        )
        cells = [(p.row, p.col) for p in store.list_positions(banner.campaign_id)]
        assert cells == [(1, 1), (2, 1), (1, 2), (2, 2), (1, 3), (2, 3)]

    @pytest.mark.parametrize(
        "pricing,expected",
        [
            ({"price_multiplier": 10}, [10, 20, 30]),
            ({"base_price": 5, "price_per_position": 2}, [7, 9, 11]),
            ({"sections": [{"name": "front", "price": 80, "slots": 1}, {"name": "back", "price": 20, "slots": 2}]},
             [80, 20, 20]),
        ],
    )
    def test_positional_pricing_modes(self, campaigns, store, pricing, expected):
        shirt = campaigns.create_campaign(
            OWNER, _draft(campaign_type="positional", pricing=pricing, template={"total_positions": 3})
        )
        assert [p.price for p in store.list_positions(shirt.campaign_id)] == expected

    def test_sections_tag_positions(self, campaigns, store):
        shirt = campaigns.create_campaign(
            OWNER,
            _draft(
                campaign_type="positional",
                layout_style="section-based",
                pricing={"sections": [{"name": "front", "price": 80, "slots": 1}, {"name": "back", "price": 20, "slots": 2}]},
            ),
        )
        assert [p.section for p in store.list_positions(shirt.campaign_id)] == ["front", "back", "back"]

    def test_pay_what_you_want_has_no_positions(self, campaigns, store):
        wall = campaigns.create_campaign(OWNER, pwyw_draft())
        assert wall.campaign_type == CampaignType.pay_what_you_want
        assert store.list_positions(wall.campaign_id) == []

    @pytest.mark.parametrize(
        "fields",
        [
            {"campaign_type": "fixed", "pricing": {}, "template": {"total_positions": 3}},
            {"campaign_type": "fixed", "pricing": {"fixed_price": 10}},
            {"campaign_type": "positional", "pricing": {}, "template": {"total_positions": 3}},
            {"campaign_type": "positional", "pricing": {"position_prices": {"1": 10, "3": 5}}},
            {"campaign_type": "positional", "pricing": {"position_prices": {"1": -1}}},
            {"campaign_type": "positional", "pricing": {"position_prices": {"1": 0, "2": 10}}},
            {
                "campaign_type": "positional",
                "pricing": {"base_price": 0, "price_per_position": 0},
                "template": {"total_positions": 3},
            },
            {
                "campaign_type": "positional",
                "pricing": {"sections": [{"name": "free", "price": 0, "slots": 2}]},
            },
            {"campaign_type": "pay-what-you-want", "pricing": {}},
            {
                "campaign_type": "positional",
                "pricing": {"sections": [{"name": "a", "price": 5, "slots": 2}]},
                "template": {"total_positions": 3},
            },
        ],
    )
    def test_invalid_pricing_is_rejected(self, campaigns, fields):
        with pytest.raises(ValidationError) as err:
            campaigns.create_campaign(OWNER, _draft(**fields))
        assert err.value.reason == INVALID_PRICING_CONFIG

    def test_zero_priced_position_is_rejected_up_front(self, campaigns):
        # amounts are strictly positive, so a free position could never be claimed
        with pytest.raises(ValidationError) as err:
            campaigns.create_campaign(OWNER, positional_draft([0, 10]))
        assert err.value.reason == INVALID_PRICING_CONFIG
        assert campaigns.list_for_owner(OWNER) == []

    def test_section_layout_needs_positions(self, campaigns):
        with pytest.raises(ValidationError) as err:
            campaigns.create_campaign(OWNER, pwyw_draft(layout_style="section-based"))
        assert err.value.reason == LAYOUT_STYLE_MISMATCH


class TestUpdate:
    def test_free_fields_editable_after_sales(self, campaigns, ledger):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10, 20]))
        ledger.claim(shirt.campaign_id, "1", SponsorDraft(name="A", amount=10))
        updated = campaigns.update_campaign(
            shirt.campaign_id, OWNER, {"description": "Now with more sponsors", "layout_style": "amount-ordered"}
        )
        assert updated.description == "Now with more sponsors"
        assert campaigns.get_campaign(shirt.campaign_id).layout_style.value == "amount-ordered"

    @pytest.mark.parametrize(
        "updates",
        [
            {"campaign_type": "fixed", "pricing": {"fixed_price": 10}},
            {"pricing": {"position_prices": {"1": 99, "2": 20}}},
            {"currency": "USD"},
            {"template": {"total_positions": 2, "columns": 1}},
        ],
    )
    def test_locked_fields_after_first_entry(self, campaigns, ledger, updates):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10, 20]))
        ledger.claim(shirt.campaign_id, "2", SponsorDraft(name="A", amount=20))
        with pytest.raises(ValidationError) as err:
            campaigns.update_campaign(shirt.campaign_id, OWNER, updates)
        assert err.value.reason == CAMPAIGN_LOCKED

    def test_unchanged_locked_field_is_not_an_edit(self, campaigns, ledger):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10, 20]))
        ledger.claim(shirt.campaign_id, "2", SponsorDraft(name="A", amount=20))
        updated = campaigns.update_campaign(shirt.campaign_id, OWNER, {"currency": "NZD", "title": "Renamed"})
        assert updated.title == "Renamed"

    def test_repricing_before_sales_regenerates_positions(self, campaigns, store):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10, 20]))
        campaigns.update_campaign(shirt.campaign_id, OWNER, {"pricing": {"position_prices": {"1": 5, "2": 6, "3": 7}}})
        assert [p.price for p in store.list_positions(shirt.campaign_id)] == [5, 6, 7]

    def test_slug_and_owner_are_immutable(self, campaigns):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10]))
        updated = campaigns.update_campaign(shirt.campaign_id, OWNER, {"slug": "hijack", "owner_id": "x"})
        assert (updated.slug, updated.owner_id) == (shirt.slug, OWNER)

    def test_closed_campaign_rejects_updates(self, campaigns):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10]))
        closed = campaigns.close_campaign(shirt.campaign_id, OWNER)
        assert closed.is_closed
        with pytest.raises(ValidationError) as err:
            campaigns.update_campaign(shirt.campaign_id, OWNER, {"description": "late"})
        assert err.value.reason == CAMPAIGN_CLOSED

    def test_only_owner_may_edit(self, campaigns):
        shirt = campaigns.create_campaign(OWNER, positional_draft([10]))
        with pytest.raises(NotOwnerError):
            campaigns.update_campaign(shirt.campaign_id, "org-2", {"description": "mine now"})
        with pytest.raises(NotOwnerError):
            campaigns.close_campaign(shirt.campaign_id, "org-2")


def test_lookups(campaigns, clock):
    first = campaigns.create_campaign(OWNER, positional_draft([10], title="First"))
    clock.advance(minutes=1)
    second = campaigns.create_campaign(OWNER, pwyw_draft(title="Second"))
    campaigns.create_campaign("org-2", pwyw_draft(title="Elsewhere"))
    assert campaigns.get_by_slug("first").campaign_id == first.campaign_id
    assert [c.campaign_id for c in campaigns.list_for_owner(OWNER)] == [second.campaign_id, first.campaign_id]
    with pytest.raises(NotFoundError):
        campaigns.get_by_slug("nope")
