"""Shared fixtures: real SQLite ledger in tmp_path, fake clock, predictable ids."""

from datetime import datetime, timedelta, timezone

import pytest

from sponsorslots.adapters.sqlite_store import SqliteLedgerStore
from sponsorslots.models.requests import CampaignDraft
from sponsorslots.ports.id_gen import SequentialIdProvider
from sponsorslots.services.campaign_service import CampaignService
from sponsorslots.services.layout_service import LayoutService
from sponsorslots.services.ledger_service import PositionLedger
from sponsorslots.services.moderation_service import ModerationService

OWNER = "org-1"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIdProvider()


@pytest.fixture
def store(tmp_path):
    return SqliteLedgerStore(str(tmp_path / "ledger.db"))


@pytest.fixture
def campaigns(store, clock, ids):
    return CampaignService(store, clock=clock, id_provider=ids)


@pytest.fixture
def ledger(store, clock, ids):
    return PositionLedger(store, clock=clock, id_provider=ids, hold_window=timedelta(minutes=30))


@pytest.fixture
def moderation(store, clock):
    return ModerationService(store, clock=clock)


@pytest.fixture
def layouts(store, clock):
    return LayoutService(store, clock=clock)


def positional_draft(prices, **overrides) -> CampaignDraft:
    """Positional campaign priced position by position ('1'..'N')."""
    fields = {
        "title": "Club Shirt",
        "campaign_type": "positional",
        "pricing": {"position_prices": {str(i): p for i, p in enumerate(prices, start=1)}},
        "layout_style": "grid",
        "sponsor_display_type": "both",
    }
    fields.update(overrides)
    return CampaignDraft.model_validate(fields)


def pwyw_draft(**overrides) -> CampaignDraft:
    fields = {
        "title": "Library Wall",
        "campaign_type": "pay-what-you-want",
        "pricing": {"minimum_amount": 5},
        "layout_style": "amount-ordered",
        "sponsor_display_type": "both",
    }
    fields.update(overrides)
    return CampaignDraft.model_validate(fields)
