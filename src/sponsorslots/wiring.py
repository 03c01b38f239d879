"""Composition root: the single place where services meet their adapters.

Call one of the ``build_*`` functions to get a fully-constructed service
backed by the configured SQLite ledger. No ad-hoc construction elsewhere.
"""

from __future__ import annotations

from datetime import timedelta

from .adapters.sqlite_store import SqliteLedgerStore
from .config.runtime import RuntimeSettings, get_settings
from .services.campaign_service import CampaignService
from .services.layout_service import LayoutService
from .services.ledger_service import PositionLedger
from .services.moderation_service import ModerationService

_LAYOUT_SERVICES: dict[str, LayoutService] = {}


def build_store(settings: RuntimeSettings | None = None) -> SqliteLedgerStore:
    settings = settings or get_settings()
    return SqliteLedgerStore(settings.ledger_db_path)


def build_campaign_service(settings: RuntimeSettings | None = None) -> CampaignService:
    """Construct a CampaignService with the real store."""
    return CampaignService(build_store(settings))


def build_ledger(settings: RuntimeSettings | None = None) -> PositionLedger:
    """Construct a PositionLedger with the configured hold window and sizing policy."""
    settings = settings or get_settings()
    return PositionLedger(
        build_store(settings),
        hold_window=timedelta(minutes=settings.claim_hold_minutes),
        default_policy=settings.pwyw_sizing_policy,
    )


def build_moderation_service(settings: RuntimeSettings | None = None) -> ModerationService:
    return ModerationService(build_store(settings))


def build_layout_service(settings: RuntimeSettings | None = None) -> LayoutService:
    """Return the LayoutService for the configured ledger, reusing its plan cache."""
    settings = settings or get_settings()
    service = _LAYOUT_SERVICES.get(settings.ledger_db_path)
    if service is None:
        service = LayoutService(
            build_store(settings),
            default_policy=settings.pwyw_sizing_policy,
            canvas_width=float(settings.wordcloud_canvas_width),
            max_attempts=settings.wordcloud_max_attempts,
            cache_size=settings.plan_cache_size,
        )
        _LAYOUT_SERVICES[settings.ledger_db_path] = service
    return service
