"""Tool registry for MCP servers.

Strict input models via Pydantic; typed error results; response
allowlists (field-level) so the public surface never leaks contact data.
"""

from __future__ import annotations

import json
import time
import uuid
from datetime import timedelta
from typing import Any, Callable

import pydantic

from .observability import log_tool_invocation, metrics_snapshot

from sponsorslots.domain.errors import SponsorSlotsError, ValidationError
from sponsorslots.domain.layout import Audience, PlacementPlan
from sponsorslots.domain.sponsor import PaymentOutcome, SponsorDraft, SponsorEntry
from sponsorslots.models.requests import CampaignDraft

# ---------------------------------------------------------------------------
# Response allowlists (field-level)
# ---------------------------------------------------------------------------
ALLOWED_PUBLIC_SPONSOR_KEYS = frozenset({
    "entry_id",
    "position_id",
    "name",
    "display_name",
    "message",
    "amount",
    "sponsor_type",
    "render_mode",
    "logo_url",
    "display_size",
    "font_size",
    "logo_width",
})
ALLOWED_PUBLIC_ITEM_KEYS = frozenset({
    "slot",
    "position_id",
    "section",
    "price",
    "is_taken",
    "selectable",
    "sponsor",
    "x",
    "y",
    "width",
    "height",
})
ALLOWED_PUBLIC_PLAN_KEYS = frozenset({
    "slug",
    "layout_style",
    "sponsor_display_type",
    "items",
    "sections",
    "total_positions",
    "claimed_positions",
    "remaining_positions",
    "version",
})
ALLOWED_SUBMIT_RESPONSE_KEYS = frozenset({
    "entry_id",
    "campaign_id",
    "position_id",
    "amount",
    "sponsor_type",
    "payment_status",
    "logo_approval_status",
    "created_at",
})


def _shape_public_plan(plan: PlacementPlan) -> dict:
    d = plan.model_dump(mode="json")
    out: dict = {k: d[k] for k in ALLOWED_PUBLIC_PLAN_KEYS if k in d}
    items = []
    for item in out.get("items", []):
        shaped = {k: item[k] for k in ALLOWED_PUBLIC_ITEM_KEYS if k in item}
        if shaped.get("sponsor"):
            shaped["sponsor"] = {k: v for k, v in shaped["sponsor"].items() if k in ALLOWED_PUBLIC_SPONSOR_KEYS}
        items.append(shaped)
    out["items"] = items
    return out


def _shape_submit(entry: SponsorEntry) -> dict:
    d = entry.model_dump(mode="json")
    return {k: d[k] for k in ALLOWED_SUBMIT_RESPONSE_KEYS if k in d}


def _entry_payload(entry: SponsorEntry) -> dict:
    return entry.model_dump(mode="json")


def _invoke(tool: str, call: Callable[[], Any]) -> str:
    """Run one tool call, turning domain and input errors into typed JSON results."""
    t0 = time.monotonic()
    trace_id = uuid.uuid4().hex
    try:
        result = call()
    except SponsorSlotsError as exc:
        log_tool_invocation(tool, trace_id, (time.monotonic() - t0) * 1000, error=exc.reason)
        return json.dumps(exc.to_dict())
    except pydantic.ValidationError as exc:
        log_tool_invocation(tool, trace_id, (time.monotonic() - t0) * 1000, error="InvalidInput")
        return json.dumps({"error": "validation", "reason": "InvalidInput", "message": str(exc)})
    except json.JSONDecodeError as exc:
        log_tool_invocation(tool, trace_id, (time.monotonic() - t0) * 1000, error="InvalidJson")
        return json.dumps({"error": "validation", "reason": "InvalidJson", "message": str(exc)})
    log_tool_invocation(tool, trace_id, (time.monotonic() - t0) * 1000)
    return json.dumps(result, indent=2)


def _get_campaign_service():
    from ...wiring import build_campaign_service
    return build_campaign_service()


def _get_ledger():
    from ...wiring import build_ledger
    return build_ledger()


def _get_moderation_service():
    from ...wiring import build_moderation_service
    return build_moderation_service()


def _get_layout_service():
    from ...wiring import build_layout_service
    return build_layout_service()


def _load_object(raw: str, label: str) -> dict:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValidationError("InvalidJson", f"{label} must be a JSON object")
    return data


# ---------------------------------------------------------------------------
# Public tools
# ---------------------------------------------------------------------------
PUBLIC_ALLOWED_TOOLS = frozenset({
    "layout_plan",
    "positions_available",
    "sponsorship_submit",
})


def register_public_tools(mcp):
    """Register visitor-facing tools: read plans and submit sponsorships."""

    @mcp.tool()
    def layout_plan(campaign_slug: str) -> str:
        """Return the public placement plan for a campaign.

        Only paid sponsors appear, and logo sponsors only once their logo is approved.

        Args:
            campaign_slug: URL-friendly campaign name

        Returns:
            JSON plan with ordered items (slot, position, sponsor or empty), sections and position counts
        """
        return _invoke(
            "layout_plan",
            lambda: _shape_public_plan(_get_layout_service().get_layout_plan(campaign_slug, Audience.public)),
        )

    @mcp.tool()
    def positions_available(campaign_slug: str) -> str:
        """List unclaimed positions for a selection UI.

        Args:
            campaign_slug: URL-friendly campaign name

        Returns:
            JSON with total/claimed/remaining counts and the free positions (empty once the campaign closes)
        """
        return _invoke(
            "positions_available",
            lambda: _get_layout_service().get_available_positions(campaign_slug).model_dump(mode="json"),
        )

    @mcp.tool()
    def sponsorship_submit(
        campaign_slug: str,
        name: str,
        amount: float,
        position_id: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
        message: str | None = None,
        sponsor_type: str = "text",
        logo_url: str | None = None,
        payment_method: str = "card",
    ) -> str:
        """Submit a sponsorship. Fixed/positional campaigns claim ``position_id``; pay-what-you-want accepts any amount above the minimum.

        Args:
            campaign_slug: URL-friendly campaign name
            name: Sponsor name
            amount: Contribution amount; must equal the position price for positional campaigns
            position_id: Position to claim (fixed and positional campaigns only)
            display_name: Name shown under a logo
            email: Contact address (never shown publicly)
            message: Optional message
            sponsor_type: 'text' or 'logo'
            logo_url: Stored logo URL (required for logo sponsorships)
            payment_method: 'card' or 'cash'

        Returns:
            JSON with the pending entry (entry_id, position_id, payment_status) or a typed error such as PositionAlreadyTaken
        """

        def call() -> dict:
            draft = SponsorDraft(
                name=name,
                display_name=display_name,
                email=email,
                message=message,
                amount=amount,
                sponsor_type=sponsor_type,
                logo_url=logo_url,
                payment_method=payment_method,
            )
            campaign = _get_campaign_service().get_by_slug(campaign_slug)
            entry = _get_ledger().submit(campaign.campaign_id, draft, position_id)
            return _shape_submit(entry)

        return _invoke("sponsorship_submit", call)


# ---------------------------------------------------------------------------
# Owner tools
# ---------------------------------------------------------------------------
OWNER_ALLOWED_TOOLS = frozenset({
    "campaign_create",
    "campaign_update",
    "campaign_close",
    "campaigns_list",
    "logos_pending",
    "sponsors_all",
    "logo_approve",
    "logo_reject",
    "logo_resubmit",
    "payment_confirm",
    "claims_expire",
    "layout_preview",
    "tools_metrics",
})


def register_owner_tools(mcp):
    """Register organizer tools: campaign setup, moderation, settlement and previews."""

    @mcp.tool()
    def campaign_create(owner_id: str, campaign_json: str) -> str:
        """Create a campaign and its position template.

        Args:
            owner_id: Organizer identifier
            campaign_json: JSON object with title, campaign_type, pricing, layout_style,
                sponsor_display_type, currency, template and schedule

        Returns:
            JSON campaign with its assigned campaign_id and slug
        """

        def call() -> dict:
            draft = CampaignDraft.model_validate(_load_object(campaign_json, "campaign_json"))
            return _get_campaign_service().create_campaign(owner_id, draft).model_dump(mode="json")

        return _invoke("campaign_create", call)

    @mcp.tool()
    def campaign_update(campaign_id: str, owner_id: str, updates_json: str) -> str:
        """Edit a campaign. Type, pricing, template and currency are locked once any sponsor exists.

        Args:
            campaign_id: Campaign to edit
            owner_id: Organizer identifier
            updates_json: JSON object of fields to change

        Returns:
            JSON of the updated campaign or a typed error (CampaignLocked, CampaignClosed)
        """

        def call() -> dict:
            updates = _load_object(updates_json, "updates_json")
            return _get_campaign_service().update_campaign(campaign_id, owner_id, updates).model_dump(mode="json")

        return _invoke("campaign_update", call)

    @mcp.tool()
    def campaign_close(campaign_id: str, owner_id: str) -> str:
        """Stop selling: no further claims or contributions are accepted."""
        return _invoke(
            "campaign_close",
            lambda: _get_campaign_service().close_campaign(campaign_id, owner_id).model_dump(mode="json"),
        )

    @mcp.tool()
    def campaigns_list(owner_id: str) -> str:
        """List the organizer's campaigns, newest first."""
        return _invoke(
            "campaigns_list",
            lambda: {
                "campaigns": [
                    c.model_dump(mode="json") for c in _get_campaign_service().list_for_owner(owner_id)
                ]
            },
        )

    @mcp.tool()
    def logos_pending(campaign_id: str, owner_id: str) -> str:
        """Moderation queue: logo entries awaiting review, oldest first."""
        return _invoke(
            "logos_pending",
            lambda: {
                "entries": [
                    _entry_payload(e) for e in _get_moderation_service().pending_logos(campaign_id, owner_id)
                ]
            },
        )

    @mcp.tool()
    def sponsors_all(campaign_id: str, owner_id: str) -> str:
        """Every sponsor entry of the campaign, including pending and failed ones."""
        return _invoke(
            "sponsors_all",
            lambda: {
                "entries": [
                    _entry_payload(e) for e in _get_moderation_service().all_sponsors(campaign_id, owner_id)
                ]
            },
        )

    @mcp.tool()
    def logo_approve(entry_id: str, owner_id: str) -> str:
        """Approve a pending logo so it appears publicly once paid."""
        return _invoke(
            "logo_approve",
            lambda: _entry_payload(_get_moderation_service().approve(entry_id, owner_id)),
        )

    @mcp.tool()
    def logo_reject(entry_id: str, owner_id: str, reason: str) -> str:
        """Reject a pending logo.

        Args:
            entry_id: Logo sponsor entry
            owner_id: Organizer identifier
            reason: Non-empty reason surfaced to the sponsor
        """
        return _invoke(
            "logo_reject",
            lambda: _entry_payload(_get_moderation_service().reject(entry_id, owner_id, reason)),
        )

    @mcp.tool()
    def logo_resubmit(entry_id: str, logo_url: str) -> str:
        """Store a newly uploaded logo and send the entry back to review."""
        return _invoke(
            "logo_resubmit",
            lambda: _entry_payload(_get_moderation_service().resubmit_logo(entry_id, logo_url)),
        )

    @mcp.tool()
    def payment_confirm(entry_id: str, outcome: str) -> str:
        """Apply a payment-processor outcome. Replays of an already-applied outcome are no-ops.

        Args:
            entry_id: Sponsor entry the payment belongs to
            outcome: 'succeeded' or 'failed'
        """

        def call() -> dict:
            try:
                parsed = PaymentOutcome(outcome)
            except ValueError as exc:
                raise ValidationError("InvalidInput", str(exc)) from exc
            return _entry_payload(_get_ledger().confirm_payment(entry_id, parsed))

        return _invoke("payment_confirm", call)

    @mcp.tool()
    def claims_expire(campaign_id: str, older_than_minutes: int | None = None) -> str:
        """Release pending claims older than the hold window (or ``older_than_minutes``)."""

        def call() -> dict:
            older_than = timedelta(minutes=older_than_minutes) if older_than_minutes is not None else None
            released = _get_ledger().expire_pending_claims(campaign_id, older_than)
            return {"campaign_id": campaign_id, "released": released}

        return _invoke("claims_expire", call)

    @mcp.tool()
    def layout_preview(campaign_slug: str, owner_id: str) -> str:
        """Owner preview of the placement plan, including pending (non-final) sponsors."""
        return _invoke(
            "layout_preview",
            lambda: _get_layout_service()
            .get_layout_plan(campaign_slug, Audience.owner, owner_id=owner_id)
            .model_dump(mode="json"),
        )

    @mcp.tool()
    def tools_metrics() -> str:
        """Per-tool call and error counters since the server started."""
        return _invoke("tools_metrics", metrics_snapshot)
