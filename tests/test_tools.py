"""Tests that each MCP surface exposes only its allowed tool set, plus a tool round trip.

No owner tools (campaign setup, moderation, payment settlement) may be
registered on the public surface.
"""

import json

import pytest

from sponsorslots.config.runtime import get_settings
from sponsorslots.interface.mcp.observability import metrics_snapshot, reset_metrics
from sponsorslots.interface.mcp.server import create_server
from sponsorslots.interface.mcp.tools import OWNER_ALLOWED_TOOLS, PUBLIC_ALLOWED_TOOLS


def _get_tool_names(server) -> set[str]:
    """Extract registered tool names from a FastMCP server."""
    # FastMCP stores tools in _tool_manager._tools dict
    return set(server._tool_manager._tools.keys())


def _call(server, name, /, **kwargs) -> dict:
    return json.loads(server._tool_manager._tools[name].fn(**kwargs))


@pytest.fixture
def servers(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_DB_PATH", str(tmp_path / "ledger.db"))
    get_settings.cache_clear()
    reset_metrics()
    yield create_server("public"), create_server("owner")
    get_settings.cache_clear()


def test_public_exposes_only_public_tools():
    assert _get_tool_names(create_server("public")) == PUBLIC_ALLOWED_TOOLS


def test_owner_exposes_only_owner_tools():
    assert _get_tool_names(create_server("owner")) == OWNER_ALLOWED_TOOLS


def test_public_has_no_owner_tools():
    overlap = _get_tool_names(create_server("public")) & OWNER_ALLOWED_TOOLS
    assert not overlap, f"Owner tools found on public surface: {overlap}"


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        create_server("admin")


def test_checkout_to_public_plan(servers):
    public, owner = servers
    created = _call(
        owner,
        "campaign_create",
        owner_id="org-1",
        campaign_json=json.dumps(
            {
                "title": "Team Shirt",
                "campaign_type": "positional",
                "pricing": {"position_prices": {"1": 50, "2": 50, "3": 100, "4": 100}},
            }
        ),
    )
    slug = created["slug"]

    submitted = _call(
        public, "sponsorship_submit", campaign_slug=slug, name="Dana", amount=100, position_id="3",
        email="dana@example.com",
    )
    assert submitted["payment_status"] == "pending"
    assert "email" not in submitted

    conflict = _call(public, "sponsorship_submit", campaign_slug=slug, name="Eli", amount=100, position_id="3")
    assert conflict == {
        "error": "conflict",
        "reason": "PositionAlreadyTaken",
        "message": "Position 3 is already taken",
        "details": {"position_id": "3"},
    }

    before = _call(public, "layout_plan", campaign_slug=slug)
    assert before["items"][2]["is_taken"] is True
    assert before["items"][2]["sponsor"] is None

    _call(owner, "payment_confirm", entry_id=submitted["entry_id"], outcome="succeeded")
    replay = _call(owner, "payment_confirm", entry_id=submitted["entry_id"], outcome="succeeded")
    assert replay["payment_status"] == "paid"

    plan = _call(public, "layout_plan", campaign_slug=slug)
    sponsor = plan["items"][2]["sponsor"]
    assert sponsor["name"] == "Dana"
    assert "email" not in sponsor and "payment_status" not in sponsor
    assert plan["claimed_positions"] == 1 and plan["remaining_positions"] == 3

    available = _call(public, "positions_available", campaign_slug=slug)
    assert [p["position_id"] for p in available["positions"]] == ["1", "2", "4"]

    counters = metrics_snapshot()
    assert counters["tool_calls"]["sponsorship_submit"] == 2
    assert counters["errors"]["sponsorship_submit"] == 1


def test_owner_tools_return_typed_errors(servers):
    _, owner = servers
    missing = _call(owner, "payment_confirm", entry_id="entry-nope", outcome="succeeded")
    assert missing["error"] == "not_found"
    bad = _call(owner, "payment_confirm", entry_id="entry-nope", outcome="maybe")
    assert bad["reason"] == "InvalidInput"
    bad_json = _call(owner, "campaign_create", owner_id="org-1", campaign_json="[1, 2")
    assert bad_json["reason"] == "InvalidJson"
    invalid = _call(owner, "campaign_create", owner_id="org-1", campaign_json=json.dumps({"title": "x"}))
    assert invalid["reason"] == "InvalidInput"
