"""Tests for the operator CLI."""

import sys

import pytest

from conftest import positional_draft
from sponsorslots.config.runtime import get_settings
from sponsorslots.domain.sponsor import SponsorDraft
from sponsorslots.interface import cli
from sponsorslots.wiring import build_campaign_service, build_ledger


@pytest.fixture
def ledger_db(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_DB_PATH", str(tmp_path / "ledger.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["sponsorslots", *argv])
    cli.main()


def _pending_claim() -> str:
    shirt = build_campaign_service().create_campaign("org-1", positional_draft([10, 20]))
    build_ledger().claim(shirt.campaign_id, "1", SponsorDraft(name="Slow checkout", amount=10))
    return shirt.campaign_id


def test_sweep_defaults_to_hold_window(ledger_db, monkeypatch, capsys):
    campaign_id = _pending_claim()
    _run(monkeypatch, "sweep", "--campaign-id", campaign_id)
    assert f"{campaign_id}: released 0 pending claims" in capsys.readouterr().out


def test_sweep_with_zero_minutes_releases_every_pending_claim(ledger_db, monkeypatch, capsys):
    campaign_id = _pending_claim()
    _run(monkeypatch, "sweep", "--campaign-id", campaign_id, "--older-than-minutes", "0")
    assert f"{campaign_id}: released 1 pending claims" in capsys.readouterr().out
    assert build_ledger().availability(campaign_id).remaining == 2


def test_unknown_campaign_exits_with_error(ledger_db, monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "sweep", "--campaign-id", "missing")
    assert exc.value.code == 1
    assert "not_found" in capsys.readouterr().err
