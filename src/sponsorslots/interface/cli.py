"""CLI commands for operating the sponsorship ledger."""

import argparse
import json
import logging
import sys
from collections import Counter
from datetime import timedelta
from pathlib import Path

import pydantic

from ..config.runtime import get_settings
from ..domain.errors import SponsorSlotsError
from ..domain.layout import Audience
from ..models.requests import CampaignDraft
from ..wiring import build_campaign_service, build_layout_service, build_ledger, build_store

# Default path to demo campaigns JSON (project root / data / demo_campaigns.json)
_DEFAULT_CAMPAIGNS_PATH = Path(__file__).resolve().parent.parent.parent.parent / "data" / "demo_campaigns.json"


def load_campaigns_from_file(path: Path) -> list[tuple[str, CampaignDraft]]:
    """Load (owner_id, draft) pairs from a JSON file. Exits on missing file or invalid JSON/schema."""
    if not path.exists():
        print(f"Error: campaigns file not found: {path}", file=sys.stderr)
        print("Create data/demo_campaigns.json or pass --file <path>.", file=sys.stderr)
        sys.exit(1)
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        print("Error: JSON file must contain a list of campaign objects.", file=sys.stderr)
        sys.exit(1)
    items: list[tuple[str, CampaignDraft]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("owner_id"):
            print(f"Error: campaign at index {i} needs an owner_id", file=sys.stderr)
            sys.exit(1)
        body = {k: v for k, v in item.items() if k != "owner_id"}
        try:
            items.append((item["owner_id"], CampaignDraft.model_validate(body)))
        except pydantic.ValidationError as e:
            print(f"Error: invalid campaign at index {i}: {e}", file=sys.stderr)
            sys.exit(1)
    return items


def seed_campaigns(file_path: Path | None = None) -> None:
    """Create demo campaigns from a JSON file via CampaignService."""
    path = file_path if file_path is not None else _DEFAULT_CAMPAIGNS_PATH
    items = load_campaigns_from_file(path)
    print(f"Creating {len(items)} campaigns from {path}...")
    svc = build_campaign_service()
    for owner_id, draft in items:
        campaign = svc.create_campaign(owner_id, draft)
        print(f"  {campaign.slug} ({campaign.campaign_type.value}, {campaign.position_count()} positions)")
    print(f"Successfully created {len(items)} campaigns.")


def campaign_metrics(campaign_id: str) -> dict:
    store = build_store()
    availability = build_ledger().availability(campaign_id)
    entries = store.list_entries(campaign_id)
    by_status = Counter(e.payment_status.value for e in entries)
    by_logo = Counter(e.logo_approval_status.value for e in entries if e.logo_approval_status)
    return {
        "campaign_id": campaign_id,
        "version": store.campaign_version(campaign_id),
        "total_positions": availability.total,
        "claimed_positions": availability.claimed,
        "remaining_positions": availability.remaining,
        "payment_status": dict(by_status),
        "logo_approval_status": dict(by_logo),
        "paid_total": round(sum(e.amount for e in entries if e.payment_status.value == "paid"), 2),
    }


def main():
    parser = argparse.ArgumentParser(description="Manage sponsorship campaigns")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create the ledger database")

    seed_parser = subparsers.add_parser("seed", help="Create demo campaigns from a JSON file")
    seed_parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help=f"Path to JSON file with campaigns (default: {_DEFAULT_CAMPAIGNS_PATH})",
    )

    sweep_parser = subparsers.add_parser("sweep", help="Release pending claims past the hold window")
    sweep_parser.add_argument("--campaign-id", action="append", required=True, help="Campaign to sweep (repeatable)")
    sweep_parser.add_argument(
        "--older-than-minutes", type=int, default=None, help="Override the configured hold window"
    )

    plan_parser = subparsers.add_parser("plan", help="Print a campaign's placement plan")
    plan_parser.add_argument("--slug", required=True, help="Campaign slug")
    plan_parser.add_argument("--owner-id", default=None, help="Render the owner preview for this organizer")

    positions_parser = subparsers.add_parser("positions", help="List available positions")
    positions_parser.add_argument("--slug", required=True, help="Campaign slug")

    metrics_parser = subparsers.add_parser("metrics", help="Show occupancy and payment counts")
    metrics_parser.add_argument("--campaign-id", required=True, help="Campaign ID")

    args = parser.parse_args()
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    try:
        if args.command == "init":
            build_store(settings)
            print(f"Ledger ready: {settings.ledger_db_path}")
        elif args.command == "seed":
            seed_campaigns(args.file)
        elif args.command == "sweep":
            ledger = build_ledger(settings)
            older_than = (
                timedelta(minutes=args.older_than_minutes) if args.older_than_minutes is not None else None
            )
            for campaign_id in args.campaign_id:
                released = ledger.expire_pending_claims(campaign_id, older_than)
                print(f"{campaign_id}: released {released} pending claims")
        elif args.command == "plan":
            audience = Audience.owner if args.owner_id else Audience.public
            plan = build_layout_service(settings).get_layout_plan(args.slug, audience, owner_id=args.owner_id)
            print(plan.model_dump_json(indent=2))
        elif args.command == "positions":
            available = build_layout_service(settings).get_available_positions(args.slug)
            print(available.model_dump_json(indent=2))
        elif args.command == "metrics":
            print(json.dumps(campaign_metrics(args.campaign_id), indent=2))
        else:
            parser.print_help()
    except SponsorSlotsError as e:
        print(f"Error: {json.dumps(e.to_dict())}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
