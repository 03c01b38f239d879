"""SQLite-backed ledger store for campaigns, positions and sponsor entries.

Mutual exclusion on positions comes from a unique partial index over
active (pending or paid) entries, so it holds across processes sharing the
database file, not only across threads of one process.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from ..domain.campaign import Campaign, DisplaySize, Position
from ..domain.errors import (
    CAMPAIGN_LOCKED,
    POSITION_ALREADY_TAKEN,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..domain.sponsor import LogoApprovalStatus, PaymentStatus, SponsorEntry, SponsorType

_LOGGER = logging.getLogger("sponsorslots.store")

_ACTIVE = ("pending", "paid")

_ENTRY_COLUMNS = (
    "entry_id",
    "campaign_id",
    "position_id",
    "name",
    "display_name",
    "email",
    "message",
    "amount",
    "sponsor_type",
    "logo_url",
    "payment_status",
    "payment_method",
    "failure_reason",
    "logo_approval_status",
    "logo_rejection_reason",
    "display_size",
    "calculated_font_size",
    "calculated_logo_width",
    "created_at",
    "updated_at",
)


def _ts(value: datetime) -> str:
    """Fixed-width UTC timestamp so string comparison orders correctly."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _enum_value(value: object) -> object:
    return getattr(value, "value", value)


class SqliteLedgerStore:
    """Stores campaigns, position templates and sponsor entries."""

    def __init__(self, db_path: str, timeout: float = 30.0) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_parent_dir()
        self._init_schema()

    def _ensure_parent_dir(self) -> None:
        path = Path(self._db_path)
        if path.parent.exists():
            return
        path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN IMMEDIATE ... COMMIT, rolling back on any error."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS campaigns (
                    campaign_id TEXT PRIMARY KEY,
                    slug TEXT NOT NULL UNIQUE,
                    owner_id TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS positions (
                    campaign_id TEXT NOT NULL REFERENCES campaigns (campaign_id),
                    position_id TEXT NOT NULL,
                    ordinal INTEGER NOT NULL,
                    row_no INTEGER NOT NULL,
                    col_no INTEGER NOT NULL,
                    price REAL NOT NULL,
                    section TEXT,
                    PRIMARY KEY (campaign_id, position_id)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sponsor_entries (
                    entry_id TEXT PRIMARY KEY,
                    campaign_id TEXT NOT NULL REFERENCES campaigns (campaign_id),
                    position_id TEXT,
                    name TEXT NOT NULL,
                    display_name TEXT,
                    email TEXT,
                    message TEXT,
                    amount REAL NOT NULL,
                    sponsor_type TEXT NOT NULL,
                    logo_url TEXT,
                    payment_status TEXT NOT NULL,
                    payment_method TEXT NOT NULL,
                    failure_reason TEXT,
                    logo_approval_status TEXT,
                    logo_rejection_reason TEXT,
                    display_size TEXT,
                    calculated_font_size INTEGER,
                    calculated_logo_width INTEGER,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS uq_active_position
                ON sponsor_entries (campaign_id, position_id)
                WHERE position_id IS NOT NULL AND payment_status IN ('pending', 'paid')
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_campaign ON sponsor_entries (campaign_id, created_at)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_campaigns_owner ON campaigns (owner_id)")

    # ------------------------------------------------------------------
    # campaigns
    # ------------------------------------------------------------------

    @staticmethod
    def _bump(conn: sqlite3.Connection, campaign_id: str) -> None:
        conn.execute("UPDATE campaigns SET version = version + 1 WHERE campaign_id = ?", (campaign_id,))

    @staticmethod
    def _insert_positions(conn: sqlite3.Connection, campaign_id: str, positions: list[Position]) -> None:
        conn.executemany(
            """
            INSERT INTO positions (campaign_id, position_id, ordinal, row_no, col_no, price, section)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (campaign_id, p.position_id, p.ordinal, p.row, p.col, p.price, p.section)
                for p in positions
            ],
        )

    def save_campaign(self, campaign: Campaign, positions: list[Position]) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO campaigns (campaign_id, slug, owner_id, payload, version, created_at)
                VALUES (?, ?, ?, ?, 0, ?)
                """,
                (
                    campaign.campaign_id,
                    campaign.slug,
                    campaign.owner_id,
                    campaign.model_dump_json(),
                    _ts(campaign.created_at),
                ),
            )
            self._insert_positions(conn, campaign.campaign_id, positions)

    def update_campaign(self, campaign: Campaign, positions: list[Position] | None = None) -> None:
        with self._transaction() as conn:
            if positions is not None:
                row = conn.execute(
                    "SELECT COUNT(*) AS n FROM sponsor_entries WHERE campaign_id = ?",
                    (campaign.campaign_id,),
                ).fetchone()
                if row["n"]:
                    raise ValidationError(
                        CAMPAIGN_LOCKED, "Cannot replace positions once sponsor entries exist"
                    )
                conn.execute("DELETE FROM positions WHERE campaign_id = ?", (campaign.campaign_id,))
                self._insert_positions(conn, campaign.campaign_id, positions)
            cur = conn.execute(
                "UPDATE campaigns SET payload = ?, version = version + 1 WHERE campaign_id = ?",
                (campaign.model_dump_json(), campaign.campaign_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Campaign", f"Campaign {campaign.campaign_id} not found")

    def get_campaign(self, campaign_id: str) -> Campaign | None:
        with self._reader() as conn:
            row = conn.execute("SELECT payload FROM campaigns WHERE campaign_id = ?", (campaign_id,)).fetchone()
        return Campaign.model_validate_json(row["payload"]) if row else None

    def get_campaign_by_slug(self, slug: str) -> Campaign | None:
        with self._reader() as conn:
            row = conn.execute("SELECT payload FROM campaigns WHERE slug = ?", (slug,)).fetchone()
        return Campaign.model_validate_json(row["payload"]) if row else None

    def slug_exists(self, slug: str) -> bool:
        with self._reader() as conn:
            row = conn.execute("SELECT 1 FROM campaigns WHERE slug = ?", (slug,)).fetchone()
        return row is not None

    def list_campaigns(self, owner_id: str) -> list[Campaign]:
        with self._reader() as conn:
            rows = conn.execute(
                "SELECT payload FROM campaigns WHERE owner_id = ? ORDER BY created_at DESC",
                (owner_id,),
            ).fetchall()
        return [Campaign.model_validate_json(row["payload"]) for row in rows]

    def campaign_version(self, campaign_id: str) -> int:
        with self._reader() as conn:
            row = conn.execute("SELECT version FROM campaigns WHERE campaign_id = ?", (campaign_id,)).fetchone()
        return int(row["version"]) if row else 0

    # ------------------------------------------------------------------
    # positions
    # ------------------------------------------------------------------

    def list_positions(self, campaign_id: str) -> list[Position]:
        with self._reader() as conn:
            rows = conn.execute(
                """
                SELECT p.position_id, p.ordinal, p.row_no, p.col_no, p.price, p.section,
                       e.entry_id AS sponsor_entry_id
                FROM positions p
                LEFT JOIN sponsor_entries e
                  ON e.campaign_id = p.campaign_id
                 AND e.position_id = p.position_id
                 AND e.payment_status IN ('pending', 'paid')
                WHERE p.campaign_id = ?
                ORDER BY p.ordinal
                """,
                (campaign_id,),
            ).fetchall()
        return [
            Position(
                position_id=row["position_id"],
                ordinal=row["ordinal"],
                row=row["row_no"],
                col=row["col_no"],
                price=row["price"],
                section=row["section"],
                is_taken=row["sponsor_entry_id"] is not None,
                sponsor_entry_id=row["sponsor_entry_id"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # sponsor entries
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> SponsorEntry:
        data = {key: row[key] for key in _ENTRY_COLUMNS}
        data["created_at"] = _parse_ts(data["created_at"])
        data["updated_at"] = _parse_ts(data["updated_at"])
        return SponsorEntry.model_validate(data)

    def insert_entry(self, entry: SponsorEntry) -> SponsorEntry:
        values = entry.model_dump()
        values["created_at"] = _ts(entry.created_at)
        values["updated_at"] = _ts(entry.updated_at)
        placeholders = ", ".join("?" for _ in _ENTRY_COLUMNS)
        with self._transaction() as conn:
            if entry.position_id is not None:
                exists = conn.execute(
                    "SELECT 1 FROM positions WHERE campaign_id = ? AND position_id = ?",
                    (entry.campaign_id, entry.position_id),
                ).fetchone()
                if exists is None:
                    raise NotFoundError("Position", f"Position {entry.position_id} not found")
            try:
                conn.execute(
                    f"INSERT INTO sponsor_entries ({', '.join(_ENTRY_COLUMNS)}) VALUES ({placeholders})",
                    tuple(_enum_value(values[key]) for key in _ENTRY_COLUMNS),
                )
            except sqlite3.IntegrityError as exc:
                if "position_id" not in str(exc):
                    raise
                raise ConflictError(
                    POSITION_ALREADY_TAKEN,
                    f"Position {entry.position_id} is already taken",
                    position_id=entry.position_id,
                ) from exc
            self._bump(conn, entry.campaign_id)
        return entry

    def get_entry(self, entry_id: str) -> SponsorEntry | None:
        with self._reader() as conn:
            row = conn.execute("SELECT * FROM sponsor_entries WHERE entry_id = ?", (entry_id,)).fetchone()
        return self._row_to_entry(row) if row else None

    def list_entries(
        self,
        campaign_id: str,
        *,
        payment_statuses: tuple[PaymentStatus, ...] | None = None,
        sponsor_type: SponsorType | None = None,
        logo_status: LogoApprovalStatus | None = None,
    ) -> list[SponsorEntry]:
        clauses = ["campaign_id = ?"]
        params: list[object] = [campaign_id]
        if payment_statuses:
            clauses.append(f"payment_status IN ({', '.join('?' for _ in payment_statuses)})")
            params.extend(s.value for s in payment_statuses)
        if sponsor_type is not None:
            clauses.append("sponsor_type = ?")
            params.append(sponsor_type.value)
        if logo_status is not None:
            clauses.append("logo_approval_status = ?")
            params.append(logo_status.value)
        query = (
            "SELECT * FROM sponsor_entries WHERE "
            + " AND ".join(clauses)
            + " ORDER BY created_at, entry_id"
        )
        with self._reader() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count_entries(self, campaign_id: str) -> int:
        with self._reader() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM sponsor_entries WHERE campaign_id = ?", (campaign_id,)
            ).fetchone()
        return int(row["n"] or 0)

    def settle_payment(
        self,
        entry_id: str,
        status: PaymentStatus,
        *,
        now: datetime,
        failure_reason: str | None = None,
    ) -> bool:
        with self._transaction() as conn:
            cur = conn.execute(
                """
                UPDATE sponsor_entries
                SET payment_status = ?, failure_reason = ?, updated_at = ?
                WHERE entry_id = ? AND payment_status = 'pending'
                """,
                (status.value, failure_reason, _ts(now), entry_id),
            )
            if cur.rowcount == 0:
                return False
            row = conn.execute(
                "SELECT campaign_id FROM sponsor_entries WHERE entry_id = ?", (entry_id,)
            ).fetchone()
            self._bump(conn, row["campaign_id"])
        return True

    def update_display(self, entry_id: str, size: DisplaySize, font_size: int, logo_width: int) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE sponsor_entries
                SET display_size = ?, calculated_font_size = ?, calculated_logo_width = ?
                WHERE entry_id = ?
                """,
                (size.value, font_size, logo_width, entry_id),
            )

    def expire_pending(self, campaign_id: str, *, cutoff: datetime, now: datetime) -> int:
        with self._transaction() as conn:
            cur = conn.execute(
                """
                UPDATE sponsor_entries
                SET payment_status = 'failed', failure_reason = 'expired', updated_at = ?
                WHERE campaign_id = ?
                  AND payment_status = 'pending'
                  AND position_id IS NOT NULL
                  AND created_at < ?
                """,
                (_ts(now), campaign_id, _ts(cutoff)),
            )
            released = cur.rowcount
            if released:
                self._bump(conn, campaign_id)
        if released:
            _LOGGER.debug("expired_rows", extra={"campaign_id": campaign_id, "count": released})
        return released

    def set_logo_status(
        self,
        entry_id: str,
        status: LogoApprovalStatus,
        *,
        expected: LogoApprovalStatus | None,
        now: datetime,
        rejection_reason: str | None = None,
        logo_url: str | None = None,
    ) -> bool:
        clauses = ["entry_id = ?", "sponsor_type = 'logo'"]
        params: list[object] = [status.value, rejection_reason, logo_url, _ts(now), entry_id]
        if expected is not None:
            clauses.append("logo_approval_status = ?")
            params.append(expected.value)
        with self._transaction() as conn:
            cur = conn.execute(
                """
                UPDATE sponsor_entries
                SET logo_approval_status = ?, logo_rejection_reason = ?,
                    logo_url = COALESCE(?, logo_url), updated_at = ?
                WHERE """
                + " AND ".join(clauses),
                params,
            )
            if cur.rowcount == 0:
                return False
            row = conn.execute(
                "SELECT campaign_id FROM sponsor_entries WHERE entry_id = ?", (entry_id,)
            ).fetchone()
            self._bump(conn, row["campaign_id"])
        return True
