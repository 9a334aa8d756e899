"""ScanLedger — durable scan history, trust scoring and the manual-scan quota."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from mantle.errors import QuotaExceededError
from mantle.scans.models import (
    MANUAL_TRIGGER,
    SCAN_COLUMNS,
    SUMMARY_COLUMNS,
    NewScan,
    ScanRecord,
    ScanSummary,
    SecuritySummary,
    clamp_trust,
    trust_from_risk,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mantle.db import Database

logger = logging.getLogger(__name__)


def make_scan_id() -> str:
    """Generate a new scan ID."""
    return f"scan_{uuid.uuid4().hex}"


def utc_timestamp(value: str | None = None) -> str:
    """Render ``value`` (default: now) as UTC ISO-8601 with microseconds.

    Naive timestamps are taken to be UTC. An unparseable value is logged
    and replaced by the current time so the scan itself is not lost.
    """
    moment = datetime.now(UTC)
    if value:
        try:
            moment = datetime.fromisoformat(value)
        except ValueError:
            logger.warning("Unparseable scanned_at %r; using the current time", value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="microseconds")


class ScanLedger:
    """Records scan outcomes and answers trust/quota questions about them.

    When a freshly recorded scan's trust score is below ``alert_threshold``
    the optional ``on_alert`` callback is awaited with the new record. The
    ledger itself never talks to the network; a failing callback is logged
    and otherwise ignored.
    """

    def __init__(
        self,
        db: Database,
        *,
        free_scan_allowance: int = 10,
        alert_threshold: int = 80,
        on_alert: Callable[[ScanRecord], Awaitable[None]] | None = None,
    ) -> None:
        self._db = db
        self.free_scan_allowance = free_scan_allowance
        self.alert_threshold = alert_threshold
        self._on_alert = on_alert

    # -- Write -----------------------------------------------------------------

    async def record(self, scan: NewScan | dict[str, Any]) -> ScanRecord:
        """Persist a scan outcome and return the stored record.

        ``trust_score`` defaults to ``100 - risk_score``; either way it is
        clamped to 0..100. ``scanned_at`` is stored as UTC ISO-8601 with
        microseconds so that text order is time order. A scanner id that is
        already taken is replaced by a fresh one and kept in
        ``summary["scanner_scan_id"]``.
        """
        if isinstance(scan, dict):
            scan = NewScan.model_validate(scan)

        trust = scan.trust_score
        record = ScanRecord(
            **scan.model_dump(exclude={"id", "trust_score", "scanned_at"}),
            id=scan.id or make_scan_id(),
            trust_score=trust_from_risk(scan.risk_score) if trust is None else clamp_trust(trust),
            scanned_at=utc_timestamp(scan.scanned_at),
        )

        db = await self._db.connect()
        try:
            if not await self._insert(db, record):
                logger.warning("Scan id %s already recorded; assigning a new id", record.id)
                record = record.model_copy(
                    update={
                        "id": make_scan_id(),
                        "summary": {**record.summary, "scanner_scan_id": record.id},
                    }
                )
                await self._insert(db, record)
            await db.commit()
        finally:
            await db.close()

        logger.info(
            "Recorded %s scan %s: result=%s risk=%g trust=%g",
            record.trigger_type,
            record.id,
            record.result,
            record.risk_score,
            record.trust_score,
        )

        if self.needs_alert(record):
            await self._alert(record)
        return record

    @staticmethod
    async def _insert(db: Any, record: ScanRecord) -> bool:
        """Insert ``record``; False when its id is already taken."""
        cursor = await db.execute(
            f"""
            INSERT INTO scans ({SCAN_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO NOTHING
            """,
            record.to_row(),
        )
        return cursor.rowcount > 0

    def needs_alert(self, scan: ScanRecord) -> bool:
        """True when ``scan`` falls below the trust alert threshold."""
        return scan.trust_score < self.alert_threshold

    async def _alert(self, scan: ScanRecord) -> None:
        logger.warning("Trust score %g below threshold %d", scan.trust_score, self.alert_threshold)
        if self._on_alert is None:
            return
        try:
            await self._on_alert(scan)
        except Exception:
            logger.exception("Scan alert callback failed for %s", scan.id)

    # -- Read ------------------------------------------------------------------

    async def latest(self) -> ScanRecord | None:
        """Return the most recent scan, or None if nothing has been scanned."""
        db = await self._db.connect()
        try:
            cursor = await db.execute(
                f"SELECT {SCAN_COLUMNS} FROM scans ORDER BY scanned_at DESC, rowid DESC LIMIT 1"
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        return ScanRecord.from_row(row) if row else None

    async def history(self, limit: int = 50) -> list[ScanSummary]:
        """Return up to ``limit`` scan summaries, newest first."""
        if limit <= 0:
            return []
        db = await self._db.connect()
        try:
            cursor = await db.execute(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM scans
                ORDER BY scanned_at DESC, rowid DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
        finally:
            await db.close()
        return [ScanSummary.from_row(row) for row in rows]

    async def manual_count(self) -> int:
        """Count every recorded scan with a manual trigger."""
        db = await self._db.connect()
        try:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM scans WHERE trigger_type = ?", (MANUAL_TRIGGER,)
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        return row[0] if row else 0

    # -- Quota -----------------------------------------------------------------

    async def check_quota(self, trigger_type: str) -> None:
        """Raise QuotaExceededError if a manual scan is no longer allowed.

        Non-manual triggers are never limited.
        """
        if trigger_type != MANUAL_TRIGGER:
            return
        used = await self.manual_count()
        if used >= self.free_scan_allowance:
            raise QuotaExceededError(used=used, allowed=self.free_scan_allowance)

    async def security_summary(self) -> SecuritySummary:
        """Latest trust score plus manual-scan quota usage."""
        latest = await self.latest()
        used = await self.manual_count()
        return SecuritySummary(
            trust_score=latest.trust_score if latest else None,
            last_scan=latest.scanned_at if latest else None,
            result=latest.result if latest else None,
            scans_used=used,
            scans_free=self.free_scan_allowance,
            scans_remaining=max(0, self.free_scan_allowance - used),
        )
