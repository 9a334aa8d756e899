"""Scan request pipeline: quota check, scanner call, ledger, owner alert."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mantle.scans.models import MANUAL_TRIGGER

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mantle.notifications.router import NotificationRouter
    from mantle.scans.client import ScannerClient
    from mantle.scans.ledger import ScanLedger
    from mantle.scans.models import ScanRecord

logger = logging.getLogger(__name__)


def format_trust_alert(trust_score: float) -> str:
    return (
        f"Security scan alert: Trust score dropped to {trust_score:g}/100. "
        "Check your scan report."
    )


class ScanService:
    """Runs scans on request and records what the scanner reports.

    The manual-scan quota is enforced before any network I/O, so a
    rejected request never reaches the scanner.
    """

    def __init__(
        self,
        ledger: ScanLedger,
        scanner: ScannerClient,
        *,
        default_repo: str = "",
        version: str = "",
    ) -> None:
        self._ledger = ledger
        self._scanner = scanner
        self.default_repo = default_repo
        self.version = version

    async def request_scan(
        self, trigger_type: str = MANUAL_TRIGGER, repo: str | None = None
    ) -> ScanRecord:
        """Scan ``repo`` (or the configured default) and persist the result.

        Raises:
            QuotaExceededError: manual scan after the free allowance is used.
            ValueError: no repository to scan.
            ExternalServiceError: the scanner failed; nothing is recorded.
        """
        await self._ledger.check_quota(trigger_type)

        target = repo or self.default_repo
        if not target:
            msg = "repo URL required — set SCAN_REPO or pass a repo"
            raise ValueError(msg)

        logger.info("Requesting %s scan of %s", trigger_type, target)
        outcome = await self._scanner.scan(target, trigger_type=trigger_type, version=self.version)
        return await self._ledger.record(outcome)


def make_alert_sender(router: NotificationRouter) -> Callable[[ScanRecord], Awaitable[None]]:
    """Build a ledger ``on_alert`` callback that texts the owner."""

    async def _send(scan: ScanRecord) -> None:
        if not await router.notify_owner(format_trust_alert(scan.trust_score)):
            logger.warning("Trust alert for %s was not delivered", scan.id)

    return _send
