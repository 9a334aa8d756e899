"""Tests for the scan request pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mantle.db import Database
from mantle.errors import ErrorCategory, ExternalServiceError, QuotaExceededError
from mantle.notifications.router import NotificationRouter
from mantle.scans.ledger import ScanLedger
from mantle.scans.models import NewScan
from mantle.scans.service import ScanService, format_trust_alert, make_alert_sender


class FakeChannel:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "sms"

    async def send(self, user_id: str, message: str) -> bool:
        self.sent.append((user_id, message))
        return True


@pytest.fixture
def scanner() -> MagicMock:
    mock = MagicMock()
    mock.scan = AsyncMock(
        side_effect=lambda repo, *, trigger_type, version="": NewScan(
            trigger_type=trigger_type, risk_score=10, version=version
        )
    )
    return mock


@pytest.fixture
async def ledger(db: Database) -> ScanLedger:
    return ScanLedger(db, free_scan_allowance=10)


# -- request_scan ------------------------------------------------------------


async def test_request_scan_records_outcome(ledger: ScanLedger, scanner: MagicMock) -> None:
    service = ScanService(
        ledger, scanner, default_repo="https://github.com/me/agent", version="1.2"
    )

    record = await service.request_scan()

    scanner.scan.assert_awaited_once_with(
        "https://github.com/me/agent", trigger_type="manual", version="1.2"
    )
    assert record.trust_score == 90
    assert (await ledger.latest()).id == record.id


async def test_explicit_repo_overrides_default(ledger: ScanLedger, scanner: MagicMock) -> None:
    service = ScanService(ledger, scanner, default_repo="default")
    await service.request_scan(repo="other")
    assert scanner.scan.await_args.args[0] == "other"


async def test_missing_repo_raises(ledger: ScanLedger, scanner: MagicMock) -> None:
    service = ScanService(ledger, scanner)
    with pytest.raises(ValueError, match="repo URL required"):
        await service.request_scan()
    scanner.scan.assert_not_awaited()


async def test_eleventh_manual_scan_rejected(ledger: ScanLedger, scanner: MagicMock) -> None:
    service = ScanService(ledger, scanner, default_repo="repo")
    for _ in range(10):
        await service.request_scan("manual")

    with pytest.raises(QuotaExceededError) as exc_info:
        await service.request_scan("manual")

    assert (exc_info.value.used, exc_info.value.allowed) == (10, 10)
    assert scanner.scan.await_count == 10

    record = await service.request_scan("scheduled")
    assert record.trigger_type == "scheduled"


async def test_scanner_failure_records_nothing(ledger: ScanLedger) -> None:
    scanner = MagicMock()
    scanner.scan = AsyncMock(
        side_effect=ExternalServiceError(ErrorCategory.OVERLOADED, "busy")
    )
    service = ScanService(ledger, scanner, default_repo="repo")

    with pytest.raises(ExternalServiceError):
        await service.request_scan()

    assert await ledger.latest() is None
    assert await ledger.manual_count() == 0


# -- alerts ------------------------------------------------------------------


async def test_low_trust_notifies_owner(db: Database) -> None:
    router = NotificationRouter(owner_id="+15551234567")
    channel = FakeChannel()
    router.register(channel)
    ledger = ScanLedger(db, on_alert=make_alert_sender(router))

    await ledger.record(NewScan(risk_score=35))

    assert channel.sent == [("+15551234567", format_trust_alert(65))]


async def test_alert_without_owner_is_skipped(db: Database) -> None:
    router = NotificationRouter()
    channel = FakeChannel()
    router.register(channel)
    ledger = ScanLedger(db, on_alert=make_alert_sender(router))

    await ledger.record(NewScan(risk_score=35))

    assert channel.sent == []


def test_format_trust_alert() -> None:
    assert format_trust_alert(42) == (
        "Security scan alert: Trust score dropped to 42/100. Check your scan report."
    )


def test_format_trust_alert_fractional() -> None:
    alert = format_trust_alert(74.5)
    assert alert.startswith("Security scan alert: Trust score dropped to 74.5/100.")
