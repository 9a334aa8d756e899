"""Security scans — ledger, scanner client, and the request pipeline."""

from mantle.scans.client import ScannerClient
from mantle.scans.ledger import ScanLedger
from mantle.scans.models import NewScan, ScanRecord, ScanSummary, SecuritySummary
from mantle.scans.service import ScanService

__all__ = [
    "NewScan",
    "ScanLedger",
    "ScanRecord",
    "ScanService",
    "ScanSummary",
    "ScannerClient",
    "SecuritySummary",
]
