"""Security scan data models."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MANUAL_TRIGGER = "manual"

_SCAN_COLUMNS = (
    "id",
    "trigger_type",
    "version",
    "result",
    "risk_score",
    "trust_score",
    "findings",
    "summary",
    "permissions",
    "scanner_version",
    "patterns_checked",
    "categories_checked",
    "files_scanned",
    "total_bytes",
    "scan_duration_ms",
    "scanned_at",
)
SCAN_COLUMNS = ", ".join(_SCAN_COLUMNS)

_SUMMARY_COLUMNS = (
    "id",
    "trigger_type",
    "version",
    "result",
    "risk_score",
    "trust_score",
    "scanner_version",
    "files_scanned",
    "total_bytes",
    "scanned_at",
)
SUMMARY_COLUMNS = ", ".join(_SUMMARY_COLUMNS)


def clamp_trust(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def trust_from_risk(risk_score: float) -> float:
    """Trust is the complement of risk, clamped to 0..100."""
    return clamp_trust(100 - risk_score)


def _load_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed scan column: %s", raw[:80])
        return default


class NewScan(BaseModel):
    """A scan outcome as reported by the scanner, before it is recorded.

    ``id``, ``trust_score`` and ``scanned_at`` are filled in by the ledger
    when left empty.
    """

    id: str | None = None
    trigger_type: str = MANUAL_TRIGGER
    version: str = ""
    result: str = "clean"
    risk_score: float = 0.0
    trust_score: float | None = None
    findings: list[Any] = Field(default_factory=list)
    summary: dict[str, Any] = Field(default_factory=dict)
    permissions: list[Any] = Field(default_factory=list)
    scanner_version: str = ""
    patterns_checked: int = 0
    categories_checked: int = 0
    files_scanned: int = 0
    total_bytes: int = 0
    scan_duration_ms: int = 0
    scanned_at: str | None = None


class ScanRecord(BaseModel):
    """A persisted, immutable scan outcome."""

    id: str
    trigger_type: str
    version: str = ""
    result: str = "clean"
    risk_score: float = 0.0
    trust_score: float = 100.0
    findings: list[Any] = Field(default_factory=list)
    summary: dict[str, Any] = Field(default_factory=dict)
    permissions: list[Any] = Field(default_factory=list)
    scanner_version: str = ""
    patterns_checked: int = 0
    categories_checked: int = 0
    files_scanned: int = 0
    total_bytes: int = 0
    scan_duration_ms: int = 0
    scanned_at: str

    def to_row(self) -> tuple:
        """Serialize to a tuple matching ``SCAN_COLUMNS``."""
        return (
            self.id,
            self.trigger_type,
            self.version,
            self.result,
            self.risk_score,
            self.trust_score,
            json.dumps(self.findings),
            json.dumps(self.summary),
            json.dumps(self.permissions),
            self.scanner_version,
            self.patterns_checked,
            self.categories_checked,
            self.files_scanned,
            self.total_bytes,
            self.scan_duration_ms,
            self.scanned_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> ScanRecord:
        """Deserialize from a row selected with ``SCAN_COLUMNS``."""
        return cls(
            id=row[0],
            trigger_type=row[1],
            version=row[2] or "",
            result=row[3],
            risk_score=row[4],
            trust_score=row[5],
            findings=_load_json(row[6], []),
            summary=_load_json(row[7], {}),
            permissions=_load_json(row[8], []),
            scanner_version=row[9] or "",
            patterns_checked=row[10],
            categories_checked=row[11],
            files_scanned=row[12],
            total_bytes=row[13],
            scan_duration_ms=row[14],
            scanned_at=row[15],
        )


class ScanSummary(BaseModel):
    """Compact scan row used by the history listing."""

    id: str
    trigger_type: str
    version: str = ""
    result: str
    risk_score: float
    trust_score: float
    scanner_version: str = ""
    files_scanned: int = 0
    total_bytes: int = 0
    scanned_at: str

    @classmethod
    def from_row(cls, row: tuple) -> ScanSummary:
        """Deserialize from a row selected with ``SUMMARY_COLUMNS``."""
        data = dict(zip(_SUMMARY_COLUMNS, row, strict=True))
        data["version"] = data["version"] or ""
        data["scanner_version"] = data["scanner_version"] or ""
        return cls(**data)


class SecuritySummary(BaseModel):
    """Trust and quota overview for status displays."""

    trust_score: float | None
    last_scan: str | None
    result: str | None
    scans_used: int
    scans_free: int
    scans_remaining: int
