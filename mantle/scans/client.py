"""SquidBay security scanner API client using aiohttp."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from mantle.errors import ErrorCategory, ExternalServiceError
from mantle.scans.models import NewScan

logger = logging.getLogger(__name__)

_STATUS_CATEGORIES: dict[int, ErrorCategory] = {
    401: ErrorCategory.AUTH_FAILURE,
    403: ErrorCategory.AUTH_FAILURE,
    429: ErrorCategory.RATE_LIMITED,
    503: ErrorCategory.OVERLOADED,
    529: ErrorCategory.OVERLOADED,
}


def normalize_scan_payload(
    payload: dict[str, Any], *, trigger_type: str, version: str = ""
) -> NewScan:
    """Map a scanner response onto a NewScan.

    Missing or null fields fall back to defaults; file counters may be
    reported inside ``summary``.
    """
    summary = payload.get("summary") or {}
    return NewScan(
        id=payload.get("id") or None,
        trigger_type=trigger_type,
        version=version,
        result=payload.get("result") or "clean",
        risk_score=payload.get("risk_score") or 0,
        findings=payload.get("findings") or [],
        summary=summary,
        permissions=payload.get("permissions") or [],
        scanner_version=payload.get("scanner_version") or "",
        patterns_checked=payload.get("patterns_checked") or 0,
        categories_checked=payload.get("categories_checked") or 0,
        files_scanned=payload.get("files_scanned") or summary.get("files_scanned") or 0,
        total_bytes=payload.get("total_bytes") or summary.get("total_bytes") or 0,
        scan_duration_ms=payload.get("scan_duration_ms") or 0,
        scanned_at=payload.get("scanned_at") or None,
    )


class ScannerClient:
    """Requests repository scans from the SquidBay scanner."""

    def __init__(
        self,
        *,
        api_base: str,
        agent_id: str = "",
        api_key: str = "",
        agent_name: str = "",
        timeout_seconds: float = 60.0,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self._agent_id = agent_id
        self._api_key = api_key
        self._agent_name = agent_name
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Return (and lazily create) the shared aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "x-agent-id": self._agent_id,
                    "x-agent-key": self._api_key,
                },
                timeout=self._timeout,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def scan(self, repo: str, *, trigger_type: str, version: str = "") -> NewScan:
        """Run a scan of ``repo`` and return the normalised outcome.

        Raises:
            ExternalServiceError: the scanner was unreachable or returned an error.
        """
        payload = {
            "repo": repo,
            "agent_id": self._agent_id,
            "agent_name": self._agent_name,
        }
        session = self._get_session()
        try:
            async with session.post(f"{self.api_base}/scan", json=payload) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    logger.error("Scan API error: status=%d body=%s", resp.status, text[:200])
                    category = _STATUS_CATEGORIES.get(resp.status, ErrorCategory.UNKNOWN)
                    msg = f"Scan API error ({resp.status}): {text[:200]}"
                    raise ExternalServiceError(category, msg)
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.exception("Scan request failed (network error)")
            msg = f"Scan failed: {exc}"
            raise ExternalServiceError(ErrorCategory.UNKNOWN, msg) from exc

        try:
            outcome = normalize_scan_payload(data, trigger_type=trigger_type, version=version)
        except ValidationError as exc:
            logger.error("Scanner payload rejected: %s", exc)
            msg = "Scan API returned an unreadable result"
            raise ExternalServiceError(ErrorCategory.UNKNOWN, msg) from exc

        logger.info("Scan completed for %s: result=%s", repo, outcome.result)
        return outcome
