"""Application factory — wires one storage handle into every component."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import metadata
from typing import TYPE_CHECKING, Any

from mantle.a2a import A2AHandler
from mantle.agent import Agent
from mantle.db import Database
from mantle.kv import KeyValueStore
from mantle.llm.client import LanguageModelClient
from mantle.memory.context import ContextAssembler
from mantle.memory.store import RecordStore
from mantle.memory.usage import UsageAccountant
from mantle.notifications.router import NotificationRouter
from mantle.notifications.sms_channel import SMSChannel
from mantle.posts import PostLog
from mantle.scans.client import ScannerClient
from mantle.scans.ledger import ScanLedger
from mantle.scans.service import ScanService, make_alert_sender
from mantle.skills import SkillStore
from mantle.sms.client import SMSClient
from mantle.sms.handler import InboundSMSHandler

if TYPE_CHECKING:
    from mantle.config import Settings

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return metadata.version("mantle")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@dataclass
class MantleApp:
    """Every component, sharing a single ``Database``."""

    settings: Settings
    db: Database
    records: RecordStore
    kv: KeyValueStore
    assembler: ContextAssembler
    usage: UsageAccountant
    ledger: ScanLedger
    posts: PostLog
    skills: SkillStore
    router: NotificationRouter
    scans: ScanService
    agent: Agent
    sms: InboundSMSHandler
    a2a: A2AHandler
    _closers: tuple = ()

    async def status(self) -> dict[str, Any]:
        """Snapshot of identity, memory, trust and token usage."""
        return {
            "agent": {"name": self.agent.name, "version": _version()},
            "memory": (await self.records.stats()).model_dump(),
            "security": (await self.ledger.security_summary()).model_dump(),
            "usage": (await self.usage.usage()).model_dump(),
        }

    async def close(self) -> None:
        for close in self._closers:
            await close()


def _init_notifications(settings: Settings, router: NotificationRouter) -> SMSClient | None:
    """Register the SMS channel when owner SMS is configured."""
    if not settings.sms_enabled():
        logger.info("Owner SMS not configured — scan alerts will only be logged")
        return None
    client = SMSClient(settings.telnyx_api_key, settings.telnyx_phone_number)
    router.register(SMSChannel(client, agent_name=settings.agent_name), default=True)
    return client


async def create_app(settings: Settings, db: Database | None = None) -> MantleApp:
    """Build and initialise the application.

    Raises:
        StorageInitError: the database could not be opened.
    """
    db = db or Database.from_settings(settings)
    await db.initialise()

    router = NotificationRouter(owner_id=settings.owner_phone_number)
    sms_client = _init_notifications(settings, router)

    records = RecordStore(db)
    assembler = ContextAssembler(
        records,
        primary_channel=settings.primary_channel,
        history_limit=settings.context_history_limit,
        cross_channel_limit=settings.context_cross_channel_limit,
    )
    ledger = ScanLedger(
        db,
        free_scan_allowance=settings.free_scan_allowance,
        alert_threshold=settings.trust_alert_threshold,
        on_alert=make_alert_sender(router),
    )
    scanner = ScannerClient(
        api_base=settings.squidbay_api_base,
        agent_id=settings.squidbay_agent_id,
        api_key=settings.squidbay_api_key,
        agent_name=settings.agent_name,
        timeout_seconds=settings.scan_timeout_seconds,
    )
    skills = SkillStore(db)
    posts = PostLog(db)
    llm = LanguageModelClient(
        settings.anthropic_api_key,
        settings.claude_model,
        max_tokens=settings.claude_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
    )

    closers = [scanner.close]
    if sms_client is not None:
        closers.append(sms_client.close)

    agent = Agent(
        name=settings.agent_name,
        records=records,
        assembler=assembler,
        skills=skills,
        posts=posts,
        llm=llm,
    )
    version = _version()

    return MantleApp(
        settings=settings,
        db=db,
        records=records,
        kv=KeyValueStore(db),
        assembler=assembler,
        usage=UsageAccountant(records, window=settings.usage_window),
        ledger=ledger,
        posts=posts,
        skills=skills,
        router=router,
        scans=ScanService(ledger, scanner, default_repo=settings.scan_repo, version=version),
        agent=agent,
        sms=InboundSMSHandler(agent, sms_client, owner_number=settings.owner_phone_number),
        a2a=A2AHandler(
            agent,
            skills,
            ledger,
            agent_id=settings.squidbay_agent_id,
            version=version,
            lightning_address=settings.lightning_address,
        ),
        _closers=tuple(closers),
    )
