"""Mantle command line entry point.

Usage examples:
    # Talk to the agent on the primary channel
    mantle chat "What did we talk about yesterday?"

    # Same, as if the message arrived by SMS
    mantle chat --channel sms "Any news?"

    # Inspect and manage memory
    mantle memory stats
    mantle memory list --channel sms --limit 20
    mantle memory search coffee
    mantle memory clear --channel x

    # Security scans
    mantle scan run --repo https://github.com/me/my-agent
    mantle scan latest
    mantle scan history --limit 10

    # Posts and skills
    mantle posts list --channel moltbook
    mantle posts record x "Shipped v2" --post-id 1789
    mantle skills add weather Weather --description "Local forecasts"

    # Inbound surfaces
    mantle sms receive --from +15551234567 "How was the scan?"
    mantle a2a card
    mantle a2a call chat --params '{"message": "hi", "agent_id": "agent-7"}'

    # Token usage, settings, overall status
    mantle usage
    mantle kv set owner_timezone America/Chicago
    mantle status
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from mantle.app import create_app
from mantle.config import settings
from mantle.errors import ExternalServiceError, QuotaExceededError, StorageInitError
from mantle.skills import Skill

if TYPE_CHECKING:
    from mantle.app import MantleApp

logger = logging.getLogger(__name__)


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mantle", description="Personal AI agent with memory")
    sub = parser.add_subparsers(dest="command", required=True)

    chat = sub.add_parser("chat", help="Send a message to the agent")
    chat.add_argument("message")
    chat.add_argument("--channel", default=settings.primary_channel)

    memory = sub.add_parser("memory", help="Inspect or purge conversation memory")
    memory_sub = memory.add_subparsers(dest="action", required=True)
    mem_list = memory_sub.add_parser("list")
    mem_list.add_argument("--channel")
    mem_list.add_argument("--limit", type=int)
    mem_search = memory_sub.add_parser("search")
    mem_search.add_argument("query")
    mem_search.add_argument("--limit", type=int, default=20)
    memory_sub.add_parser("stats")
    mem_clear = memory_sub.add_parser("clear")
    mem_clear.add_argument("--channel")

    sub.add_parser("usage", help="Show cumulative token usage")

    scan = sub.add_parser("scan", help="Security scans")
    scan_sub = scan.add_subparsers(dest="action", required=True)
    scan_run = scan_sub.add_parser("run")
    scan_run.add_argument("--trigger", default="manual")
    scan_run.add_argument("--repo")
    scan_sub.add_parser("latest")
    scan_history = scan_sub.add_parser("history")
    scan_history.add_argument("--limit", type=int, default=50)

    posts = sub.add_parser("posts", help="Published posts")
    posts_sub = posts.add_subparsers(dest="action", required=True)
    posts_list = posts_sub.add_parser("list")
    posts_list.add_argument("--channel")
    posts_list.add_argument("--limit", type=int, default=20)
    posts_record = posts_sub.add_parser("record", help="Remember a post made elsewhere")
    posts_record.add_argument("channel")
    posts_record.add_argument("content")
    posts_record.add_argument("--post-id")
    posts_record.add_argument("--scheduled", action="store_true")

    skills = sub.add_parser("skills", help="Installed skills")
    skills_sub = skills.add_subparsers(dest="action", required=True)
    skills_sub.add_parser("list")
    skills_add = skills_sub.add_parser("add")
    skills_add.add_argument("id")
    skills_add.add_argument("name")
    skills_add.add_argument("--description", default="")
    skills_add.add_argument("--file-path", default="")
    skills_add.add_argument("--listed", action="store_true", help="Listed on SquidBay")

    sms = sub.add_parser("sms", help="Inbound SMS")
    sms_sub = sms.add_subparsers(dest="action", required=True)
    sms_receive = sms_sub.add_parser("receive", help="Answer a text as if it just arrived")
    sms_receive.add_argument("--from", dest="from_number", required=True)
    sms_receive.add_argument("body")

    a2a = sub.add_parser("a2a", help="Agent-to-agent protocol")
    a2a_sub = a2a.add_subparsers(dest="action", required=True)
    a2a_sub.add_parser("card")
    a2a_call = a2a_sub.add_parser("call")
    a2a_call.add_argument("method")
    a2a_call.add_argument("--params", default="{}", help="JSON object")

    kv = sub.add_parser("kv", help="Agent key-value settings")
    kv_sub = kv.add_subparsers(dest="action", required=True)
    kv_get = kv_sub.add_parser("get")
    kv_get.add_argument("key")
    kv_set = kv_sub.add_parser("set")
    kv_set.add_argument("key")
    kv_set.add_argument("value")
    kv_set.add_argument("--json", action="store_true", help="Parse VALUE as JSON")
    kv_delete = kv_sub.add_parser("delete")
    kv_delete.add_argument("key")

    sub.add_parser("status", help="Agent, memory, security and usage overview")
    return parser


async def _memory(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "stats":
        _print((await app.records.stats()).model_dump())
    elif args.action == "search":
        records = await app.records.search(args.query, args.limit)
        _print([r.model_dump(mode="json", exclude_none=True) for r in records])
    elif args.action == "clear":
        removed = await app.records.purge(args.channel)
        scope = "all" if args.channel is None else args.channel
        _print({"cleared": removed, "channel": scope})
    elif args.channel is not None:
        limit = 50 if args.limit is None else args.limit
        records = await app.records.recent(args.channel, limit)
        _print([r.model_dump(mode="json", exclude_none=True) for r in records])
    else:
        limit = 100 if args.limit is None else args.limit
        records = await app.records.recent_across_channels(limit)
        _print([r.model_dump(mode="json", exclude_none=True) for r in records])
    return 0


async def _scan(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "latest":
        latest = await app.ledger.latest()
        _print(latest.model_dump() if latest else {"message": "No scans yet."})
        return 0
    if args.action == "history":
        history = await app.ledger.history(args.limit)
        _print({"history": [s.model_dump() for s in history], "total": len(history)})
        return 0

    try:
        record = await app.scans.request_scan(args.trigger, args.repo)
    except QuotaExceededError as exc:
        _print(exc.to_dict())
        return 2
    except ValueError as exc:
        _print({"error": str(exc)})
        return 2
    _print(
        {
            "result": record.result,
            "trust_score": record.trust_score,
            "risk_score": record.risk_score,
            "findings_count": len(record.findings),
            "scanner_version": record.scanner_version,
            "scanned_at": record.scanned_at,
        }
    )
    return 0


async def _kv(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "get":
        _print({"key": args.key, "value": await app.kv.get(args.key)})
    elif args.action == "set":
        value = json.loads(args.value) if args.json else args.value
        await app.kv.set(args.key, value)
        _print({"key": args.key, "value": value})
    else:
        await app.kv.delete(args.key)
        _print({"key": args.key, "deleted": True})
    return 0


async def _posts(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "list":
        entries = await app.posts.recent(args.channel, args.limit)
        _print([vars(e) for e in entries])
        return 0
    record_id = await app.agent.record_post(
        args.channel, args.content, args.post_id, scheduled=args.scheduled
    )
    _print({"record_id": record_id, "channel": args.channel, "post_id": args.post_id})
    return 0


async def _skills(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "list":
        _print([vars(s) for s in await app.skills.list_skills()])
        return 0
    if any(s.id == args.id for s in await app.skills.list_skills()):
        _print({"error": f"Skill {args.id} already installed"})
        return 2
    skill = await app.skills.add(
        Skill(
            id=args.id,
            name=args.name,
            description=args.description,
            file_path=args.file_path,
            squidbay_listed=args.listed,
        )
    )
    _print(vars(skill))
    return 0


async def _a2a(app: MantleApp, args: argparse.Namespace) -> int:
    if args.action == "card":
        _print(await app.a2a.card())
        return 0
    try:
        params = json.loads(args.params)
    except json.JSONDecodeError as exc:
        _print({"error": f"--params is not valid JSON: {exc}"})
        return 2
    if not isinstance(params, dict):
        _print({"error": "--params must be a JSON object"})
        return 2
    if args.method == "chat" and _missing_required(app):
        return 1
    result = await app.a2a.handle(args.method, params)
    _print(result)
    return 1 if "error" in result else 0


def _missing_required(app: MantleApp) -> bool:
    missing = app.settings.validate_required()
    if missing:
        logger.error("Missing required env vars: %s", ", ".join(missing))
    return bool(missing)


async def _dispatch(app: MantleApp, args: argparse.Namespace) -> int:
    if args.command == "chat":
        if _missing_required(app):
            return 1
        reply = await app.agent.chat(args.message, args.channel)
        _print(reply.to_dict())
        return 1 if reply.error else 0
    if args.command == "memory":
        return await _memory(app, args)
    if args.command == "usage":
        _print((await app.usage.usage()).model_dump())
        return 0
    if args.command == "scan":
        return await _scan(app, args)
    if args.command == "posts":
        return await _posts(app, args)
    if args.command == "skills":
        return await _skills(app, args)
    if args.command == "sms":
        if _missing_required(app):
            return 1
        reply = await app.sms.handle(args.from_number, args.body)
        _print({"from": args.from_number, "reply": reply, "ignored": reply is None})
        return 0
    if args.command == "a2a":
        return await _a2a(app, args)
    if args.command == "kv":
        return await _kv(app, args)
    _print(await app.status())
    return 0


async def run(args: argparse.Namespace) -> int:
    """Build the app, run one command, and shut down."""
    try:
        app = await create_app(settings)
    except StorageInitError:
        logger.exception("Storage unavailable — cannot start")
        return 1

    try:
        return await _dispatch(app, args)
    except ExternalServiceError as exc:
        logger.error("%s failed (%s)", args.command, exc.category, exc_info=exc.__cause__ or exc)
        _print({"error": exc.message, "category": str(exc.category)})
        return 1
    finally:
        await app.close()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
