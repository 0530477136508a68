"""
Command line interface for cosmo_x.

Usage:
    cosmo-x me
    cosmo-x search "AI agents -is:retweet" 2
    cosmo-x thread "First segment | Second segment | Third segment"
    cosmo-x measure 1234567890
    cosmo-x schedule "Hello later" 2026-01-01T09:00:00Z

Requirements:
    Set environment variables or create a .env file with:
    - X_CONSUMER_KEY
    - X_CONSUMER_SECRET
    - X_ACCESS_TOKEN
    - X_ACCESS_TOKEN_SECRET
    - X_BEARER_TOKEN
    - SCHEDULER_API_KEY, SCHEDULER_URL (scheduler commands only)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

import aiohttp
import httpx
from pydantic import BaseModel

from cosmo_x.clients.scheduler_client import SchedulerClient
from cosmo_x.config import ConfigManager
from cosmo_x.exceptions import CosmoXError
from cosmo_x.factory import CosmoX, CosmoXFactory
from cosmo_x.models import SchedulePostRequest
from cosmo_x.rate_limit import RateLimiter, RetryConfig
from cosmo_x.services.engage_service import EngageService
from cosmo_x.services.lookup_service import LookupService
from cosmo_x.services.measure_service import MeasureService
from cosmo_x.services.post_service import PostService
from cosmo_x.services.search_service import SearchService

logger = logging.getLogger(__name__)

SCHEDULED_STATUSES = ("pending", "posted", "failed", "cancelled")

# tweepy AsyncClient speaks aiohttp; the scheduler client speaks httpx
TRANSPORT_ERRORS = (aiohttp.ClientError, httpx.HTTPError)


class UsageError(CosmoXError):
    """Raised when arguments parse but cannot be acted upon."""


@dataclass(slots=True)
class Toolkit:
    """Services wired to the user-context client and the app-only reader."""

    cosmo: CosmoX
    limiter: RateLimiter

    @property
    def lookup(self) -> LookupService:
        return LookupService(self.cosmo.client, self.limiter)

    @property
    def reader(self) -> LookupService:
        return LookupService(self.cosmo.reader, self.limiter)

    @property
    def posts(self) -> PostService:
        return PostService(self.cosmo.client, self.limiter)

    @property
    def search(self) -> SearchService:
        return SearchService(self.cosmo.reader, self.limiter)

    @property
    def engage(self) -> EngageService:
        return EngageService(self.cosmo.client, self.limiter)

    async def me_id(self) -> str:
        me = await self.lookup.get_me()
        if me is None:
            raise CosmoXError("Could not get user")
        return me.id


def emit(value: Any) -> None:
    """Print ``value`` as indented JSON."""

    print(json.dumps(_jsonable(value), indent=2, ensure_ascii=False))


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


# ============================================================================
# X commands
# ============================================================================


async def cmd_me(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.lookup.get_me())
    return 0


async def cmd_user(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.reader.get_user_by_username(args.username))
    return 0


async def cmd_tweet(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.reader.get_tweet(args.tweet_id))
    return 0


async def cmd_timeline(args: argparse.Namespace, kit: Toolkit) -> int:
    user_id = await kit.me_id()
    emit(await kit.reader.get_user_timeline(user_id, args.count))
    return 0


async def cmd_list(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.reader.get_list_timeline(args.list_id, args.count))
    return 0


async def cmd_search(args: argparse.Namespace, kit: Toolkit) -> int:
    response = await kit.search.search_recent(
        args.query, max_results=args.max_results, max_pages=args.pages
    )
    emit(response)
    return 0


async def cmd_post(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.posts.create_post(" ".join(args.text)))
    return 0


async def cmd_reply(args: argparse.Namespace, kit: Toolkit) -> int:
    emit(await kit.posts.reply(args.tweet_id, " ".join(args.text)))
    return 0


async def cmd_thread(args: argparse.Namespace, kit: Toolkit) -> int:
    texts = [part.strip() for part in " ".join(args.text).split("|") if part.strip()]
    if len(texts) < 2:
        raise UsageError("Usage: cosmo-x thread <text1> | <text2> | ...")
    emit(await kit.posts.post_thread(texts, delay=args.delay))
    return 0


async def cmd_delete(args: argparse.Namespace, kit: Toolkit) -> int:
    deleted = await kit.posts.delete_post(args.tweet_id)
    print("Deleted" if deleted else "Failed")
    return 0 if deleted else 1


async def cmd_like(args: argparse.Namespace, kit: Toolkit) -> int:
    liked = await kit.engage.like(args.tweet_id)
    print("Liked" if liked else "Failed")
    return 0 if liked else 1


async def cmd_repost(args: argparse.Namespace, kit: Toolkit) -> int:
    reposted = await kit.engage.repost(args.tweet_id)
    print("Reposted" if reposted else "Failed")
    return 0 if reposted else 1


async def cmd_follow(args: argparse.Namespace, kit: Toolkit) -> int:
    target = await kit.reader.get_user_by_username(args.username)
    if target is None:
        raise CosmoXError(f"User @{args.username} not found")
    following = await kit.engage.follow(target.id)
    print(f"Following @{args.username}" if following else "Failed")
    return 0 if following else 1


async def cmd_measure(args: argparse.Namespace, kit: Toolkit) -> int:
    measure = MeasureService(kit.reader)
    if len(args.tweet_ids) == 1:
        emit(await measure.measure_article(args.tweet_ids[0]))
    else:
        emit(await measure.measure_articles(args.tweet_ids))
    return 0


async def cmd_pulse(args: argparse.Namespace, kit: Toolkit) -> int:
    pulse = await MeasureService(kit.lookup).pulse_check(args.count)
    if pulse is None:
        raise CosmoXError("Pulse check failed")
    metrics = pulse.user.metrics
    emit(
        {
            "user": f"@{pulse.user.username}",
            "followers": metrics.followers if metrics else None,
            "following": metrics.following if metrics else None,
            "total_tweets": metrics.tweets if metrics else None,
            "recent_posts": len(pulse.recent_posts),
            "total_impressions": pulse.total_impressions,
            "total_bookmarks": pulse.total_bookmarks,
            "total_likes": pulse.total_likes,
            "avg_bookmark_rate": f"{pulse.avg_bookmark_rate}%",
        }
    )
    return 0


async def cmd_test(args: argparse.Namespace, kit: Toolkit, config: ConfigManager) -> int:
    print("Running connectivity test...\n")

    try:
        me = await kit.lookup.get_me()
        followers = me.metrics.followers if me and me.metrics else None
        print(f"  ✓ OAuth1 auth: @{me.username if me else '?'} ({followers} followers)")
    except (CosmoXError, *TRANSPORT_ERRORS) as exc:
        print(f"  ✗ OAuth1 auth: {exc}")

    try:
        user = await kit.reader.get_user_by_username(args.username)
        print(f"  ✓ Bearer auth: found @{user.username if user else '?'}")
    except (CosmoXError, *TRANSPORT_ERRORS) as exc:
        print(f"  ✗ Bearer auth: {exc}")

    try:
        found = await kit.search.search_recent(args.query, max_results=10)
        print(f"  ✓ Search: {len(found.results)} results")
    except (CosmoXError, *TRANSPORT_ERRORS) as exc:
        print(f"  ✗ Search: {exc}")

    try:
        async with SchedulerClient.from_config(config) as scheduler:
            health = await scheduler.health()
        print(f"  ✓ Scheduler: {health.status}")
    except (CosmoXError, *TRANSPORT_ERRORS) as exc:
        print(f"  ✗ Scheduler: {exc}")

    print("\nDone.")
    return 0


# ============================================================================
# Scheduler commands
# ============================================================================


async def cmd_schedule(args: argparse.Namespace, scheduler: SchedulerClient) -> int:
    request = SchedulePostRequest(
        text=args.text, scheduled_time=args.time, reply_to_tweet_id=args.reply_to
    )
    emit(await scheduler.schedule(request))
    return 0


async def cmd_scheduled(args: argparse.Namespace, scheduler: SchedulerClient) -> int:
    emit(await scheduler.list_posts(args.status))
    return 0


X_COMMANDS: dict[str, Callable[[argparse.Namespace, Toolkit], Awaitable[int]]] = {
    "me": cmd_me,
    "user": cmd_user,
    "tweet": cmd_tweet,
    "timeline": cmd_timeline,
    "list": cmd_list,
    "search": cmd_search,
    "post": cmd_post,
    "reply": cmd_reply,
    "thread": cmd_thread,
    "delete": cmd_delete,
    "like": cmd_like,
    "repost": cmd_repost,
    "follow": cmd_follow,
    "measure": cmd_measure,
    "pulse": cmd_pulse,
}

SCHEDULER_COMMANDS: dict[str, Callable[[argparse.Namespace, SchedulerClient], Awaitable[int]]] = {
    "schedule": cmd_schedule,
    "scheduled": cmd_scheduled,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cosmo-x", description="X API toolkit")
    parser.add_argument("--dotenv", type=Path, help="Path to .env file (default: ./.env)")
    parser.add_argument(
        "--max-retries",
        type=int,
        default=3,
        help="Retries after a 429 before giving up (default: 3)",
    )
    parser.add_argument(
        "--base-delay",
        type=float,
        default=15.0,
        help="Backoff seconds when no reset hint is available (default: 15)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log retry details")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    sub.add_parser("me", help="Get authenticated user profile")

    p = sub.add_parser("user", help="Look up user by username")
    p.add_argument("username")

    p = sub.add_parser("tweet", help="Look up tweet with metrics")
    p.add_argument("tweet_id")

    p = sub.add_parser("timeline", help="Get own recent posts")
    p.add_argument("count", nargs="?", type=int, default=10)

    p = sub.add_parser("list", help="Get list timeline")
    p.add_argument("list_id")
    p.add_argument("count", nargs="?", type=int, default=10)

    p = sub.add_parser("search", help="Search recent tweets")
    p.add_argument("query")
    p.add_argument("pages", nargs="?", type=int, default=1)
    p.add_argument("--max-results", type=int, default=10, help="Results per page (max 100)")

    p = sub.add_parser("post", help="Create a tweet")
    p.add_argument("text", nargs="+")

    p = sub.add_parser("reply", help="Reply to a tweet")
    p.add_argument("tweet_id")
    p.add_argument("text", nargs="+")

    p = sub.add_parser("thread", help="Post a thread (pipe-separated segments)")
    p.add_argument("text", nargs="+")
    p.add_argument(
        "--delay", type=float, default=1.0, help="Seconds between segments (default: 1.0)"
    )

    p = sub.add_parser("delete", help="Delete a tweet")
    p.add_argument("tweet_id")

    p = sub.add_parser("like", help="Like a tweet")
    p.add_argument("tweet_id")

    p = sub.add_parser("repost", help="Retweet")
    p.add_argument("tweet_id")

    p = sub.add_parser("follow", help="Follow a user")
    p.add_argument("username")

    p = sub.add_parser("measure", help="Get article metrics + bookmark rate")
    p.add_argument("tweet_ids", nargs="+", metavar="tweet_id")

    p = sub.add_parser("pulse", help="Account pulse check")
    p.add_argument("count", nargs="?", type=int, default=10)

    p = sub.add_parser("schedule", help="Schedule a post (ISO 8601 time)")
    p.add_argument("text")
    p.add_argument("time")
    p.add_argument("--reply-to", metavar="TWEET_ID")

    p = sub.add_parser("scheduled", help="List scheduled posts")
    p.add_argument("status", nargs="?", choices=SCHEDULED_STATUSES)

    p = sub.add_parser("test", help="Run connectivity test")
    p.add_argument("--username", default="XDevelopers", help="Account looked up with bearer auth")
    p.add_argument("--query", default="AI agents -is:retweet", help="Query used for the search check")

    return parser


def _install_cancel_handler(event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, event.set)
    except (NotImplementedError, RuntimeError):
        logger.debug("SIGTERM handler unavailable on this platform")


async def run(args: argparse.Namespace) -> int:
    config = ConfigManager(dotenv_path=args.dotenv)

    if args.command in SCHEDULER_COMMANDS:
        async with SchedulerClient.from_config(config) as scheduler:
            return await SCHEDULER_COMMANDS[args.command](args, scheduler)

    limiter = RateLimiter(
        RetryConfig(max_retries=args.max_retries, base_delay=args.base_delay),
        cancel_event=asyncio.Event(),
    )
    _install_cancel_handler(limiter.cancel_event)

    async with CosmoXFactory.create_from_config(config) as cosmo:
        kit = Toolkit(cosmo, limiter)
        if args.command == "test":
            return await cmd_test(args, kit, config)
        return await X_COMMANDS[args.command](args, kit)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    except (CosmoXError, *TRANSPORT_ERRORS, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
