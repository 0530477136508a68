#!/usr/bin/env python
"""
Example: Schedule a thread on the scheduling service, optionally cancelling it.

Usage:
    # Three segments, first one in 10 minutes, 60 seconds apart
    python examples/schedule_thread.py "First" "Second" "Third" --in-minutes 10 --delay 60

    # Cancel every pending segment of a thread
    python examples/schedule_thread.py --cancel-thread 3f2a9c

Requirements:
    Set environment variables or create a .env file with:
    - SCHEDULER_API_KEY
    - SCHEDULER_URL (optional)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Ensure project root is on sys.path when running as a script (e.g. python examples/schedule_thread.py)
if __package__ is None:  # pragma: no cover - runtime convenience
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from cosmo_x.clients.scheduler_client import SchedulerClient
from cosmo_x.config import ConfigManager
from cosmo_x.exceptions import ConfigurationError, CosmoXError
from cosmo_x.models import CancelRequest, ScheduleThreadRequest, ThreadSegment


async def run(args: argparse.Namespace) -> int:
    async with SchedulerClient.from_config(ConfigManager()) as scheduler:
        if args.cancel_thread:
            result = await scheduler.cancel(CancelRequest(thread_id=args.cancel_thread))
            print("Cancelled" if result.cancelled else "Nothing to cancel")
            return 0

        start = datetime.now(timezone.utc) + timedelta(minutes=args.in_minutes)
        segments = [
            ThreadSegment(text=text, scheduled_time=start + timedelta(seconds=args.delay * index))
            for index, text in enumerate(args.texts)
        ]
        posts = await scheduler.schedule_thread(
            ScheduleThreadRequest(posts=segments, delay_seconds=args.delay)
        )

    for post in posts:
        print(f"  {post.id}  {post.scheduled_time}  {post.status}  {post.text[:40]}")
    if posts and posts[0].thread_id:
        print(f"\nthread_id: {posts[0].thread_id}")
    return 0


def main() -> int:
    """Main entry point for the example."""
    parser = argparse.ArgumentParser(description="Schedule a thread of posts")
    parser.add_argument("texts", nargs="*", help="Segment texts in order")
    parser.add_argument("--in-minutes", type=int, default=10, help="Delay before the first segment")
    parser.add_argument("--delay", type=int, default=60, help="Seconds between segments")
    parser.add_argument("--cancel-thread", metavar="THREAD_ID", help="Cancel a scheduled thread")
    args = parser.parse_args()

    if not args.cancel_thread and len(args.texts) < 2:
        parser.error("a thread needs at least two segments")

    try:
        return asyncio.run(run(args))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        print("\nPlease set SCHEDULER_API_KEY in the environment or a .env file.", file=sys.stderr)
        return 1
    except CosmoXError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
