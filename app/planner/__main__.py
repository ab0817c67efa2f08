"""
Package CLI entrypoint for the study space planner.

Usage:
  python -m app.planner suggest <username> <friend_username> [--origin "..."] [--seed N]

Without GENAI_API_KEY / GOOGLE_MAPS_API_KEY the mock catalog and mock
distances are used.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from typing import List, Optional

from app.config import load_settings
from app.planner.pipeline import StudyPlanner
from app.planner.session import DEFAULT_ORIGIN
from app.store import SqlProfileStore
from match_engine.contracts import find_shared_courses


def _suggest(username: str, friend: str, origin: str, seed: Optional[int]) -> int:
    settings = load_settings()
    store = SqlProfileStore.from_url(settings.database_url)

    me = store.get_profile(username)
    other = store.get_profile(friend)
    if me is None or other is None:
        missing = username if me is None else friend
        print(f"[suggest] ❌ No profile for username={missing}")
        return 1

    shared = find_shared_courses(me.courses, other.courses)
    print(f"[suggest] {username} ↔ {friend}: {len(shared)} shared course(s)")
    if not shared:
        return 0

    rng = random.Random(seed) if seed is not None else None
    planner = StudyPlanner.from_settings(settings, rng=rng)
    suggestions = asyncio.run(planner.suggest(shared, origin))
    print(json.dumps([s.model_dump() for s in suggestions], indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="python -m app.planner")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("suggest", help="Study spaces for the courses two users share")
    p.add_argument("username")
    p.add_argument("friend")
    p.add_argument("--origin", default=DEFAULT_ORIGIN)
    p.add_argument("--seed", type=int, default=None, help="Seed for mock study space picks")

    args = ap.parse_args(argv)
    return _suggest(args.username, args.friend, args.origin, args.seed)


if __name__ == "__main__":
    sys.exit(main())
