"""
Package CLI entrypoint for schedule ingestion tooling.

Usage:
  python -m app.ingestion seed
  python -m app.ingestion parse <schedule.csv>
  python -m app.ingestion upload <username> <schedule.csv>


"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from app.config import load_settings
from app.ingestion.csv_schedule import ScheduleParseError, parse_schedule_csv
from app.ingestion.seed import seed_store
from app.store import ProfileNotFound, SqlProfileStore


def _print_status(status: list) -> None:
    for row in status:
        mark = "✅" if row["ok"] else "❌"
        print(f"[parse] {mark} row {row['row']}: {row['issues'][0]}")


def _parse(path: Path) -> int:
    try:
        parsed = parse_schedule_csv(path.read_bytes())
    except ScheduleParseError as ex:
        _print_status(ex.status)
        print(f"[parse] ❌ {ex}")
        return 1

    _print_status(parsed.status)
    print(json.dumps([c.model_dump() for c in parsed.courses], indent=2, ensure_ascii=False))
    return 0


def _upload(username: str, path: Path) -> int:
    store = SqlProfileStore.from_url(load_settings().database_url)
    try:
        parsed = parse_schedule_csv(path.read_bytes())
        store.save_courses(username, parsed.courses, csv_file_name=path.name)
    except ScheduleParseError as ex:
        _print_status(ex.status)
        print(f"[upload] ❌ {ex}")
        return 1
    except ProfileNotFound:
        print(f"[upload] ❌ No profile for username={username}")
        return 1

    _print_status(parsed.status)
    print(f"[upload] ✅ stored {len(parsed.courses)} course(s) for {username}")
    return 0


def _seed() -> int:
    store = SqlProfileStore.from_url(load_settings().database_url)
    created = seed_store(store)
    print(f"[seed] created: {', '.join(created) if created else '(none, already seeded)'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="python -m app.ingestion")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("seed", help="Load the demo users, schedules and friendships")

    p_parse = sub.add_parser("parse", help="Parse a schedule CSV and print the result")
    p_parse.add_argument("csv_path")

    p_upload = sub.add_parser("upload", help="Replace a user's schedule from a CSV file")
    p_upload.add_argument("username")
    p_upload.add_argument("csv_path")

    args = ap.parse_args(argv)

    if args.cmd == "seed":
        return _seed()
    if args.cmd == "parse":
        return _parse(Path(args.csv_path))
    return _upload(args.username, Path(args.csv_path))


if __name__ == "__main__":
    sys.exit(main())
