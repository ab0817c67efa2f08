#!/usr/bin/env python3
"""
run_demo_matches.py

Runs the demo users end-to-end against your FastAPI backend:

1) POST /api/users/register                  (one per demo user)
2) POST /api/users/{username}/schedule       (multipart: CSV built from the seed courses)
3) GET  /api/users/{username}/matches
4) POST /api/users/{username}/friends        (top match, triggers study space suggestions)

Outputs:
- demo_results.json (full responses per user)
- demo_results.csv  (one row per match)
"""

from __future__ import annotations

import argparse
import csv
import io
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

import requests

from app.ingestion.seed import SEED_COURSES, SEED_EMAIL_DOMAIN, SEED_USERS


def die(msg: str) -> None:
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


def save_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def save_csv(path: Path, rows: List[Dict[str, Any]], fieldnames: List[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def courses_to_csv(courses: List[Dict[str, Any]]) -> bytes:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(["id", "Course Name", "Professor", "Location", "Time"])
    for c in courses:
        w.writerow([c["id"], c["courseName"], c["professor"], c["location"], c["time"]])
    return buf.getvalue().encode("utf-8")


def post_register(base_url: str, username: str, password: str, timeout_s: int) -> Dict[str, Any]:
    url = f"{base_url}/api/users/register"
    payload = {"username": username, "email": f"{username}@{SEED_EMAIL_DOMAIN}", "password": password}
    r = requests.post(url, json=payload, timeout=timeout_s)
    if r.status_code != 200:
        die(f"POST /api/users/register failed ({r.status_code}): {r.text}")
    return r.json()


def post_schedule(base_url: str, username: str, courses: List[Dict[str, Any]], timeout_s: int) -> Dict[str, Any]:
    url = f"{base_url}/api/users/{username}/schedule"
    files = [("file", (f"{username}.csv", courses_to_csv(courses), "text/csv"))]
    r = requests.post(url, files=files, timeout=timeout_s)
    if r.status_code != 200:
        die(f"POST /schedule failed ({r.status_code}): {r.text}")
    return r.json()


def get_matches(base_url: str, username: str, timeout_s: int) -> List[Dict[str, Any]]:
    url = f"{base_url}/api/users/{username}/matches"
    r = requests.get(url, timeout=timeout_s)
    if r.status_code != 200:
        die(f"GET /matches failed ({r.status_code}): {r.text}")
    return r.json()


def post_friend(base_url: str, username: str, friend: str, timeout_s: int) -> Dict[str, Any]:
    url = f"{base_url}/api/users/{username}/friends"
    r = requests.post(url, json={"friendUsername": friend}, timeout=timeout_s)
    if r.status_code != 200:
        die(f"POST /friends failed ({r.status_code}): {r.text}")
    return r.json()


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default="http://127.0.0.1:8000", help="FastAPI base URL")
    ap.add_argument("--timeout", type=int, default=60, help="HTTP timeout seconds")
    ap.add_argument("--sleep", type=float, default=0.0, help="Seconds to sleep between users")
    ap.add_argument("--out-json", default="demo_results/demo_results.json")
    ap.add_argument("--out-csv", default="demo_results/demo_results.csv")
    args = ap.parse_args()

    base_url = args.base_url.rstrip("/")

    for user in SEED_USERS:
        username = user["username"]
        print(f"\n=== Registering {username} ===")
        reg = post_register(base_url, username, user["password"], args.timeout)
        print(f"{reg['message']} uid = {reg['uid']}")

        upload = post_schedule(base_url, username, SEED_COURSES[username], args.timeout)
        print(f"stored {len(upload['courses'])} course(s) from {upload['csvFileName']}")

    all_results: List[Dict[str, Any]] = []
    summary_rows: List[Dict[str, Any]] = []

    for user in SEED_USERS:
        username = user["username"]
        print(f"\n=== Matches for {username} ===")
        matches = get_matches(base_url, username, args.timeout)
        for m in matches:
            print(f"{m['username']}: {len(m['sharedCourses'])} shared, score {m['score']}%")
            summary_rows.append({
                "username": username,
                "match": m["username"],
                "shared_courses": len(m["sharedCourses"]),
                "score": m["score"],
                "already_friends": m.get("isFriend"),
            })

        friend_resp = None
        if matches:
            top = matches[0]["username"]
            friend_resp = post_friend(base_url, username, top, args.timeout)
            state = friend_resp["suggestions"]
            print(f"befriended {top}: suggestions status = {state['status']} ({len(state['suggestions'])} spots)")

        all_results.append({"username": username, "matches": matches, "friendResponse": friend_resp})

        if args.sleep > 0:
            time.sleep(args.sleep)

    out_json = Path(args.out_json)
    out_csv = Path(args.out_csv)
    save_json(out_json, all_results)
    save_csv(out_csv, summary_rows, fieldnames=["username", "match", "shared_courses", "score", "already_friends"])

    print("\n=== DONE ===")
    print(f"Wrote: {out_json}")
    print(f"Wrote: {out_csv}")


if __name__ == "__main__":
    main()
