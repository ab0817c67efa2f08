# app/ingestion/seed.py
from __future__ import annotations

from typing import Any, Dict, List

from app.accounts import hash_password
from app.store import ProfileStore
from app.workflow_logger import log_event

SEED_EMAIL_DOMAIN = "purdue.edu"

SEED_USERS: List[Dict[str, str]] = [
    {"username": "amelia", "password": "Boiler#1"},
    {"username": "rahul", "password": "Boiler#2"},
    {"username": "linh", "password": "Boiler#3"},
]

SEED_COURSES: Dict[str, List[Dict[str, Any]]] = {
    "amelia": [
        {
            "id": "cs180-amelia",
            "courseName": "CS 18000 - Problem Solving and Object-Oriented Programming",
            "professor": "Prof. Li",
            "location": "Lawson 1142",
            "time": "MWF · 10:30a-11:20a",
        },
        {
            "id": "math261-amelia",
            "courseName": "MA 26100 - Multivariate Calculus",
            "professor": "Dr. Owens",
            "location": "WALC 1055",
            "time": "TR · 12:00p-1:15p",
        },
    ],
    "rahul": [
        {
            "id": "cs180-rahul",
            "courseName": "CS 18000 - Problem Solving and Object-Oriented Programming",
            "professor": "Prof. Li",
            "location": "Lawson 1142",
            "time": "MWF · 10:30a-11:20a",
        },
        {
            "id": "stat350-rahul",
            "courseName": "STAT 35000 - Intro to Statistics",
            "professor": "Dr. Patel",
            "location": "REC 108",
            "time": "TR · 9:00a-10:15a",
        },
    ],
    "linh": [
        {
            "id": "math261-linh",
            "courseName": "MA 26100 - Multivariate Calculus",
            "professor": "Dr. Owens",
            "location": "WALC 1055",
            "time": "TR · 12:00p-1:15p",
        },
        {
            "id": "eng106-linh",
            "courseName": "ENGL 10600 - First-Year Composition",
            "professor": "Prof. Alvarez",
            "location": "HEAV 220",
            "time": "MWF · 2:30p-3:20p",
        },
    ],
}

SEED_FRIENDSHIPS: Dict[str, List[str]] = {
    "amelia": ["rahul"],
    "rahul": ["amelia"],
    "linh": [],
}


def seed_store(store: ProfileStore) -> List[str]:
    """
    Load the demo users, their schedules and friendships.
    Users that already exist are left alone; returns the usernames created.
    """
    created: List[str] = []
    for user in SEED_USERS:
        username = user["username"]
        if store.get_profile(username) is not None:
            continue
        store.create_profile(
            username=username,
            email=f"{username}@{SEED_EMAIL_DOMAIN}",
            password_hash=hash_password(user["password"]),
        )
        store.save_courses(username, SEED_COURSES.get(username, []), csv_file_name="seed.csv")
        created.append(username)

    ledger = store.friendship_ledger()
    for username, friends in SEED_FRIENDSHIPS.items():
        merged = list(ledger.get(username, []))
        merged.extend(f for f in friends if f not in merged)
        if merged:
            ledger[username] = merged
    store.save_friendship_ledger(ledger)

    log_event(subject="seed", status="completed", actor="system", event="SeedLoaded", extra={"created": created})
    return created
