# app/store.py
"""
Profile persistence.

Two interchangeable stores share one interface:
- SqlProfileStore: SQLAlchemy-backed (Postgres in deployment, sqlite locally)
- InMemoryProfileStore: process-local state, used for demos and tests

Readers get snapshots (course map, friendship ledger); writers replace
whole values (a user's course list, the full ledger) in one transaction.
Every write notifies subscribers with the full profile list so derived
values such as matches can be recomputed from scratch.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Friendship, UserProfile, _new_uid
from app.schemas import Profile
from match_engine.contracts import CourseRecord, coerce_courses
from match_engine.friendships import FriendshipLedger

ProfileListener = Callable[[List[Profile]], None]


class ProfileNotFound(LookupError):
    pass


class ProfileExists(ValueError):
    pass


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def make_engine(database_url: str):
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, future=True)


class ProfileStore:
    def __init__(self) -> None:
        self._listeners: List[ProfileListener] = []

    # subscriptions
    def subscribe(self, callback: ProfileListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        profiles = self.list_profiles()
        for listener in list(self._listeners):
            listener(profiles)

    def ping(self) -> None:
        return None

    # reads
    def list_profiles(self) -> List[Profile]:
        raise NotImplementedError

    def get_profile(self, username: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        raise NotImplementedError

    def friendship_ledger(self) -> FriendshipLedger:
        raise NotImplementedError

    def course_map(self) -> Dict[str, List[CourseRecord]]:
        return {p.key: list(p.courses) for p in self.list_profiles()}

    # writes
    def create_profile(self, username: str, email: Optional[str] = None, password_hash: Optional[str] = None) -> Profile:
        raise NotImplementedError

    def save_courses(
        self,
        username: str,
        courses: Sequence[Any],
        csv_file_name: Optional[str] = None,
        csv_url: Optional[str] = None,
    ) -> Profile:
        raise NotImplementedError

    def save_friendship_ledger(self, ledger: Mapping[str, Sequence[str]]) -> None:
        raise NotImplementedError

    def save_origin(self, username: str, origin: str) -> Profile:
        raise NotImplementedError

    def delete_profile(self, username: str) -> None:
        raise NotImplementedError


def _ledger_edges(ledger: Mapping[str, Sequence[str]]) -> Iterable[tuple]:
    seen = set()
    for user, friends in ledger.items():
        for friend in friends or []:
            edge = (str(user), str(friend))
            if edge not in seen:
                seen.add(edge)
                yield edge


class InMemoryProfileStore(ProfileStore):
    def __init__(self) -> None:
        super().__init__()
        self._profiles: Dict[str, Profile] = {}
        self._ledger: FriendshipLedger = {}

    def list_profiles(self) -> List[Profile]:
        return [p.model_copy(deep=True) for p in self._profiles.values()]

    def get_profile(self, username: str) -> Optional[Profile]:
        p = self._profiles.get(username)
        return p.model_copy(deep=True) if p else None

    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        for p in self._profiles.values():
            if p.email and email and p.email.lower() == email.lower():
                return p.model_copy(deep=True)
        return None

    def friendship_ledger(self) -> FriendshipLedger:
        return {k: list(v) for k, v in self._ledger.items()}

    def create_profile(self, username: str, email: Optional[str] = None, password_hash: Optional[str] = None) -> Profile:
        if username in self._profiles or (email and self.get_profile_by_email(email)):
            raise ProfileExists(username)
        ts = now_utc()
        profile = Profile(
            uid=_new_uid(),
            username=username,
            email=email.lower() if email else None,
            passwordHash=password_hash,
            createdAt=ts,
            updatedAt=ts,
        )
        self._profiles[username] = profile
        self._notify()
        return profile.model_copy(deep=True)

    def save_courses(self, username, courses, csv_file_name=None, csv_url=None) -> Profile:
        profile = self._profiles.get(username)
        if profile is None:
            raise ProfileNotFound(username)
        updated = profile.model_copy(
            update={
                "courses": coerce_courses(courses),
                "csvFileName": csv_file_name if csv_file_name is not None else profile.csvFileName,
                "csvUrl": csv_url if csv_url is not None else profile.csvUrl,
                "updatedAt": now_utc(),
            }
        )
        self._profiles[username] = updated
        self._notify()
        return updated.model_copy(deep=True)

    def save_friendship_ledger(self, ledger) -> None:
        fresh: FriendshipLedger = {}
        for user, friend in _ledger_edges(ledger):
            fresh.setdefault(user, []).append(friend)
        self._ledger = fresh
        self._notify()

    def save_origin(self, username: str, origin: str) -> Profile:
        profile = self._profiles.get(username)
        if profile is None:
            raise ProfileNotFound(username)
        updated = profile.model_copy(update={"origin": origin, "updatedAt": now_utc()})
        self._profiles[username] = updated
        self._notify()
        return updated.model_copy(deep=True)

    def delete_profile(self, username: str) -> None:
        if self._profiles.pop(username, None) is None:
            raise ProfileNotFound(username)
        self._notify()


def _row_to_profile(row: UserProfile) -> Profile:
    return Profile(
        uid=str(row.user_id),
        username=row.username,
        email=row.email,
        courses=coerce_courses(row.courses),
        csvFileName=row.csv_file_name,
        csvUrl=row.csv_url,
        origin=row.study_origin,
        createdAt=row.created_at,
        updatedAt=row.updated_at,
        passwordHash=row.password_hash,
    )


class SqlProfileStore(ProfileStore):
    def __init__(self, engine, create_tables: bool = True) -> None:
        super().__init__()
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        if create_tables:
            Base.metadata.create_all(bind=engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlProfileStore":
        return cls(make_engine(database_url))

    def _session(self) -> Session:
        return self.session_factory()

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def list_profiles(self) -> List[Profile]:
        with self._session() as db:
            rows = db.query(UserProfile).order_by(UserProfile.created_at.asc(), UserProfile.username.asc()).all()
            return [_row_to_profile(r) for r in rows]

    def get_profile(self, username: str) -> Optional[Profile]:
        with self._session() as db:
            row = db.query(UserProfile).filter(UserProfile.username == username).first()
            return _row_to_profile(row) if row else None

    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        if not email:
            return None
        with self._session() as db:
            row = db.query(UserProfile).filter(UserProfile.email == email.lower()).first()
            return _row_to_profile(row) if row else None

    def friendship_ledger(self) -> FriendshipLedger:
        with self._session() as db:
            rows = db.query(Friendship).order_by(Friendship.friendship_id.asc()).all()
            ledger: FriendshipLedger = {}
            for r in rows:
                ledger.setdefault(r.user_key, []).append(r.friend_key)
            return ledger

    def create_profile(self, username: str, email: Optional[str] = None, password_hash: Optional[str] = None) -> Profile:
        with self._session() as db:
            dupe = db.query(UserProfile).filter(UserProfile.username == username)
            if email:
                dupe = db.query(UserProfile).filter(
                    (UserProfile.username == username) | (UserProfile.email == email.lower())
                )
            if dupe.first():
                raise ProfileExists(username)

            ts = now_utc()
            row = UserProfile(
                username=username,
                email=email.lower() if email else None,
                password_hash=password_hash,
                courses=[],
                created_at=ts,
                updated_at=ts,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            profile = _row_to_profile(row)
        self._notify()
        return profile

    def save_courses(self, username, courses, csv_file_name=None, csv_url=None) -> Profile:
        with self._session() as db:
            row = db.query(UserProfile).filter(UserProfile.username == username).first()
            if row is None:
                raise ProfileNotFound(username)

            row.courses = [c.model_dump() for c in coerce_courses(courses)]
            if csv_file_name is not None:
                row.csv_file_name = csv_file_name
                row.csv_uploaded_at = now_utc()
            if csv_url is not None:
                row.csv_url = csv_url
            row.updated_at = now_utc()
            db.commit()
            db.refresh(row)
            profile = _row_to_profile(row)
        self._notify()
        return profile

    def save_friendship_ledger(self, ledger) -> None:
        with self._session() as db:
            db.query(Friendship).delete()
            for user, friend in _ledger_edges(ledger):
                db.add(Friendship(user_key=user, friend_key=friend, created_at=now_utc()))
            db.commit()
        self._notify()

    def save_origin(self, username: str, origin: str) -> Profile:
        with self._session() as db:
            row = db.query(UserProfile).filter(UserProfile.username == username).first()
            if row is None:
                raise ProfileNotFound(username)

            row.study_origin = origin
            row.updated_at = now_utc()
            db.commit()
            db.refresh(row)
            profile = _row_to_profile(row)
        self._notify()
        return profile

    def delete_profile(self, username: str) -> None:
        with self._session() as db:
            row = db.query(UserProfile).filter(UserProfile.username == username).first()
            if row is None:
                raise ProfileNotFound(username)
            db.delete(row)
            db.commit()
        self._notify()
