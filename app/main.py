from __future__ import annotations

import hashlib
import os
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import (
    Depends,
    FastAPI,
    File,
    HTTPException,
    Request,
    UploadFile,
)
from fastapi.concurrency import run_in_threadpool

from app.accounts import AccountError, register_or_sign_in
from app.config import Settings, load_settings
from app.ingestion.csv_schedule import FRIENDLY_FIELDS, ScheduleParseError, parse_schedule_csv
from app.planner.pipeline import StudyPlanner
from app.planner.session import DEFAULT_ORIGIN, SuggestionSession, SuggestionState, accept_drop
from app.schemas import (
    FriendConfirmOut,
    FriendIn,
    FriendsOut,
    MatchOut,
    OriginIn,
    Profile,
    RegisterIn,
    RegisterOut,
    RowStatus,
    ScheduleUploadOut,
    SuggestionRequestIn,
)
from app.store import ProfileNotFound, ProfileStore, SqlProfileStore
from app.workflow_logger import log_event
from match_engine.contracts import MatchCache, find_shared_courses
from match_engine.friendships import FriendshipLedger, confirm_friendship, friends_of, is_friend


class AppServices:
    """Service handles created once at startup and shared by every request."""

    def __init__(self, settings: Settings, store: ProfileStore, planner: StudyPlanner) -> None:
        self.settings = settings
        self.store = store
        self.planner = planner
        self.match_caches: Dict[str, MatchCache] = {}
        self.sessions: Dict[str, SuggestionSession] = {}
        self.unsubscribe = store.subscribe(self._on_profiles_changed)

    def _on_profiles_changed(self, profiles: List[Profile]) -> None:
        # live update: derived matches are recomputed from scratch on next read
        for cache in self.match_caches.values():
            cache.invalidate()

    def match_cache(self, username: str) -> MatchCache:
        return self.match_caches.setdefault(username, MatchCache())

    def session(self, username: str, origin: Optional[str] = None) -> SuggestionSession:
        # origin only seeds a new session; a live session keeps its own
        if username not in self.sessions:
            self.sessions[username] = SuggestionSession(self.planner, origin or DEFAULT_ORIGIN)
        return self.sessions[username]


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def compute_sha256(data: bytes) -> str:
    h = hashlib.sha256()
    h.update(data)
    return h.hexdigest()


def save_upload(upload_dir: str, filename: str, raw: bytes) -> Dict[str, Any]:
    os.makedirs(upload_dir, exist_ok=True)
    safe_name = f"{uuid.uuid4()}_{os.path.basename(filename or 'schedule.csv')}"
    path = os.path.join(upload_dir, safe_name)
    with open(path, "wb") as f:
        f.write(raw)
    return {
        "filename": filename,
        "sha256": compute_sha256(raw),
        "storage_uri": path,
        "size_bytes": len(raw),
    }


def require_profile(services: AppServices, username: str) -> Profile:
    profile = services.store.get_profile(username)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


def befriend(services: AppServices, username: str, friend_name: str) -> Tuple[Profile, Profile, FriendshipLedger]:
    """
    Confirm a friendship in both directions and persist the whole ledger.
    Blocking store calls; async routes run this in the threadpool.
    """
    me = require_profile(services, username)
    if friend_name == username:
        raise HTTPException(status_code=400, detail="Cannot befriend yourself")
    friend = require_profile(services, friend_name)

    ledger = confirm_friendship(services.store.friendship_ledger(), username, friend_name)
    services.store.save_friendship_ledger(ledger)

    log_event(
        subject=username,
        status="confirmed",
        actor="student",
        event="FriendshipConfirmed",
        extra={"friend": friend_name},
    )
    return me, friend, ledger


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProfileStore] = None,
    planner: Optional[StudyPlanner] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store or SqlProfileStore.from_url(settings.database_url)
    planner = planner or StudyPlanner.from_settings(settings)

    app = FastAPI(title="Study Graph Backend")
    app.state.services = AppServices(settings, store, planner)
    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:

    @app.get("/health/db")
    def health_db(services: AppServices = Depends(get_services)):
        services.store.ping()
        return {"ok": True}

    # ACCOUNTS
    @app.post("/api/users/register", response_model=RegisterOut)
    def register(body: RegisterIn, services: AppServices = Depends(get_services)):
        try:
            result = register_or_sign_in(services.store, body.email, body.password, body.username)
        except AccountError as ex:
            raise HTTPException(status_code=400, detail=str(ex))

        return RegisterOut(
            **result.model_dump(),
            message="Profile created." if result.isNew else "Signed in successfully.",
        )

    @app.get("/api/users", response_model=List[Profile])
    def list_users(services: AppServices = Depends(get_services)):
        return services.store.list_profiles()

    @app.delete("/api/users/{username}")
    def delete_user(username: str, services: AppServices = Depends(get_services)):
        try:
            services.store.delete_profile(username)
        except ProfileNotFound:
            raise HTTPException(status_code=404, detail="User not found")
        services.sessions.pop(username, None)
        services.match_caches.pop(username, None)

        log_event(subject=username, status="deleted", actor="student", event="ProfileDeleted")
        return {"deleted": username}

    # SCHEDULE
    @app.get("/api/users/{username}/courses", response_model=Profile)
    def get_courses(username: str, services: AppServices = Depends(get_services)):
        return require_profile(services, username)

    @app.post("/api/users/{username}/schedule", response_model=ScheduleUploadOut)
    def upload_schedule(
        username: str,
        file: UploadFile = File(...),
        services: AppServices = Depends(get_services),
    ):
        require_profile(services, username)
        raw = file.file.read()

        try:
            parsed = parse_schedule_csv(raw)
        except ScheduleParseError as ex:
            log_event(
                subject=username,
                status="rejected",
                actor="student",
                event="ScheduleRejected",
                extra={"filename": file.filename, "reason": str(ex)},
            )
            raise HTTPException(
                status_code=422,
                detail={
                    "message": str(ex),
                    "expectedColumns": FRIENDLY_FIELDS,
                    "status": ex.status,
                },
            )

        meta = save_upload(services.settings.upload_dir, file.filename or "schedule.csv", raw)
        profile = services.store.save_courses(
            username,
            parsed.courses,
            csv_file_name=meta["filename"],
            csv_url=meta["storage_uri"],
        )

        log_event(
            subject=username,
            status="uploaded",
            actor="student",
            event="ScheduleUploaded",
            extra={
                "filename": meta["filename"],
                "sha256": meta["sha256"],
                "rows": len(parsed.status),
                "courses": len(parsed.courses),
            },
        )

        return ScheduleUploadOut(
            username=username,
            csvFileName=profile.csvFileName,
            courses=profile.courses,
            status=[RowStatus(**s) for s in parsed.status],
        )

    # MATCHES
    @app.get("/api/users/{username}/matches", response_model=List[MatchOut])
    def get_matches(username: str, services: AppServices = Depends(get_services)):
        # unknown users have no courses, so no matches; no cache entry either
        if services.store.get_profile(username) is None:
            return []

        course_map = services.store.course_map()
        matches = services.match_cache(username).get(username, course_map)
        ledger = services.store.friendship_ledger()
        return [
            MatchOut(**m.model_dump(), isFriend=is_friend(ledger, username, m.username))
            for m in matches
        ]

    # FRIENDS
    @app.get("/api/users/{username}/friends", response_model=FriendsOut)
    def get_friends(username: str, services: AppServices = Depends(get_services)):
        require_profile(services, username)
        return FriendsOut(username=username, friends=friends_of(services.store.friendship_ledger(), username))

    @app.post("/api/users/{username}/friends", response_model=FriendConfirmOut)
    async def add_friend(username: str, body: FriendIn, services: AppServices = Depends(get_services)):
        friend_name = body.friendUsername.strip()
        me, friend, ledger = await run_in_threadpool(befriend, services, username, friend_name)

        shared = body.sharedCourses
        if shared is None:
            shared = [c.model_dump() for c in find_shared_courses(me.courses, friend.courses)]

        session = services.session(username, me.origin)
        state = await session.refresh(username, friend_name, shared, session.origin)
        return FriendConfirmOut(username=username, friends=friends_of(ledger, username), suggestions=state)

    # SUGGESTIONS
    @app.get("/api/users/{username}/suggestions", response_model=SuggestionState)
    def get_suggestions(username: str, services: AppServices = Depends(get_services)):
        profile = require_profile(services, username)
        return services.session(username, profile.origin).snapshot()

    @app.post("/api/users/{username}/suggestions", response_model=SuggestionState)
    async def request_suggestions(
        username: str,
        body: SuggestionRequestIn,
        services: AppServices = Depends(get_services),
    ):
        profile = await run_in_threadpool(require_profile, services, username)
        session = services.session(username, profile.origin)
        return await session.refresh(username, body.activeFriend, body.sharedCourses, body.origin)

    @app.post("/api/users/{username}/suggestions/drop", response_model=SuggestionState)
    async def drop_match(username: str, request: Request, services: AppServices = Depends(get_services)):
        profile = await run_in_threadpool(require_profile, services, username)
        session = services.session(username, profile.origin)

        dropped = accept_drop(await request.body())
        if dropped is None:
            log_event(subject=username, status="ignored", actor="student", event="DropIgnored")
            return session.snapshot()

        # dropping a match card befriends that user, same as the friend button
        await run_in_threadpool(befriend, services, username, dropped["username"])
        return await session.refresh(username, dropped["username"], dropped["sharedCourses"], session.origin)

    @app.put("/api/users/{username}/origin", response_model=SuggestionState)
    async def set_origin(username: str, body: OriginIn, services: AppServices = Depends(get_services)):
        profile = await run_in_threadpool(require_profile, services, username)
        origin = body.origin.strip()
        if not origin:
            raise HTTPException(status_code=422, detail="Origin is required")

        session = services.session(username, profile.origin)
        await run_in_threadpool(services.store.save_origin, username, origin)

        state = session.state
        if session.is_current(username, state.activeFriend, state.sharedCourses, origin):
            return session.snapshot()
        return await session.refresh(username, state.activeFriend, state.sharedCourses, origin)


app = create_app()
