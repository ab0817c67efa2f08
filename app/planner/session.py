# app/planner/session.py
# per-viewer suggestion state: idle -> loading -> success | error

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from app.planner.pipeline import StudyPlanner, StudySuggestion
from app.workflow_logger import log_event

DEFAULT_ORIGIN = "Purdue Memorial Union, West Lafayette, IN"
FALLBACK_ERROR = "Unable to fetch suggestions right now."

Status = Literal["idle", "loading", "success", "error"]


class SuggestionState(BaseModel):
    status: Status = "idle"
    suggestions: List[StudySuggestion] = Field(default_factory=list)
    error: str = ""
    activeFriend: Optional[str] = None
    sharedCourses: List[Dict[str, Any]] = Field(default_factory=list)
    origin: str = DEFAULT_ORIGIN


def course_signature(courses: Optional[Sequence[Any]]) -> str:
    ids: List[str] = []
    for c in courses or []:
        if isinstance(c, BaseModel):
            c = c.model_dump()
        ids.append(str(c.get("id") or "") if isinstance(c, dict) else "")
    return "|".join(ids)


def _as_dicts(courses: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for c in courses or []:
        if isinstance(c, BaseModel):
            out.append(c.model_dump())
        elif isinstance(c, dict):
            out.append(dict(c))
    return out


def accept_drop(payload: Any) -> Optional[Dict[str, Any]]:
    """
    Validate a dropped (or re-selected) match card.

    Accepts a mapping or its JSON text. Returns {"username", "sharedCourses"}
    when the username is non-empty and sharedCourses is a list, else None.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload or "{}")
        except ValueError:
            log_event(subject="-", status="warning", actor="planner", event="DropIgnored", extra={"reason": "bad_json"})
            return None

    if not isinstance(payload, dict):
        return None
    username = payload.get("username")
    shared = payload.get("sharedCourses")
    if not isinstance(username, str) or not username.strip() or not isinstance(shared, list):
        return None
    return {"username": username.strip(), "sharedCourses": shared}


class SuggestionSession:
    """
    Suggestion state for one viewer.

    Every refresh bumps a generation counter; a pipeline run only applies
    its outcome if no newer refresh has started in the meantime, so late
    results for superseded inputs are dropped without a trace.
    """

    def __init__(self, planner: StudyPlanner, origin: str = DEFAULT_ORIGIN) -> None:
        self.planner = planner
        self.state = SuggestionState(origin=origin or DEFAULT_ORIGIN)
        self._generation = 0
        self._signature: Optional[Tuple[str, str, str, str]] = None

    @property
    def origin(self) -> str:
        return self.state.origin

    def is_current(self, current_user: str, active_friend: Optional[str], shared_courses: Optional[Sequence[Any]], origin: str) -> bool:
        return self._signature == (current_user or "", active_friend or "", course_signature(shared_courses), origin)

    def snapshot(self) -> SuggestionState:
        return self.state.model_copy(deep=True)

    async def refresh(
        self,
        current_user: Optional[str],
        active_friend: Optional[str],
        shared_courses: Optional[Sequence[Any]],
        origin: Optional[str] = None,
    ) -> SuggestionState:
        origin = (origin or "").strip() or self.state.origin
        self._generation += 1
        generation = self._generation
        self._signature = (current_user or "", active_friend or "", course_signature(shared_courses), origin)

        if not current_user or not active_friend or not shared_courses:
            self.state = SuggestionState(
                status="idle",
                activeFriend=active_friend or None,
                sharedCourses=_as_dicts(shared_courses),
                origin=origin,
            )
            return self.snapshot()

        self.state = SuggestionState(
            status="loading",
            activeFriend=active_friend,
            sharedCourses=_as_dicts(shared_courses),
            origin=origin,
        )

        try:
            result = await self.planner.suggest(shared_courses, origin)
        except Exception as ex:
            if generation != self._generation:
                return self.snapshot()
            log_event(
                subject=current_user,
                status="error",
                actor="planner",
                event="SuggestionPipelineFailed",
                extra={"active_friend": active_friend, "error": str(ex), "type": type(ex).__name__},
            )
            self.state.status = "error"
            self.state.error = str(ex) or FALLBACK_ERROR
            self.state.suggestions = []
            return self.snapshot()

        if generation == self._generation:
            self.state.status = "success"
            self.state.suggestions = result
            self.state.error = ""
        return self.snapshot()
