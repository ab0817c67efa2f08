from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class CourseRecord(BaseModel):
    """
    One enrolled class for one user, as produced by schedule ingestion.

    Text fields are never None: missing values are stored as "" so the
    equivalence rule can compare any two records field by field.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    courseName: str = ""
    professor: str = ""
    location: str = ""
    time: str = ""

    @field_validator("id", "courseName", "professor", "location", "time", mode="before")
    @classmethod
    def _empty_not_null(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class SharedCourse(CourseRecord):
    # the other user's equivalent record
    matchedCourse: CourseRecord


class MatchResult(BaseModel):
    username: str
    sharedCourses: List[SharedCourse] = Field(default_factory=list)
    score: int = 0


UserCourseMap = Mapping[str, Sequence[Any]]


def normalize(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).lower().strip()


def _field(record: Any, name: str) -> str:
    if isinstance(record, Mapping):
        val = record.get(name)
    else:
        val = getattr(record, name, None)
    return normalize(val)


def _field_match(a: Any, b: Any, name: str) -> bool:
    left = _field(a, name)
    right = _field(b, name)
    return bool(left) and bool(right) and left == right


def courses_overlap(a: Any, b: Any) -> bool:
    """
    Decide whether two course records denote the same class.

    Names across sections and sources are unreliable free text, so a room
    shared with either the meeting time or the instructor also counts:
      - name
      - location + time
      - name + professor
      - location + professor
    """
    name_match = _field_match(a, b, "courseName")
    location_match = _field_match(a, b, "location")
    professor_match = _field_match(a, b, "professor")
    time_match = _field_match(a, b, "time")

    return (
        name_match
        or (location_match and time_match)
        or (name_match and professor_match)
        or (location_match and professor_match)
    )


def coerce_courses(items: Optional[Iterable[Any]]) -> List[CourseRecord]:
    """Validate raw course entries, dropping anything that is not a usable record."""
    if not items or isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        return []
    out: List[CourseRecord] = []
    for item in items:
        if type(item) is CourseRecord:
            out.append(item)
            continue
        if isinstance(item, CourseRecord):
            # subclasses such as SharedCourse carry extra fields; keep the plain record
            item = item.model_dump(include=set(CourseRecord.model_fields))
        try:
            out.append(CourseRecord.model_validate(item))
        except ValidationError:
            continue
    return out


def find_shared_courses(current_courses: Iterable[Any], other_courses: Iterable[Any]) -> List[SharedCourse]:
    """
    For each current course, attach the first course of the other list that
    overlaps with it. First match in iteration order wins, not best match.
    """
    current = coerce_courses(current_courses)
    other = coerce_courses(other_courses)

    shared: List[SharedCourse] = []
    for course in current:
        matched = next((o for o in other if courses_overlap(course, o)), None)
        if matched is not None:
            shared.append(SharedCourse(**course.model_dump(), matchedCourse=matched))
    return shared


def _percent(part: int, whole: int) -> int:
    # half-up rounding; Python's round() would send 50.5 to 50
    return (200 * part + whole) // (2 * whole)


def compute_matches(current_user_key: Optional[str], course_map: Optional[UserCourseMap]) -> List[MatchResult]:
    """
    Rank every other user by how many of the current user's courses they share.

    Users with no overlap are left out. Sorting is stable on shared count, so
    ties keep the order in which users appear in course_map.
    """
    if not current_user_key or not course_map:
        return []

    current_courses = coerce_courses(course_map.get(current_user_key))
    if not current_courses:
        return []

    results: List[MatchResult] = []
    for username, courses in course_map.items():
        if username == current_user_key:
            continue
        shared = find_shared_courses(current_courses, courses)
        if not shared:
            continue
        results.append(
            MatchResult(
                username=username,
                sharedCourses=shared,
                score=_percent(len(shared), len(current_courses)),
            )
        )

    results.sort(key=lambda m: len(m.sharedCourses), reverse=True)
    return results


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def course_map_fingerprint(course_map: Optional[UserCourseMap]) -> str:
    if not course_map:
        return ""
    # key order matters for tie-breaking, so keep it as a list of pairs
    payload = [
        [username, [c.model_dump() for c in coerce_courses(courses)]]
        for username, courses in course_map.items()
    ]
    return hashlib.sha256(stable_json_dumps(payload).encode("utf-8")).hexdigest()


class MatchCache:
    """
    Memo for compute_matches keyed on the current user and a content
    fingerprint of the course map. Any change to either recomputes.
    """

    def __init__(self) -> None:
        self._key: Optional[Tuple[str, str]] = None
        self._value: List[MatchResult] = []

    def get(self, current_user_key: Optional[str], course_map: Optional[UserCourseMap]) -> List[MatchResult]:
        key = (current_user_key or "", course_map_fingerprint(course_map))
        if key != self._key:
            self._value = compute_matches(current_user_key, course_map)
            self._key = key
        return list(self._value)

    def invalidate(self) -> None:
        self._key = None
        self._value = []


