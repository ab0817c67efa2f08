# app/ingestion/csv_schedule.py
# schedule CSV -> course records + per-row status

from __future__ import annotations

import csv
import io
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from match_engine.contracts import CourseRecord

COURSE_NAME_KEYS = ["Course Name", "course_name", "Course", "Name", "Title"]
PROFESSOR_KEYS = ["Professor", "professor", "Instructor", "Instructor / Organization"]
LOCATION_KEYS = ["Location", "location", "Room"]
TIME_KEYS = ["Time", "time", "Schedule"]
DAY_KEYS = ["Day Of Week", "Day", "Days"]
START_KEYS = ["Published Start", "Start", "Start Time"]
END_KEYS = ["Published End", "End", "End Time"]
META_KEYS = ["Section", "Type"]

FRIENDLY_FIELDS = ["Course Name / Name", "Professor / Instructor", "Location", "Time or Day + Start/End"]


class ScheduleParseError(ValueError):
    def __init__(self, message: str, status: Optional[List[Dict[str, object]]] = None) -> None:
        super().__init__(message)
        self.status = status or []


@dataclass
class ParsedSchedule:
    courses: List[CourseRecord] = field(default_factory=list)
    status: List[Dict[str, object]] = field(default_factory=list)


def _coerce(row: Dict[str, str], keys: List[str], fallback: str = "") -> str:
    for k in keys:
        val = row.get(k)
        if val is not None and str(val).strip():
            return str(val).strip()
    return fallback


def build_time_slot(row: Dict[str, str]) -> str:
    day = _coerce(row, DAY_KEYS)
    start = _coerce(row, START_KEYS)
    end = _coerce(row, END_KEYS)
    if not day and not start and not end:
        return ""
    if day and start and end:
        return f"{day} · {start}-{end}"
    if day and (start or end):
        return f"{day} · {start or end}"
    if start and end:
        return f"{start}-{end}"
    return start or end or day


def normalize_row(row: Dict[str, str], idx: int, id_prefix: str) -> Tuple[CourseRecord, Dict[str, object]]:
    course_name = _coerce(row, COURSE_NAME_KEYS)
    professor = _coerce(row, PROFESSOR_KEYS)
    location = _coerce(row, LOCATION_KEYS)
    slot = _coerce(row, TIME_KEYS) or build_time_slot(row)

    metadata = _coerce(row, META_KEYS)
    if metadata:
        professor = f"{professor} • {metadata}" if professor else metadata

    issues: List[str] = []
    if not course_name:
        issues.append("Missing course name")
    if not location:
        issues.append("Missing location")
    if not slot:
        issues.append("Missing time slot")

    course = CourseRecord(
        id=_coerce(row, ["id"]) or f"{id_prefix}-{idx}",
        courseName=course_name,
        professor=professor,
        location=location,
        time=slot,
    )
    status = {
        "row": idx + 1,
        "ok": not issues,
        "issues": issues or ["Parsed successfully"],
    }
    return course, status


def parse_schedule_csv(data: bytes | str, id_prefix: Optional[str] = None) -> ParsedSchedule:
    """
    Parse a schedule export with a header row.

    Only rows with a course name, location and time slot become courses;
    every row gets a status entry. Raises ScheduleParseError when the file
    cannot be read or no row is usable.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as ex:
            raise ScheduleParseError("Parsing failed. Upload a UTF-8 CSV export.") from ex

    id_prefix = id_prefix or str(int(time.time() * 1000))

    try:
        reader = csv.DictReader(io.StringIO(data))
        rows = [
            {(k or "").strip(): (v if isinstance(v, str) else "") for k, v in raw.items()}
            for raw in reader
        ]
    except csv.Error as ex:
        raise ScheduleParseError(
            'Parsing failed. Confirm the CSV columns use headers like "Course Name" and "Location".'
        ) from ex

    rows = [r for r in rows if any(v.strip() for v in r.values())]

    parsed = ParsedSchedule()
    for idx, row in enumerate(rows):
        course, status = normalize_row(row, idx, id_prefix)
        parsed.status.append(status)
        if status["ok"]:
            parsed.courses.append(course)

    if not parsed.courses:
        raise ScheduleParseError(
            "No valid course rows detected. Check column names or data quality.",
            status=parsed.status,
        )
    return parsed
