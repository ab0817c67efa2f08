# app/planner/pipeline.py
# shared courses -> study space suggestions with walking distances

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from app.planner.clients import DEFAULT_CLASS_LOCATION, AiSuggestionClient, DistanceClient
from app.workflow_logger import log_event

DEFAULT_COURSE_NAME = "Shared course"
DEFAULT_PROS = ["Open seating", "Power outlets nearby"]


class StudySuggestion(BaseModel):
    id: str
    courseName: str
    classLocation: str
    locationName: str
    pros: List[str] = Field(default_factory=list)
    distanceText: str
    mapsUrl: str
    distanceSource: str
    courseContext: str


def _sanitize(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _prepare_course(raw: Any) -> Dict[str, str]:
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        raw = {}
    return {
        "id": _sanitize(raw.get("id")),
        "courseName": _sanitize(raw.get("courseName")) or DEFAULT_COURSE_NAME,
        "location": _sanitize(raw.get("location")) or DEFAULT_CLASS_LOCATION,
    }


async def get_study_suggestions(
    courses: Optional[Sequence[Any]],
    origin: str,
    *,
    ai: Optional[AiSuggestionClient] = None,
    maps: Optional[DistanceClient] = None,
) -> List[StudySuggestion]:
    """
    Build one suggestion per (course, candidate space) pair.

    Courses are handled strictly in order, and each candidate's distance is
    awaited before the next request goes out, so output order is course
    order then candidate order. Service failures are absorbed by the
    clients; with no clients at all, mock spaces and mock distances are used.
    """
    if not courses:
        return []

    ai = ai or AiSuggestionClient()
    maps = maps or DistanceClient()

    suggestions: List[StudySuggestion] = []
    for raw in courses:
        course = _prepare_course(raw)
        spaces = await ai.fetch_study_spaces(course["location"])

        for spot in spaces:
            location_name = spot.get("locationName") or ""
            distance = await maps.fetch_distance(origin, spot.get("anchor") or location_name)
            suggestions.append(
                StudySuggestion(
                    id=f"{course['id'] or course['courseName']}-{location_name}",
                    courseName=course["courseName"],
                    classLocation=course["location"],
                    locationName=location_name,
                    pros=list(spot.get("pros") or DEFAULT_PROS),
                    distanceText=distance["text"],
                    mapsUrl=distance["url"],
                    distanceSource=distance["source"],
                    courseContext=spot.get("context") or f"Suggested for {course['courseName']}",
                )
            )

    log_event(
        subject=origin,
        status="success",
        actor="planner",
        event="SuggestionsBuilt",
        extra={"course_count": len(courses), "suggestion_count": len(suggestions)},
    )
    return suggestions


class StudyPlanner:
    """Explicitly constructed handle bundling the AI and maps clients."""

    def __init__(self, ai: Optional[AiSuggestionClient] = None, maps: Optional[DistanceClient] = None) -> None:
        self.ai = ai or AiSuggestionClient()
        self.maps = maps or DistanceClient()

    async def suggest(self, courses: Optional[Sequence[Any]], origin: str) -> List[StudySuggestion]:
        return await get_study_suggestions(courses, origin, ai=self.ai, maps=self.maps)

    @classmethod
    def from_settings(cls, settings, http=None, rng=None) -> "StudyPlanner":
        ai = AiSuggestionClient(
            api_key=settings.genai_api_key,
            endpoint=settings.genai_endpoint,
            model=settings.genai_model,
            http=http,
            timeout_secs=settings.external_timeout_secs,
            rng=rng,
        )
        maps = DistanceClient(
            api_key=settings.maps_api_key,
            endpoint=settings.maps_endpoint,
            http=http,
            timeout_secs=settings.external_timeout_secs,
        )
        return cls(ai=ai, maps=maps)
