# app/planner/__init__.py
"""
Study space planner package.

Public API:
- get_study_suggestions(courses, origin, *, ai=None, maps=None) -> list[StudySuggestion]
- StudyPlanner(ai, maps).suggest(courses, origin)
- SuggestionSession(planner).refresh(current_user, active_friend, shared_courses, origin)
"""

from .clients import AiSuggestionClient, DistanceClient, maps_dir_url
from .pipeline import StudyPlanner, StudySuggestion, get_study_suggestions
from .session import DEFAULT_ORIGIN, SuggestionSession, SuggestionState, accept_drop

__all__ = [
    "AiSuggestionClient",
    "DistanceClient",
    "maps_dir_url",
    "StudyPlanner",
    "StudySuggestion",
    "get_study_suggestions",
    "DEFAULT_ORIGIN",
    "SuggestionSession",
    "SuggestionState",
    "accept_drop",
]
