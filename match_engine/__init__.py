# match_engine/__init__.py
"""
Course-overlap matcher and ranking engine.

Pure functions over course snapshots; no I/O.
"""

from .contracts import (
    CourseRecord,
    MatchCache,
    MatchResult,
    SharedCourse,
    compute_matches,
    courses_overlap,
    find_shared_courses,
    normalize,
)
from .friendships import confirm_friendship, friends_of, is_friend

__all__ = [
    "CourseRecord",
    "SharedCourse",
    "MatchResult",
    "MatchCache",
    "normalize",
    "courses_overlap",
    "find_shared_courses",
    "compute_matches",
    "confirm_friendship",
    "friends_of",
    "is_friend",
]
