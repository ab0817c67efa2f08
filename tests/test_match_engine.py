"""
Course equivalence, overlap extraction and match ranking.
"""
import itertools

import pytest

from app.ingestion.seed import SEED_COURSES
from match_engine.contracts import (
    CourseRecord,
    MatchCache,
    compute_matches,
    course_map_fingerprint,
    courses_overlap,
    find_shared_courses,
    normalize,
)


def course(id, name="", professor="", location="", time=""):
    return {"id": id, "courseName": name, "professor": professor, "location": location, "time": time}


# =============================================================================
# normalize
# =============================================================================

@pytest.mark.parametrize("raw, expected", [
    ("  CS 180 ", "cs 180"),
    ("Lawson 1142", "lawson 1142"),
    ("", ""),
    (None, ""),
    ("\tMWF · 10:30a\n", "mwf · 10:30a"),
])
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw", ["  MiXeD  ", "", "already normal", " ÉCOLE "])
def test_normalize_is_idempotent(raw):
    assert normalize(normalize(raw)) == normalize(raw)


# =============================================================================
# courses_overlap
# =============================================================================

def test_name_match_alone_is_enough():
    a = course("c1", name="CS 180", location="Lawson 1142", time="MWF 10:30")
    b = course("c2", name="cs 180 ", location="Lawson 1142", time="TR 9:00")
    assert courses_overlap(a, b) is True


def test_location_and_time_match():
    a = course("c1", name="Intro", location="WALC 1055", time="TR 12:00")
    b = course("c2", name="Different title", location="walc 1055", time="tr 12:00")
    assert courses_overlap(a, b) is True


def test_location_and_professor_match():
    a = course("c1", name="A", professor="Dr. Owens", location="WALC 1055", time="MWF")
    b = course("c2", name="B", professor="dr. owens", location="WALC 1055", time="TR")
    assert courses_overlap(a, b) is True


def test_location_alone_is_not_enough():
    a = course("c1", name="A", location="WALC 1055", time="MWF")
    b = course("c2", name="B", location="WALC 1055", time="TR")
    assert courses_overlap(a, b) is False


def test_professor_and_time_without_location_is_not_enough():
    a = course("c1", name="A", professor="Prof. Li", time="MWF")
    b = course("c2", name="B", professor="Prof. Li", time="MWF")
    assert courses_overlap(a, b) is False


def test_empty_fields_never_match():
    assert courses_overlap(course("a"), course("b")) is False
    # one side blank is not a match either
    assert courses_overlap(course("a", name="CS 180"), course("b")) is False


def test_missing_fields_are_treated_as_empty():
    assert courses_overlap({"id": "a"}, {"id": "b", "courseName": None}) is False
    assert courses_overlap({"courseName": "X"}, CourseRecord(id="b", courseName="x")) is True


_SAMPLES = [
    course("1", name="CS 180", professor="Prof. Li", location="Lawson 1142", time="MWF"),
    course("2", name="cs 180"),
    course("3", location="lawson 1142", time="mwf"),
    course("4", professor="prof. li", location="LAWSON 1142"),
    course("5", name="MA 261", location="WALC", time="TR"),
    course("6", location="WALC", time="TR"),
    course("7"),
    course("8", name="", professor="Prof. Li", time="MWF"),
]


@pytest.mark.parametrize("a, b", list(itertools.product(_SAMPLES, repeat=2)))
def test_overlap_is_symmetric(a, b):
    assert courses_overlap(a, b) == courses_overlap(b, a)


# =============================================================================
# find_shared_courses
# =============================================================================

def test_find_shared_courses_attaches_matched_course():
    current = [course("c1", name="CS 180", location="Lawson 1142", time="MWF 10:30")]
    other = [course("c2", name="cs 180", location="Lawson 1142", time="TR 9:00")]

    shared = find_shared_courses(current, other)

    assert len(shared) == 1
    assert shared[0].id == "c1"
    assert shared[0].matchedCourse.id == "c2"


def test_first_match_wins_even_if_a_later_one_matches_more_fields():
    current = [course("c1", name="CS 180", professor="Prof. Li", location="Lawson 1142", time="MWF")]
    other = [
        course("weak", name="CS 180"),
        course("strong", name="CS 180", professor="Prof. Li", location="Lawson 1142", time="MWF"),
    ]
    shared = find_shared_courses(current, other)
    assert [s.matchedCourse.id for s in shared] == ["weak"]


def test_shared_courses_keep_current_order_and_skip_unmatched():
    current = [course("a", name="A"), course("b", name="B"), course("c", name="C")]
    other = [course("x", name="C"), course("y", name="A")]
    shared = find_shared_courses(current, other)
    assert [(s.id, s.matchedCourse.id) for s in shared] == [("a", "y"), ("c", "x")]


def test_at_most_one_entry_per_current_course():
    current = [course("a", name="A")]
    other = [course("x", name="A"), course("y", name="a")]
    assert len(find_shared_courses(current, other)) == 1


def test_shared_courses_can_be_matched_again():
    shared = find_shared_courses(SEED_COURSES["amelia"], SEED_COURSES["rahul"])

    again = find_shared_courses(shared, SEED_COURSES["rahul"])
    assert [(s.id, s.matchedCourse.id) for s in again] == [("cs180-amelia", "cs180-rahul")]

    # shared records on the other side are compared as plain records
    reverse = find_shared_courses(SEED_COURSES["rahul"], shared)
    assert [(s.id, s.matchedCourse.id) for s in reverse] == [("cs180-rahul", "cs180-amelia")]
    assert type(reverse[0].matchedCourse) is CourseRecord


def test_ranker_accepts_shared_course_lists():
    shared = find_shared_courses(SEED_COURSES["amelia"], SEED_COURSES["rahul"])
    matches = compute_matches("me", {"me": shared, "you": SEED_COURSES["rahul"]})

    assert [m.username for m in matches] == ["you"]
    assert matches[0].score == 100
    assert MatchCache().get("me", {"me": shared, "you": shared})[0].score == 100


def test_empty_inputs_give_empty_output():
    assert find_shared_courses([], [course("x", name="A")]) == []
    assert find_shared_courses([course("a", name="A")], []) == []
    assert find_shared_courses(None, None) == []


# =============================================================================
# compute_matches
# =============================================================================

def _two_user_map():
    return {"amelia": SEED_COURSES["amelia"], "rahul": SEED_COURSES["rahul"]}


def test_seed_users_share_cs180():
    matches = compute_matches("amelia", _two_user_map())

    assert len(matches) == 1
    assert matches[0].username == "rahul"
    assert len(matches[0].sharedCourses) == 1
    assert matches[0].sharedCourses[0].matchedCourse.id == "cs180-rahul"
    assert matches[0].score == 50


@pytest.mark.parametrize("key, course_map", [
    ("amelia", {"rahul": SEED_COURSES["rahul"]}),
    ("", _two_user_map()),
    (None, _two_user_map()),
    ("amelia", {"amelia": [], "rahul": SEED_COURSES["rahul"]}),
    ("amelia", {}),
])
def test_no_current_courses_means_no_matches(key, course_map):
    assert compute_matches(key, course_map) == []


def test_users_without_overlap_are_excluded():
    course_map = {
        "me": [course("1", name="A"), course("2", name="B")],
        "nobody": [course("3", name="Z")],
        "someone": [course("4", name="b")],
    }
    matches = compute_matches("me", course_map)
    assert [m.username for m in matches] == ["someone"]


def test_sorted_by_shared_count_with_stable_ties():
    course_map = {
        "me": [course("1", name="A"), course("2", name="B"), course("3", name="C")],
        "one_a": [course("x", name="A")],
        "three": [course("y1", name="A"), course("y2", name="B"), course("y3", name="C")],
        "one_b": [course("z", name="C")],
        "two": [course("w1", name="B"), course("w2", name="C")],
    }
    matches = compute_matches("me", course_map)

    assert [m.username for m in matches] == ["three", "two", "one_a", "one_b"]
    counts = [len(m.sharedCourses) for m in matches]
    assert counts == sorted(counts, reverse=True)
    assert [m.score for m in matches] == [100, 67, 33, 33]


def test_score_rounds_half_up():
    me = [course(str(i), name=f"N{i}") for i in range(8)]
    # 1/8 = 12.5% -> 13
    course_map = {"me": me, "other": [course("x", name="N0")]}
    assert compute_matches("me", course_map)[0].score == 13


def test_invalid_entries_do_not_raise():
    course_map = {
        "me": [course("1", name="A"), "garbage", {"courseName": "no id"}],
        "other": [None, course("2", name="a")],
    }
    matches = compute_matches("me", course_map)
    assert len(matches) == 1
    assert matches[0].score == 100


# =============================================================================
# MatchCache
# =============================================================================

def test_cache_recomputes_when_map_changes():
    cache = MatchCache()
    course_map = _two_user_map()
    first = cache.get("amelia", course_map)
    assert [m.username for m in first] == ["rahul"]

    course_map = dict(course_map)
    course_map["linh"] = SEED_COURSES["linh"]
    second = cache.get("amelia", course_map)
    assert [m.username for m in second] == ["rahul", "linh"]


def test_cache_recomputes_when_user_changes():
    cache = MatchCache()
    course_map = {k: v for k, v in SEED_COURSES.items()}
    assert [m.username for m in cache.get("rahul", course_map)] == ["amelia"]
    assert [m.username for m in cache.get("linh", course_map)] == ["amelia"]


def test_fingerprint_tracks_content_and_order():
    a = {"x": [course("1", name="A")], "y": [course("2", name="B")]}
    b = {"y": [course("2", name="B")], "x": [course("1", name="A")]}
    c = {"x": [course("1", name="A2")], "y": [course("2", name="B")]}
    assert course_map_fingerprint(a) == course_map_fingerprint(dict(a))
    assert course_map_fingerprint(a) != course_map_fingerprint(b)
    assert course_map_fingerprint(a) != course_map_fingerprint(c)
