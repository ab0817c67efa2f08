import pytest

from app.ingestion.seed import SEED_COURSES, seed_store
from app.store import ProfileExists, ProfileNotFound


def test_create_and_read_profile(store):
    created = store.create_profile("amelia", email="Amelia@Purdue.edu", password_hash="h")

    assert created.username == "amelia"
    assert created.email == "amelia@purdue.edu"
    assert created.courses == []
    assert created.uid

    fetched = store.get_profile("amelia")
    assert fetched.uid == created.uid
    assert fetched.passwordHash == "h"
    assert store.get_profile_by_email("AMELIA@purdue.edu").username == "amelia"
    assert store.get_profile("nobody") is None
    assert store.get_profile_by_email("nobody@purdue.edu") is None


def test_password_hash_is_not_serialized(store):
    profile = store.create_profile("amelia", email="a@purdue.edu", password_hash="secret-hash")
    assert "passwordHash" not in profile.model_dump()
    assert "secret-hash" not in profile.model_dump_json()


def test_duplicate_username_or_email_rejected(store):
    store.create_profile("amelia", email="a@purdue.edu")
    with pytest.raises(ProfileExists):
        store.create_profile("amelia", email="other@purdue.edu")
    with pytest.raises(ProfileExists):
        store.create_profile("someone_else", email="A@purdue.edu")


def test_save_courses_replaces_whole_list(store):
    store.create_profile("amelia")
    store.save_courses("amelia", SEED_COURSES["amelia"], csv_file_name="fall.csv", csv_url="/tmp/fall.csv")
    profile = store.save_courses("amelia", SEED_COURSES["amelia"][:1])

    assert [c.id for c in profile.courses] == ["cs180-amelia"]
    # omitted upload metadata is kept
    assert profile.csvFileName == "fall.csv"
    assert profile.csvUrl == "/tmp/fall.csv"
    assert [c.id for c in store.get_profile("amelia").courses] == ["cs180-amelia"]


def test_save_courses_drops_invalid_entries(store):
    store.create_profile("amelia")
    profile = store.save_courses("amelia", [{"id": "ok", "courseName": "CS 180"}, {"courseName": "no id"}, "junk"])
    assert [c.id for c in profile.courses] == ["ok"]


def test_save_courses_for_unknown_user(store):
    with pytest.raises(ProfileNotFound):
        store.save_courses("ghost", [])


def test_course_map_in_creation_order(store):
    for name in ["a_user", "b_user", "c_user"]:
        store.create_profile(name)
    store.save_courses("b_user", [{"id": "1", "courseName": "CS 180"}])

    course_map = store.course_map()
    assert list(course_map) == ["a_user", "b_user", "c_user"]
    assert course_map["a_user"] == []
    assert course_map["b_user"][0].courseName == "CS 180"


def test_friendship_ledger_is_replaced_whole(store):
    store.save_friendship_ledger({"amelia": ["rahul"], "rahul": ["amelia"]})
    assert store.friendship_ledger() == {"amelia": ["rahul"], "rahul": ["amelia"]}

    store.save_friendship_ledger({"amelia": ["linh"], "linh": ["amelia"]})
    assert store.friendship_ledger() == {"amelia": ["linh"], "linh": ["amelia"]}


def test_friendship_ledger_keeps_friend_order(store):
    store.save_friendship_ledger({"amelia": ["rahul", "linh", "rahul"], "rahul": ["amelia"], "linh": ["amelia"]})
    assert store.friendship_ledger()["amelia"] == ["rahul", "linh"]


def test_subscribers_see_every_write(store):
    seen = []
    unsubscribe = store.subscribe(lambda profiles: seen.append([p.username for p in profiles]))

    store.create_profile("amelia")
    store.save_courses("amelia", SEED_COURSES["amelia"])
    store.save_friendship_ledger({})
    assert seen == [["amelia"], ["amelia"], ["amelia"]]

    unsubscribe()
    store.create_profile("rahul")
    assert len(seen) == 3
    # a second unsubscribe is harmless
    unsubscribe()


def test_save_origin(store):
    store.create_profile("amelia")
    assert store.get_profile("amelia").origin is None

    profile = store.save_origin("amelia", "Krach Leadership Center")
    assert profile.origin == "Krach Leadership Center"
    assert store.get_profile("amelia").origin == "Krach Leadership Center"

    with pytest.raises(ProfileNotFound):
        store.save_origin("ghost", "Hicks")


def test_delete_profile(store):
    store.create_profile("amelia")
    store.delete_profile("amelia")

    assert store.get_profile("amelia") is None
    with pytest.raises(ProfileNotFound):
        store.delete_profile("amelia")


def test_ping(store):
    store.ping()


def test_seed_store_is_idempotent(store):
    assert seed_store(store) == ["amelia", "rahul", "linh"]
    assert seed_store(store) == []

    assert {p.username for p in store.list_profiles()} == {"amelia", "rahul", "linh"}
    ledger = store.friendship_ledger()
    assert ledger["amelia"] == ["rahul"]
    assert ledger["rahul"] == ["amelia"]
    assert "linh" not in ledger
