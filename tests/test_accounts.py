import pytest

from app.accounts import AccountError, hash_password, register_or_sign_in, verify_password


def test_hash_and_verify():
    stored = hash_password("Boiler#1", iterations=1000)

    assert stored.startswith("pbkdf2_sha256$1000$")
    assert verify_password("Boiler#1", stored) is True
    assert verify_password("boiler#1", stored) is False
    assert verify_password("Boiler#1", None) is False
    assert verify_password("Boiler#1", "garbage") is False


def test_salt_makes_hashes_differ():
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


def test_register_then_sign_in(memory_store):
    created = register_or_sign_in(memory_store, "Amelia@Purdue.edu", "Boiler#1", "amelia")
    assert created.isNew is True
    assert created.username == "amelia"
    assert created.email == "amelia@purdue.edu"

    again = register_or_sign_in(memory_store, "amelia@purdue.edu", "Boiler#1")
    assert again.isNew is False
    assert again.uid == created.uid
    assert again.username == "amelia"


def test_username_defaults_to_email_local_part(memory_store):
    result = register_or_sign_in(memory_store, "rahul@purdue.edu", "pw")
    assert result.username == "rahul"


def test_wrong_password(memory_store):
    register_or_sign_in(memory_store, "amelia@purdue.edu", "Boiler#1", "amelia")
    with pytest.raises(AccountError, match="Invalid email or password."):
        register_or_sign_in(memory_store, "amelia@purdue.edu", "nope")


def test_username_taken(memory_store):
    register_or_sign_in(memory_store, "amelia@purdue.edu", "Boiler#1", "amelia")
    with pytest.raises(AccountError, match="already taken"):
        register_or_sign_in(memory_store, "other@purdue.edu", "pw", "amelia")


@pytest.mark.parametrize("email, password", [("", "pw"), ("a@purdue.edu", ""), (None, None), ("   ", "pw")])
def test_missing_credentials(memory_store, email, password):
    with pytest.raises(AccountError, match="required"):
        register_or_sign_in(memory_store, email, password)
