# app/accounts.py
# register-or-sign-in against the profile store

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from pydantic import BaseModel

from app.store import ProfileExists, ProfileStore
from app.workflow_logger import log_event

PBKDF2_ITERATIONS = 200_000


class AccountError(Exception):
    pass


class AccountResult(BaseModel):
    uid: str
    email: Optional[str]
    username: str
    isNew: bool


def hash_password(password: str, salt: Optional[str] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        algo, iterations, salt, _ = stored.split("$")
        expected = hash_password(password, salt=salt, iterations=int(iterations))
    except ValueError:
        return False
    return algo == "pbkdf2_sha256" and hmac.compare_digest(expected, stored)


def register_or_sign_in(
    store: ProfileStore,
    email: Optional[str],
    password: Optional[str],
    username: Optional[str] = None,
) -> AccountResult:
    """
    Create an account, or sign in when the email is already registered.

    An existing email is not an error: the password is checked and the
    existing profile returned with isNew=False. Every other failure is
    raised to the caller unchanged.
    """
    email = (email or "").strip().lower()
    if not email or not password:
        raise AccountError("Email and password are required.")

    username = (username or "").strip() or email.split("@")[0]

    existing = store.get_profile_by_email(email)
    if existing is not None:
        if not verify_password(password, existing.passwordHash):
            log_event(subject=existing.username, status="rejected", actor="student", event="SignInFailed")
            raise AccountError("Invalid email or password.")
        log_event(subject=existing.username, status="signed_in", actor="student", event="SignIn")
        return AccountResult(uid=existing.uid, email=existing.email, username=existing.username, isNew=False)

    try:
        profile = store.create_profile(username=username, email=email, password_hash=hash_password(password))
    except ProfileExists:
        raise AccountError(f"Username '{username}' is already taken.")

    log_event(
        subject=profile.username,
        status="registered",
        actor="student",
        event="ProfileCreated",
        extra={"uid": profile.uid, "email": profile.email},
    )
    return AccountResult(uid=profile.uid, email=profile.email, username=profile.username, isNew=True)
