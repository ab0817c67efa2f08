"""
Friendship ledger rule.

A ledger maps a user key to the list of that user's confirmed friends.
It is symmetric: B is listed under A exactly when A is listed under B.
Functions here never mutate their input; callers hand the returned
ledger to the store as a whole replacement.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

FriendshipLedger = Dict[str, List[str]]


def _copy(ledger: Optional[Mapping[str, Sequence[str]]]) -> FriendshipLedger:
    if not ledger:
        return {}
    return {str(k): [str(f) for f in (v or [])] for k, v in ledger.items()}


def _with_friend(friends: List[str], new_friend: str) -> List[str]:
    if new_friend in friends:
        return friends
    return friends + [new_friend]


def confirm_friendship(
    ledger: Optional[Mapping[str, Sequence[str]]],
    user_a: Optional[str],
    user_b: Optional[str],
) -> FriendshipLedger:
    out = _copy(ledger)
    if not user_a or not user_b or user_a == user_b:
        return out

    out[user_a] = _with_friend(out.get(user_a, []), user_b)
    out[user_b] = _with_friend(out.get(user_b, []), user_a)
    return out


def friends_of(ledger: Optional[Mapping[str, Sequence[str]]], user: Optional[str]) -> List[str]:
    if not ledger or not user:
        return []
    return list(ledger.get(user) or [])


def is_friend(ledger: Optional[Mapping[str, Sequence[str]]], user: Optional[str], other: Optional[str]) -> bool:
    if not other:
        return False
    return other in friends_of(ledger, user)
