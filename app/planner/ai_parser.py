# app/planner/ai_parser.py
# turn free-form chat completion text into study space candidates

from __future__ import annotations

import re
from typing import Any, Dict, List

BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
NUMBERING_RE = re.compile(r"^\d+\.?\s*")
BULLET_RE = re.compile(r"^[-•]\s*")

DEFAULT_PROS = ["Quiet tables", "Close to class"]


def parse_ai_response(text: str | None) -> List[Dict[str, Any]]:
    """
    Expected shape (one block per location, blank line between blocks):

        1. Hicks Undergraduate Library
        - Open late
        - Group rooms

    The first line of a block is the location name; remaining lines are pros.
    Returns [] for blank input.
    """
    if not text or not text.strip():
        return []

    blocks = [b.strip() for b in BLOCK_SPLIT_RE.split(text)]
    out: List[Dict[str, Any]] = []
    for block in blocks:
        if not block:
            continue
        lines = [ln.strip() for ln in block.split("\n") if ln.strip()]
        if not lines:
            continue
        location_name = NUMBERING_RE.sub("", lines[0])
        if not location_name:
            continue
        pros = [BULLET_RE.sub("", ln).strip() for ln in lines[1:]]
        pros = [p for p in pros if p]
        out.append({
            "locationName": location_name,
            "pros": pros or list(DEFAULT_PROS),
        })
    return out
