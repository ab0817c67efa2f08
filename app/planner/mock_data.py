# app/planner/mock_data.py
# fallback study spaces used when the AI endpoint is unavailable

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

MOCK_CATALOG: List[Dict[str, Any]] = [
    {
        "name": "Hicks Undergraduate Library",
        "pros": ["24/7 access", "Group study rooms", "Whiteboard walls"],
        "anchor": "Hicks Undergraduate Library, West Lafayette, IN",
    },
    {
        "name": "Wilmeth Active Learning Center (WALC)",
        "pros": ["Reservable huddle rooms", "Built-in power at every seat", "Cafe on level 1"],
        "anchor": "Wilmeth Active Learning Center, West Lafayette, IN",
    },
    {
        "name": "Krach Leadership Center",
        "pros": ["Large tables for teams", "Late hours", "Nearby dining options"],
        "anchor": "Krach Leadership Center, West Lafayette, IN",
    },
    {
        "name": "Honors College & Residences Study Lounges",
        "pros": ["Natural lighting", "Quiet zones and collaboration pods"],
        "anchor": "1101 3rd Street, West Lafayette, IN",
    },
]

MOCK_SAMPLE_SIZE = 3


def mock_study_spaces(location: str, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """
    Pick MOCK_SAMPLE_SIZE catalog entries in random order.

    Pass a seeded random.Random for reproducible picks; the default is the
    module-level generator, so results vary between calls.
    """
    picker = rng or random
    picks = picker.sample(MOCK_CATALOG, MOCK_SAMPLE_SIZE)
    return [
        {
            "locationName": spot["name"],
            "pros": list(spot["pros"]),
            "context": f"Nearby {location or 'campus'} • suggestion #{idx + 1}",
            "anchor": spot["anchor"],
        }
        for idx, spot in enumerate(picks)
    ]
