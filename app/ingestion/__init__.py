# app/ingestion/__init__.py
"""
Schedule ingestion package.

Public API:
- parse_schedule_csv(data, id_prefix=None) -> ParsedSchedule
- seed_store(store) -> list[str]
"""

from .csv_schedule import ParsedSchedule, ScheduleParseError, parse_schedule_csv
from .seed import seed_store

__all__ = ["ParsedSchedule", "ScheduleParseError", "parse_schedule_csv", "seed_store"]
