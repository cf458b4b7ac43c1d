"""
Enrollment Document Helpers

Pure functions shared by the enrollment service and admin views:
- Field tables for the basic-info and school-background documents
- Lenient coercion of client values to trimmed strings
- Lenient reading of stored JSON (anything malformed reads as empty)
- studentType normalization and the sticky "transferee" rule
- Display names, gender buckets and the dense 30-day submission series

Nothing here touches the database.
"""

import enum
import json
import logging
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Any

logger = logging.getLogger(__name__)


class StudentType(str, enum.Enum):
    """Enrollment type: a freshman or a student transferring in."""

    NEW = "new"
    TRANSFEREE = "transferee"


# Basic info: every key that is stored, in storage order
BASIC_INFO_FIELDS: tuple[str, ...] = (
    "lastName",
    "firstName",
    "middleName",
    "suffix",
    "birthdate",
    "birthPlace",
    "gender",
    "motherName",
    "fatherName",
    "guardianName",
    "guardianContact",
)

BASIC_INFO_REQUIRED_FIELDS: tuple[str, ...] = (
    "lastName",
    "firstName",
    "birthdate",
    "guardianName",
    "guardianContact",
)

MISSING_BASIC_INFO_MESSAGE = "Missing required fields: " + ", ".join(BASIC_INFO_REQUIRED_FIELDS)

# School background
SCHOOL_LEVELS: tuple[str, ...] = ("elementary", "juniorHigh", "highSchool")
SCHOOL_RECORD_FIELDS: tuple[str, ...] = ("schoolName", "location", "yearFrom", "yearTo", "strand")
MAX_RECORDS_PER_LEVEL = 50

# Statistics
GENDER_BUCKETS: tuple[str, ...] = ("male", "female")
STATS_WINDOW_DAYS = 30


def to_text(value: Any) -> str:
    """
    Coerce a client value to a trimmed string.

    None becomes "", booleans become "true"/"false" and whole floats drop
    their fractional part, so 2010.0 reads "2010".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_json_document(value: Any) -> dict[str, Any]:
    """
    Read a stored JSON document leniently.

    Returns a dict for a stored object (or a JSON string holding one) and an
    empty dict for anything else, including unparseable text.
    """
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Stored enrollment document is not valid JSON; reading as empty")
            return {}
    if isinstance(value, Mapping):
        return dict(value)
    return {}


# ============================================
# Basic info
# ============================================


def normalize_student_type(value: str) -> str:
    """Collapse any client value to exactly "new" or "transferee"."""
    if value.strip().lower() == StudentType.TRANSFEREE.value:
        return StudentType.TRANSFEREE.value
    return StudentType.NEW.value


def stored_student_type(basic_info: Mapping[str, Any]) -> str:
    """
    studentType to keep when a request omits it.

    Only "transferee" survives; anything else falls back to "new".
    """
    previous = to_text(basic_info.get("studentType")).lower()
    if previous == StudentType.TRANSFEREE.value:
        return StudentType.TRANSFEREE.value
    return StudentType.NEW.value


def resolve_student_type(requested: Any, stored_basic_info: Mapping[str, Any]) -> str:
    """A string request wins (normalized); otherwise the sticky stored value applies."""
    if isinstance(requested, str):
        return normalize_student_type(requested)
    return stored_student_type(stored_basic_info)


def missing_basic_info_fields(values: Mapping[str, str]) -> list[str]:
    return [field for field in BASIC_INFO_REQUIRED_FIELDS if not values.get(field)]


def build_basic_info(values: Mapping[str, str], student_type: str) -> dict[str, str]:
    """
    Canonical basic-info document.

    ``values`` holds already-coerced strings; absent optional keys become "".
    """
    basic_info = {field: to_text(values.get(field)) for field in BASIC_INFO_FIELDS}
    basic_info["studentType"] = student_type
    return basic_info


def with_student_type(stored_basic_info: Mapping[str, Any], requested: str) -> dict[str, Any]:
    """Stored basic info with only studentType replaced."""
    return {**stored_basic_info, "studentType": normalize_student_type(requested)}


# ============================================
# School background
# ============================================


def sanitize_record(record: Any) -> dict[str, str]:
    """One school entry with every field present as a string. Non-objects become blank."""
    if not isinstance(record, Mapping):
        record = {}
    return {field: to_text(record.get(field)) for field in SCHOOL_RECORD_FIELDS}


def sanitize_records(records: Any) -> list[dict[str, str]]:
    """First 50 entries of a level, sanitized. A non-list reads as no entries."""
    if not isinstance(records, list):
        return []
    return [sanitize_record(record) for record in records[:MAX_RECORDS_PER_LEVEL]]


def build_school_background(levels: Mapping[str, Any]) -> dict[str, list[dict[str, str]]]:
    return {level: sanitize_records(levels.get(level)) for level in SCHOOL_LEVELS}


def read_school_background(value: Any) -> dict[str, list[Any]]:
    """Stored school background with all three levels present as lists."""
    document = parse_json_document(value)
    return {
        level: document[level] if isinstance(document.get(level), list) else []
        for level in SCHOOL_LEVELS
    }


# ============================================
# Admin views
# ============================================


def student_display_name(
    first_name: str | None,
    middle_name: str | None,
    last_name: str | None,
    username: str | None,
    email: str | None,
) -> str | None:
    """Account name for lists, falling back to the username and then the email."""
    parts = ((part or "").strip() for part in (first_name, middle_name, last_name))
    name = " ".join(part for part in parts if part)
    return name or username or email


def gender_breakdown(rows: Iterable[tuple[str | None, int]]) -> dict[str, int]:
    """
    Fold (normalized gender, count) rows into male/female/other.

    Keys are expected lower-cased and trimmed; anything unrecognized,
    including blanks, counts as "other".
    """
    breakdown = {"male": 0, "female": 0, "other": 0}
    for gender, count in rows:
        key = (gender or "").strip().lower()
        if key in GENDER_BUCKETS:
            breakdown[key] += int(count)
        else:
            breakdown["other"] += int(count)
    return breakdown


def stats_window_start(today: date, days: int = STATS_WINDOW_DAYS) -> date:
    return today - timedelta(days=days - 1)


def daily_series(
    counts: Mapping[date, int],
    today: date,
    days: int = STATS_WINDOW_DAYS,
) -> list[dict[str, Any]]:
    """
    Dense daily counts: ``days`` consecutive dates ending ``today``, oldest
    first, with zero for dates that have no activity.
    """
    start = stats_window_start(today, days)
    series = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        series.append({"date": day.isoformat(), "count": int(counts.get(day, 0))})
    return series
