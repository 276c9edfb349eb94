from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd


# Source CSV header -> record attribute.
CONTACT_COLUMNS = {
    "created_at": "created_at",
    "userId": "user_id",
    "escalated": "escalated",
    "csat": "csat",
    "language": "language",
    "decagonlanguage": "decagon_language",
    "is_post_signup_rtr_flagged": "rtr_flagged",
    "sandbox": "sandbox",
    "user_device": "user_device",
    "user_fee_block_state": "fee_block_state",
    "is_trial": "is_trial",
    "isdecagon_admin_portal": "admin_portal",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
# pandas reads these as the current time; they are not dates in the source.
_RELATIVE_WORDS = {"now", "today"}


@dataclass(frozen=True)
class ContactRecord:
    created_at: Optional[datetime] = None
    week_key: Optional[date] = None
    user_id: Optional[str] = None
    escalated: Optional[str] = None
    csat: Optional[str] = None
    language: Optional[str] = None
    decagon_language: Optional[str] = None
    rtr_flagged: Optional[str] = None
    sandbox: Optional[str] = None
    user_device: Optional[str] = None
    fee_block_state: Optional[str] = None
    is_trial: Optional[str] = None
    admin_portal: Optional[str] = None


def clean_cell(value: object) -> Optional[str]:
    """Blank or missing cells become None; anything else is kept verbatim."""
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    s = str(value)
    return s if s else None


def parse_date(text: object) -> Optional[datetime]:
    """Parse a free-text timestamp such as "Friday, August 2, 2024".

    Returns None when the value is blank or cannot be parsed. Aware timestamps
    are converted to local time and returned naive.
    """
    cleaned = clean_cell(text)
    if cleaned is None:
        return None
    cleaned = cleaned.replace('"', "").strip()
    if not cleaned or cleaned.lower() in _RELATIVE_WORDS:
        return None
    try:
        ts = pd.to_datetime(cleaned, errors="coerce", format="mixed")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    dt = ts.to_pydatetime()
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def week_key_of(value: Optional[date]) -> Optional[date]:
    """Monday of the week containing ``value`` (Sunday rolls back six days)."""
    if value is None:
        return None
    day = value.date() if isinstance(value, datetime) else value
    return day - timedelta(days=day.weekday())


def parse_csat(value: object) -> Optional[int]:
    """Leading-integer parse of a CSAT cell: "5" -> 5, "4.5" -> 4, "n/a" -> None."""
    cleaned = clean_cell(value)
    if cleaned is None:
        return None
    match = _LEADING_INT.match(cleaned)
    if not match:
        return None
    return int(match.group(1))


def record_from_row(row: Mapping[str, object]) -> ContactRecord:
    fields = {attr: clean_cell(row.get(col)) for col, attr in CONTACT_COLUMNS.items()}
    created_at = parse_date(fields.pop("created_at"))
    return ContactRecord(created_at=created_at, week_key=week_key_of(created_at), **fields)


def records_from_frame(df: pd.DataFrame) -> Tuple[ContactRecord, ...]:
    if df.empty:
        return ()
    return tuple(record_from_row(row) for row in df.to_dict(orient="records"))


def count_user_contacts(records: Iterable[ContactRecord]) -> Dict[str, int]:
    """Contacts per user over the full, unfiltered dataset."""
    return dict(Counter(r.user_id for r in records if r.user_id))
