from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from analytics_core.records import ContactRecord


ANY = "all"
EXISTS = "exists"
NOT_EXISTS = "not_exists"

_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class ContactFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    escalated: str = ANY
    repeat_contacts_min: Optional[int] = None
    repeat_contacts_max: Optional[int] = None
    csat_exists: str = ANY
    csat_scores: Tuple[str, ...] = field(default_factory=tuple)
    decagon_language_exists: str = ANY
    decagon_languages: Tuple[str, ...] = field(default_factory=tuple)
    rtr_flagged: str = ANY
    sandbox: str = ANY
    user_device: str = ANY
    fee_block_state: str = ANY
    is_trial: str = ANY
    language_exists: str = ANY
    languages: Tuple[str, ...] = field(default_factory=tuple)
    admin_portal: str = ANY


# ---------------- Normalization (UI / API input -> ContactFilters) ----------------
def _as_mode(value: object) -> str:
    if value is None:
        return ANY
    s = str(value)
    return s if s else ANY


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(str(v) for v in values if v is not None and str(v) != "")


def _as_optional_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _as_date(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def normalize_filters(
    raw: dict, *, date_bounds: Optional[Tuple[Optional[date], Optional[date]]] = None
) -> ContactFilters:
    lo, hi = date_bounds or (None, None)
    start_date = _as_date(raw.get("start_date"))
    end_date = _as_date(raw.get("end_date"))
    return ContactFilters(
        start_date=start_date if start_date is not None else lo,
        end_date=end_date if end_date is not None else hi,
        escalated=_as_mode(raw.get("escalated")),
        repeat_contacts_min=_as_optional_int(raw.get("repeat_contacts_min")),
        repeat_contacts_max=_as_optional_int(raw.get("repeat_contacts_max")),
        csat_exists=_as_mode(raw.get("csat_exists")),
        csat_scores=_as_str_tuple(raw.get("csat_scores")),
        decagon_language_exists=_as_mode(raw.get("decagon_language_exists")),
        decagon_languages=_as_str_tuple(raw.get("decagon_languages")),
        rtr_flagged=_as_mode(raw.get("rtr_flagged")),
        sandbox=_as_mode(raw.get("sandbox")),
        user_device=_as_mode(raw.get("user_device")),
        fee_block_state=_as_mode(raw.get("fee_block_state")),
        is_trial=_as_mode(raw.get("is_trial")),
        language_exists=_as_mode(raw.get("language_exists")),
        languages=_as_str_tuple(raw.get("languages")),
        admin_portal=_as_mode(raw.get("admin_portal")),
    )


def default_filters(date_bounds: Optional[Tuple[Optional[date], Optional[date]]] = None) -> ContactFilters:
    """Reset state: full date range, everything else unrestricted."""
    return normalize_filters({}, date_bounds=date_bounds)


# ---------------- Predicates ----------------
def matches_presence(value: Optional[str], mode: str) -> bool:
    """Presence tri-state: all / exists / not_exists, any other mode is a literal match."""
    if mode == ANY:
        return True
    if mode == EXISTS:
        return bool(value)
    if mode == NOT_EXISTS:
        return not value
    return value == mode


def matches_exact(value: Optional[str], expected: str) -> bool:
    return expected == ANY or value == expected


def matches_allowed(value: Optional[str], allowed: Sequence[str]) -> bool:
    """Closed-set membership; blank values and empty sets never restrict."""
    if not value or not allowed:
        return True
    return value in allowed


def in_date_range(record: ContactRecord, filters: ContactFilters) -> bool:
    if record.created_at is None:
        return True
    if filters.start_date is not None and record.created_at < datetime.combine(filters.start_date, time.min):
        return False
    if filters.end_date is not None and record.created_at > datetime.combine(filters.end_date, _END_OF_DAY):
        return False
    return True


def in_repeat_range(record: ContactRecord, filters: ContactFilters, contact_counts: Mapping[str, int]) -> bool:
    if not record.user_id:
        return True
    count = contact_counts.get(record.user_id, 0)
    if filters.repeat_contacts_min is not None and count < filters.repeat_contacts_min:
        return False
    if filters.repeat_contacts_max is not None and count > filters.repeat_contacts_max:
        return False
    return True


def matches_csat(record: ContactRecord, filters: ContactFilters) -> bool:
    if not matches_presence(record.csat, _presence_only(filters.csat_exists)):
        return False
    return matches_allowed(record.csat, filters.csat_scores)


def matches_categories(record: ContactRecord, filters: ContactFilters) -> bool:
    if not matches_presence(record.decagon_language, _presence_only(filters.decagon_language_exists)):
        return False
    if not matches_allowed(record.decagon_language, filters.decagon_languages):
        return False
    if not matches_presence(record.rtr_flagged, filters.rtr_flagged):
        return False
    if not matches_presence(record.sandbox, filters.sandbox):
        return False
    if not matches_exact(record.user_device, filters.user_device):
        return False
    if not matches_presence(record.fee_block_state, filters.fee_block_state):
        return False
    if not matches_presence(record.is_trial, filters.is_trial):
        return False
    if not matches_presence(record.language, _presence_only(filters.language_exists)):
        return False
    if not matches_allowed(record.language, filters.languages):
        return False
    return matches_presence(record.admin_portal, filters.admin_portal)


def _presence_only(mode: str) -> str:
    # Fields with a dedicated value set accept only the tri-state itself.
    return mode if mode in (EXISTS, NOT_EXISTS) else ANY


def record_passes(record: ContactRecord, filters: ContactFilters, contact_counts: Mapping[str, int]) -> bool:
    return (
        in_date_range(record, filters)
        and matches_exact(record.escalated, filters.escalated)
        and in_repeat_range(record, filters, contact_counts)
        and matches_csat(record, filters)
        and matches_categories(record, filters)
    )


def apply_filters(
    records: Iterable[ContactRecord], filters: ContactFilters, contact_counts: Mapping[str, int]
) -> List[ContactRecord]:
    return [r for r in records if record_passes(r, filters, contact_counts)]
