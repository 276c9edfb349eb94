from __future__ import annotations

import logging
import os
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from analytics_core.filters import ContactFilters, apply_filters, normalize_filters
from analytics_core.records import (
    CONTACT_COLUMNS,
    ContactRecord,
    count_user_contacts,
    parse_csat,
    records_from_frame,
)


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE_NAME = "Case_Study_Data.csv"
DATA_PATH_ENV = "CONTACT_DATA_PATH"


class DataLoadError(RuntimeError):
    """The source dataset is missing or could not be parsed."""


def get_source_files() -> List[Path]:
    override = os.environ.get(DATA_PATH_ENV)
    path = Path(override) if override else DATA_DIR / DATA_FILE_NAME
    return [path] if path.is_file() else []


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def read_contacts_frame(path: Path) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except FileNotFoundError as exc:
        raise DataLoadError(f"Data file not found: {path}") from exc
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Could not parse {path.name}: {exc}") from exc

    missing = [c for c in CONTACT_COLUMNS if c not in df.columns]
    if missing:
        logger.warning("%s is missing columns %s; treating them as empty", path.name, missing)
        for col in missing:
            df[col] = ""
    # Rows with every cell blank are skipped, matching skip_blank_lines for quoted blanks.
    df = df[(df != "").any(axis=1)]
    return df


def load_contacts(path: Path) -> Tuple[ContactRecord, ...]:
    records = records_from_frame(read_contacts_frame(path))
    undated = sum(1 for r in records if r.created_at is None)
    logger.info("Loaded %d contact records from %s (%d without a parseable date)", len(records), path.name, undated)
    return records


def get_date_bounds(records: Iterable[ContactRecord]) -> Tuple[Optional[date], Optional[date]]:
    days = [r.created_at.date() for r in records if r.created_at is not None]
    if not days:
        return None, None
    return min(days), max(days)


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    return sorted({v for v in values if v})


def get_filter_options(records: Iterable[ContactRecord]) -> Dict[str, List[str]]:
    records = list(records)
    csat_scores = sorted({r.csat for r in records if r.csat and parse_csat(r.csat) is not None}, key=parse_csat)
    return {
        "languages": _distinct(r.language for r in records),
        "decagon_languages": _distinct(r.decagon_language for r in records),
        "user_devices": _distinct(r.user_device for r in records),
        "csat_scores": csat_scores,
    }


# ---------------- Public API (Streamlit + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    records: Tuple[ContactRecord, ...] = ()
    for name, _ in files_sig:
        records += load_contacts(Path(name))
    return {
        "files": [Path(name).name for name, _ in files_sig],
        "records": records,
        "contact_counts": count_user_contacts(records),
        "date_bounds": get_date_bounds(records),
        "options": get_filter_options(records),
    }


def load_dashboard_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        raise DataLoadError(
            f"No data file found. Place {DATA_FILE_NAME} in {DATA_DIR} or set {DATA_PATH_ENV}."
        )
    return _load_dashboard_data_cached(file_signature(files))


def build_data_context(records: Iterable[ContactRecord]) -> Dict[str, object]:
    """In-memory equivalent of load_dashboard_data for already materialized records."""
    records = tuple(records)
    return {
        "files": [],
        "records": records,
        "contact_counts": count_user_contacts(records),
        "date_bounds": get_date_bounds(records),
        "options": get_filter_options(records),
    }


def prepare_context(filters: dict | ContactFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    records: Tuple[ContactRecord, ...] = tuple(data_ctx.get("records", ()))
    contact_counts = data_ctx.get("contact_counts")
    if contact_counts is None:
        contact_counts = count_user_contacts(records)
    date_bounds = data_ctx.get("date_bounds") or (None, None)

    filt = filters if isinstance(filters, ContactFilters) else normalize_filters(filters, date_bounds=date_bounds)
    filtered_records = apply_filters(records, filt, contact_counts)
    logger.debug("Filters kept %d of %d records", len(filtered_records), len(records))

    return {
        "filters": filt,
        "records": records,
        "filtered_records": filtered_records,
        "contact_counts": contact_counts,
        "date_bounds": date_bounds,
    }
