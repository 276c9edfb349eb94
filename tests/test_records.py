"""
Tests for record parsing and week keys.
"""
from datetime import date, datetime, timedelta

import pytest

from analytics_core.records import (
    clean_cell,
    count_user_contacts,
    parse_csat,
    parse_date,
    record_from_row,
    week_key_of,
)


def test_parse_date_long_form():
    assert parse_date("Friday, August 2, 2024") == datetime(2024, 8, 2)


def test_parse_date_strips_quotes():
    assert parse_date('"Friday, August 2, 2024"') == datetime(2024, 8, 2)


@pytest.mark.parametrize("value", [None, "", '""', "not a date", "now", "Today", " NOW "])
def test_parse_date_failure_is_none(value):
    assert parse_date(value) is None


def test_parse_date_aware_becomes_naive():
    parsed = parse_date("2024-08-05T10:00:00+00:00")
    assert parsed is not None
    assert parsed.tzinfo is None


def test_week_key_rolls_back_to_monday():
    assert week_key_of(datetime(2024, 8, 7, 15, 0)) == date(2024, 8, 5)
    assert week_key_of(date(2024, 8, 5)) == date(2024, 8, 5)


def test_week_key_sunday_rolls_back_six_days():
    assert week_key_of(date(2024, 8, 11)) == date(2024, 8, 5)


def test_week_key_none():
    assert week_key_of(None) is None


def test_week_key_is_idempotent_monday():
    start = date(2023, 12, 25)
    for offset in range(60):
        key = week_key_of(start + timedelta(days=offset))
        assert key.weekday() == 0
        assert week_key_of(key) == key


@pytest.mark.parametrize(
    "value,expected",
    [("5", 5), (" 3", 3), ("4.5", 4), ("2 stars", 2), ("-1", -1), ("", None), (None, None), ("n/a", None), ("\u0665", None), ("\u0664 stars", None)],
)
def test_parse_csat(value, expected):
    assert parse_csat(value) == expected


def test_clean_cell_blank_to_none():
    assert clean_cell("") is None
    assert clean_cell(float("nan")) is None
    assert clean_cell(" Yes ") == " Yes "


def test_record_from_row_maps_columns():
    row = {
        "created_at": "Sunday, August 11, 2024",
        "userId": "u9",
        "escalated": "Yes",
        "csat": "4",
        "decagonlanguage": "en",
        "is_post_signup_rtr_flagged": "",
        "isdecagon_admin_portal": "Yes",
    }
    rec = record_from_row(row)
    assert rec.created_at == datetime(2024, 8, 11)
    assert rec.week_key == date(2024, 8, 5)
    assert rec.user_id == "u9"
    assert rec.decagon_language == "en"
    assert rec.rtr_flagged is None
    assert rec.admin_portal == "Yes"
    assert rec.language is None


def test_record_week_key_null_iff_date_null():
    dated = record_from_row({"created_at": "Monday, August 5, 2024"})
    undated = record_from_row({"created_at": "garbage"})
    assert dated.created_at is not None and dated.week_key is not None
    assert undated.created_at is None and undated.week_key is None


def test_count_user_contacts_skips_blank_ids(sample_records):
    counts = count_user_contacts(sample_records)
    assert counts == {"u1": 3, "u2": 1, "u3": 1}
