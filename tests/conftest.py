"""
Shared pytest fixtures.

Records are built directly from the dataclass so most tests never touch the
filesystem; the CSV fixtures write a small dataset to a temp directory and
point CONTACT_DATA_PATH at it.
"""
from datetime import datetime

import pandas as pd
import pytest

from analytics_core.data import DATA_PATH_ENV, _load_dashboard_data_cached
from analytics_core.records import ContactRecord, week_key_of


def make_record(created_at=None, **fields) -> ContactRecord:
    return ContactRecord(created_at=created_at, week_key=week_key_of(created_at), **fields)


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def sample_records():
    """Two weeks of contacts plus one undated row."""
    return [
        make_record(datetime(2024, 8, 5, 9, 30), user_id="u1", escalated="Yes", csat="5", language="English", user_device="ios"),
        make_record(datetime(2024, 8, 6, 14, 0), user_id="u1", escalated="No", csat="3", language="Spanish", user_device="android"),
        make_record(datetime(2024, 8, 11, 23, 59), user_id="u2", escalated="No", csat="", language="English", sandbox="true"),
        make_record(datetime(2024, 8, 12, 8, 0), user_id="u1", escalated="Yes", csat="4", decagon_language="en", is_trial="true"),
        make_record(datetime(2024, 8, 14, 17, 45), user_id="", escalated="No", csat="n/a", fee_block_state="blocked"),
        make_record(None, user_id="u3", escalated="Yes", csat="2", admin_portal="Yes"),
    ]


CSV_ROWS = [
    {"created_at": "Monday, August 5, 2024", "userId": "u1", "escalated": "Yes", "csat": "5", "language": "English",
     "decagonlanguage": "en", "is_post_signup_rtr_flagged": "", "sandbox": "", "user_device": "ios",
     "user_fee_block_state": "", "is_trial": "", "isdecagon_admin_portal": ""},
    {"created_at": "Wednesday, August 7, 2024", "userId": "u1", "escalated": "No", "csat": "3", "language": "Spanish",
     "decagonlanguage": "es", "is_post_signup_rtr_flagged": "true", "sandbox": "", "user_device": "android",
     "user_fee_block_state": "", "is_trial": "", "isdecagon_admin_portal": ""},
    {"created_at": "Tuesday, August 13, 2024", "userId": "u2", "escalated": "No", "csat": "", "language": "",
     "decagonlanguage": "", "is_post_signup_rtr_flagged": "", "sandbox": "true", "user_device": "ios",
     "user_fee_block_state": "blocked", "is_trial": "true", "isdecagon_admin_portal": ""},
    {"created_at": "not a date", "userId": "u3", "escalated": "Yes", "csat": "4", "language": "English",
     "decagonlanguage": "", "is_post_signup_rtr_flagged": "", "sandbox": "", "user_device": "web",
     "user_fee_block_state": "", "is_trial": "", "isdecagon_admin_portal": "Yes"},
]


@pytest.fixture
def contacts_csv(tmp_path, monkeypatch):
    path = tmp_path / "Case_Study_Data.csv"
    pd.DataFrame(CSV_ROWS).to_csv(path, index=False)
    monkeypatch.setenv(DATA_PATH_ENV, str(path))
    _load_dashboard_data_cached.cache_clear()
    yield path
    _load_dashboard_data_cached.cache_clear()
