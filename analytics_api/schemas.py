from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ContactFiltersModel(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    escalated: str = "all"
    repeat_contacts_min: Optional[int] = Field(default=None, ge=0)
    repeat_contacts_max: Optional[int] = Field(default=None, ge=0)
    csat_exists: str = "all"
    csat_scores: List[str] = Field(default_factory=list)
    decagon_language_exists: str = "all"
    decagon_languages: List[str] = Field(default_factory=list)
    rtr_flagged: str = "all"
    sandbox: str = "all"
    user_device: str = "all"
    fee_block_state: str = "all"
    is_trial: str = "all"
    language_exists: str = "all"
    languages: List[str] = Field(default_factory=list)
    admin_portal: str = "all"


class SummaryResponse(BaseModel):
    total_records: int
    csat_responses: int


class OptionsResponse(BaseModel):
    date_bounds: Dict[str, Optional[date]]
    options: Dict[str, List[str]]
