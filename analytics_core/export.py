from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from analytics_core.records import ContactRecord

if TYPE_CHECKING:
    from analytics_core.metrics_weekly import WeeklyMetric


EXPORT_COLUMNS = [
    "Week",
    "Total Records",
    "Escalated",
    "Escalation Rate (%)",
    "Rate Trend (%)",
    "CSAT Responses",
    "Avg CSAT",
    "CSAT Trend (%)",
]


def format_2(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return ""
    return f"{float(value):.2f}"


def weekly_frame(metrics: Sequence["WeeklyMetric"]) -> pd.DataFrame:
    rows = [
        [
            m.label,
            m.total,
            m.escalated,
            format_2(m.escalation_rate),
            format_2(m.escalation_trend),
            m.csat_count,
            format_2(m.csat_average),
            format_2(m.csat_trend),
        ]
        for m in metrics
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def weekly_export_csv(metrics: Sequence["WeeklyMetric"]) -> str:
    return weekly_frame(metrics).to_csv(index=False, lineterminator="\n")


def records_frame(records: Iterable[ContactRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=list(ContactRecord.__dataclass_fields__))
    df = pd.DataFrame(rows)
    df["created_at"] = df["created_at"].apply(lambda v: v.isoformat() if v is not None and not pd.isna(v) else "")
    df["week_key"] = df["week_key"].apply(lambda v: v.isoformat() if v is not None and not pd.isna(v) else "")
    return df


def records_export_csv(records: Iterable[ContactRecord]) -> str:
    return records_frame(records).to_csv(index=False, lineterminator="\n")


def format_trend(value: Optional[float], inverse_positive: bool = False) -> Dict[str, str]:
    """Badge for a week-over-week change.

    With ``inverse_positive`` a drop is the good direction (escalation rate).
    """
    if value is None or pd.isna(value):
        return {"arrow": "", "text": "-", "tone": "neutral"}
    if value > 0:
        arrow = "↑"
    elif value < 0:
        arrow = "↓"
    else:
        arrow = "→"
    is_good = value < 0 if inverse_positive else value > 0
    tone = "neutral" if value == 0 else ("positive" if is_good else "negative")
    return {"arrow": arrow, "text": f"{arrow} {abs(value):.1f}%", "tone": tone}


def weekly_table_rows(metrics: Sequence["WeeklyMetric"]) -> List[Dict[str, object]]:
    return [
        {
            "week": m.label,
            "total": f"{m.total:,}",
            "escalated": f"{m.escalated:,}",
            "escalation_rate": f"{m.escalation_rate:.2f}%",
            "rate_trend": format_trend(m.escalation_trend, inverse_positive=True),
            "csat_responses": f"{m.csat_count:,}",
            "avg_csat": f"{m.csat_average:.2f}" if m.csat_average is not None else "-",
            "csat_trend": format_trend(m.csat_trend),
        }
        for m in metrics
    ]
