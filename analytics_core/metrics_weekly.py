from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from analytics_core.charts import csat_chart, escalation_rate_chart, to_vega_spec
from analytics_core.export import weekly_table_rows
from analytics_core.filters import ContactFilters
from analytics_core.records import ContactRecord, parse_csat


ESCALATED_YES = "Yes"


@dataclass(frozen=True)
class WeeklyMetric:
    week_key: str
    label: str
    total: int
    escalated: int
    csat_sum: int
    csat_count: int
    escalation_rate: float
    csat_average: Optional[float] = None
    escalation_trend: Optional[float] = None
    csat_trend: Optional[float] = None


def week_label(week_key: Union[str, date, None]) -> str:
    """Label such as "Aug 5 - Aug 11": the Monday week key through the Sunday after it."""
    if not week_key:
        return "Unknown"
    start = date.fromisoformat(week_key) if isinstance(week_key, str) else week_key
    end = start + timedelta(days=6)
    return f"{start:%b} {start.day} - {end:%b} {end.day}"


def _pct_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def _exact_sum(values: pd.Series) -> int:
    return sum(int(v) for v in values if v is not None and not pd.isna(v))


def _weekly_frame(records: Iterable[ContactRecord]) -> pd.DataFrame:
    dated = [r for r in records if r.week_key is not None]
    if not dated:
        return pd.DataFrame()
    # CSAT stays as Python ints (object dtype) so large scores sum exactly.
    df = pd.DataFrame(
        {
            "week_key": [r.week_key.isoformat() for r in dated],
            "escalated": [r.escalated == ESCALATED_YES for r in dated],
            "csat": pd.Series([parse_csat(r.csat) for r in dated], dtype=object),
        }
    )
    return (
        df.groupby("week_key", sort=True)
        .agg(
            total=("escalated", "size"),
            escalated=("escalated", "sum"),
            csat_sum=("csat", _exact_sum),
            csat_count=("csat", "count"),
        )
        .reset_index()
        .sort_values("week_key")
    )


def aggregate_weekly(filtered: Iterable[ContactRecord]) -> List[WeeklyMetric]:
    """Group dated records into ascending weeks with week-over-week trends.

    The escalation trend is only defined when the previous week's rate is
    above zero, so a move from 0% to any rate reports no trend. The CSAT trend
    needs an average on both sides.
    """
    grouped = _weekly_frame(filtered)
    if grouped.empty:
        return []

    metrics: List[WeeklyMetric] = []
    prev: Optional[WeeklyMetric] = None
    for row in grouped.itertuples(index=False):
        total = int(row.total)
        escalated = int(row.escalated)
        csat_count = int(row.csat_count)
        csat_sum = int(row.csat_sum) if csat_count else 0
        rate = escalated / total * 100 if total > 0 else 0.0
        average = csat_sum / csat_count if csat_count > 0 else None

        rate_trend = None
        avg_trend = None
        if prev is not None:
            if prev.escalation_rate > 0:
                rate_trend = _pct_change(rate, prev.escalation_rate)
            avg_trend = _pct_change(average, prev.csat_average)

        metric = WeeklyMetric(
            week_key=row.week_key,
            label=week_label(row.week_key),
            total=total,
            escalated=escalated,
            csat_sum=csat_sum,
            csat_count=csat_count,
            escalation_rate=rate,
            csat_average=average,
            escalation_trend=rate_trend,
            csat_trend=avg_trend,
        )
        metrics.append(metric)
        prev = metric
    return metrics


def compute_summary(filtered: Iterable[ContactRecord]) -> Dict[str, int]:
    filtered = list(filtered)
    return {
        "total_records": len(filtered),
        "csat_responses": sum(1 for r in filtered if parse_csat(r.csat) is not None),
    }


def compute_weekly(filters: ContactFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: List[ContactRecord] = list(ctx.get("filtered_records", []))
    weeks = aggregate_weekly(filtered)

    charts: Dict[str, Any] = {}
    if weeks:
        charts = {
            "escalation_rate_trend": to_vega_spec(escalation_rate_chart(weeks)),
            "csat_trend": to_vega_spec(csat_chart(weeks)),
        }

    return {
        "filters": asdict(filters),
        "kpis": compute_summary(filtered),
        "weeks": [asdict(w) for w in weeks],
        "table": weekly_table_rows(weeks),
        "charts": charts,
    }
