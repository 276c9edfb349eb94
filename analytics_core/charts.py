from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Sequence

import altair as alt
import pandas as pd

if TYPE_CHECKING:
    from analytics_core.metrics_weekly import WeeklyMetric

alt.data_transformers.disable_max_rows()

ESCALATION_COLOR = "#0a84ff"
CSAT_COLOR = "#30d158"
ESCALATION_DOMAIN = (0, 100)
CSAT_DOMAIN = (0, 5)


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def weekly_chart_frame(metrics: Sequence["WeeklyMetric"]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "week_key": [m.week_key for m in metrics],
            "label": [m.label for m in metrics],
            "escalation_rate": [m.escalation_rate for m in metrics],
            "csat_average": [m.csat_average for m in metrics],
        }
    )


def _weekly_line(df: pd.DataFrame, field: str, title: str, color: str, domain, y_format: str, tooltip_format: str) -> alt.Chart:
    # Drag/wheel on the chart pans and zooms the y axis only; weeks stay fixed.
    return (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 60}, color=color, interpolate="monotone")
        .encode(
            x=alt.X("label:N", title="Week", sort=None, axis=alt.Axis(grid=False, labelAngle=-30)),
            y=alt.Y(
                f"{field}:Q",
                title=title,
                scale=alt.Scale(domain=list(domain)),
                axis=alt.Axis(format=y_format, gridDash=[4, 4], domain=False, ticks=False),
            ),
            tooltip=[
                alt.Tooltip("label:N", title="Week"),
                alt.Tooltip(f"{field}:Q", title=title, format=tooltip_format),
            ],
        )
        .properties(height=260)
        .interactive(bind_x=False)
    )


def escalation_rate_chart(metrics: Sequence["WeeklyMetric"]) -> alt.Chart:
    return _weekly_line(
        weekly_chart_frame(metrics),
        "escalation_rate",
        "Escalation Rate (%)",
        ESCALATION_COLOR,
        ESCALATION_DOMAIN,
        y_format="d",
        tooltip_format=".2f",
    )


def csat_chart(metrics: Sequence["WeeklyMetric"]) -> alt.Chart:
    return _weekly_line(
        weekly_chart_frame(metrics),
        "csat_average",
        "Average CSAT",
        CSAT_COLOR,
        CSAT_DOMAIN,
        y_format=".2~f",
        tooltip_format=".2f",
    )
