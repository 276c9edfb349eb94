"""
Tests for the weekly Vega-Lite chart specs.
"""
from datetime import datetime, timedelta

import pytest

from analytics_core.charts import csat_chart, escalation_rate_chart, to_vega_spec
from analytics_core.metrics_weekly import aggregate_weekly
from tests.conftest import make_record

W1 = datetime(2024, 8, 5, 10, 0)


@pytest.fixture
def weeks():
    return aggregate_weekly(
        [
            make_record(W1, escalated="Yes", csat="5"),
            make_record(W1 + timedelta(days=7), escalated="No"),
        ]
    )


def _has_scale_bound_selection(spec):
    params = list(spec.get("params", []))
    for layer in spec.get("layer", []):
        params.extend(layer.get("params", []))
    return any(p.get("bind") == "scales" for p in params)


@pytest.mark.parametrize(
    "build,field,domain",
    [(escalation_rate_chart, "escalation_rate", [0, 100]), (csat_chart, "csat_average", [0, 5])],
)
def test_weekly_chart_spec(weeks, build, field, domain):
    spec = to_vega_spec(build(weeks))
    assert spec["encoding"]["y"]["field"] == field
    assert spec["encoding"]["y"]["scale"]["domain"] == domain
    assert spec["encoding"]["x"]["field"] == "label"
    assert _has_scale_bound_selection(spec)


def test_chart_rows_follow_week_order(weeks):
    spec = to_vega_spec(csat_chart(weeks))
    datasets = list(spec["datasets"].values())
    assert [row["label"] for row in datasets[0]] == ["Aug 5 - Aug 11", "Aug 12 - Aug 18"]
    assert datasets[0][1]["csat_average"] is None
