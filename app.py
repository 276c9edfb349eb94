import logging
from datetime import date
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from analytics_core.charts import csat_chart, escalation_rate_chart
from analytics_core.data import DataLoadError, load_dashboard_data, prepare_context
from analytics_core.export import weekly_export_csv, weekly_table_rows
from analytics_core.filters import ANY, EXISTS, NOT_EXISTS, ContactFilters
from analytics_core.metrics_weekly import WeeklyMetric, aggregate_weekly, compute_summary

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
alt.data_transformers.disable_max_rows()

PRESENCE_OPTIONS = {"All": ANY, "Exists": EXISTS, "Does not exist": NOT_EXISTS}
YES_NO_OPTIONS = {"All": ANY, "Yes": "Yes", "No": "No"}
TONE_COLORS = {"positive": "#30d158", "negative": "#ff453a", "neutral": "#6e6e73"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_filter_summary(filters: ContactFilters) -> str:
    start = filters.start_date.isoformat() if filters.start_date else "start"
    end = filters.end_date.isoformat() if filters.end_date else "end"
    chips = [f"Dates: {start} → {end}"]
    if filters.escalated != ANY:
        chips.append(f"Escalated: {filters.escalated}")
    if filters.repeat_contacts_min is not None or filters.repeat_contacts_max is not None:
        lo = filters.repeat_contacts_min if filters.repeat_contacts_min is not None else "-"
        hi = filters.repeat_contacts_max if filters.repeat_contacts_max is not None else "-"
        chips.append(f"Contacts: {lo}–{hi}")
    if filters.csat_scores:
        chips.append(f"CSAT: {', '.join(filters.csat_scores)}")
    if filters.user_device != ANY:
        chips.append(f"Device: {filters.user_device}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def trend_html(badge: Dict[str, str]) -> str:
    return f"<span style='color:{TONE_COLORS[badge['tone']]}'>{badge['text']}</span>"


def render_table(weeks: List[WeeklyMetric]):
    rows = weekly_table_rows(weeks)
    if not rows:
        st.info("No records match the selected filters.")
        return
    display = pd.DataFrame(
        [
            {
                "Week": r["week"],
                "Total": r["total"],
                "Escalated": r["escalated"],
                "Escalation Rate": r["escalation_rate"],
                "Rate Trend": r["rate_trend"]["text"],
                "CSAT Responses": r["csat_responses"],
                "Avg CSAT": r["avg_csat"],
                "CSAT Trend": r["csat_trend"]["text"],
            }
            for r in rows
        ]
    )
    st.dataframe(display, use_container_width=True, hide_index=True)
    latest = rows[-1]
    st.markdown(
        f"Latest week ({latest['week']}): escalation {trend_html(latest['rate_trend'])}, "
        f"CSAT {trend_html(latest['csat_trend'])}",
        unsafe_allow_html=True,
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Support Week Analytics", layout="wide")
inject_base_styles()
st.title("Support Week Analytics")
st.caption("Weekly escalation rate and CSAT for the filtered support contacts.")

try:
    data_ctx = load_dashboard_data()
except DataLoadError as exc:
    st.error(str(exc))
    st.stop()

records = data_ctx.get("records", ())
if not records:
    st.error("The data file contains no contact records.")
    st.stop()

lo, hi = data_ctx.get("date_bounds") or (None, None)
options: Dict[str, List[str]] = data_ctx.get("options", {})


def _date_or_none(value) -> Optional[date]:
    return value if isinstance(value, date) else None


# ----- Sidebar: filters -----
with st.sidebar:
    if st.button("Reset filters"):
        for key in list(st.session_state.keys()):
            if key.startswith("f_"):
                del st.session_state[key]
        st.rerun()

    with st.form("filters"):
        st.markdown("### Date range")
        start_date = st.date_input("Start", value=lo, min_value=lo, max_value=hi, key="f_start")
        end_date = st.date_input("End", value=hi, min_value=lo, max_value=hi, key="f_end")

        st.markdown("### Contacts")
        escalated = st.selectbox("Escalated", list(YES_NO_OPTIONS), key="f_escalated")
        c1, c2 = st.columns(2)
        repeat_min = c1.number_input("Repeat contacts min", min_value=0, value=None, step=1, key="f_repeat_min")
        repeat_max = c2.number_input("Repeat contacts max", min_value=0, value=None, step=1, key="f_repeat_max")

        st.markdown("### CSAT")
        csat_exists = st.selectbox("CSAT", list(PRESENCE_OPTIONS), key="f_csat_exists")
        csat_scores = st.multiselect("Scores", options.get("csat_scores", []), default=options.get("csat_scores", []), key="f_csat_scores")

        st.markdown("### Language")
        decagon_language_exists = st.selectbox("Decagon language", list(PRESENCE_OPTIONS), key="f_dl_exists")
        decagon_languages = st.multiselect(
            "Decagon languages", options.get("decagon_languages", []), default=options.get("decagon_languages", []), key="f_dl"
        )
        language_exists = st.selectbox("Language", list(PRESENCE_OPTIONS), key="f_lang_exists")
        languages = st.multiselect("Languages", options.get("languages", []), default=options.get("languages", []), key="f_lang")

        st.markdown("### Account")
        rtr_flagged = st.selectbox("Post-signup RTR flagged", list(PRESENCE_OPTIONS), key="f_rtr")
        sandbox = st.selectbox("Sandbox", list(PRESENCE_OPTIONS), key="f_sandbox")
        user_device = st.selectbox("User device", ["All"] + options.get("user_devices", []), key="f_device")
        fee_block_state = st.selectbox("Fee block state", list(PRESENCE_OPTIONS), key="f_fee")
        is_trial = st.selectbox("Trial", list(PRESENCE_OPTIONS), key="f_trial")
        admin_portal = st.selectbox("Admin portal", list(PRESENCE_OPTIONS), key="f_admin")

        st.form_submit_button("Apply filters")

filters = {
    "start_date": _date_or_none(start_date),
    "end_date": _date_or_none(end_date),
    "escalated": YES_NO_OPTIONS[escalated],
    "repeat_contacts_min": repeat_min,
    "repeat_contacts_max": repeat_max,
    "csat_exists": PRESENCE_OPTIONS[csat_exists],
    "csat_scores": csat_scores,
    "decagon_language_exists": PRESENCE_OPTIONS[decagon_language_exists],
    "decagon_languages": decagon_languages,
    "rtr_flagged": PRESENCE_OPTIONS[rtr_flagged],
    "sandbox": PRESENCE_OPTIONS[sandbox],
    "user_device": ANY if user_device == "All" else user_device,
    "fee_block_state": PRESENCE_OPTIONS[fee_block_state],
    "is_trial": PRESENCE_OPTIONS[is_trial],
    "language_exists": PRESENCE_OPTIONS[language_exists],
    "languages": languages,
    "admin_portal": PRESENCE_OPTIONS[admin_portal],
}

ctx = prepare_context(filters, data_ctx)
filtered_records = ctx["filtered_records"]
weeks = aggregate_weekly(filtered_records)
summary = compute_summary(filtered_records)

# ----- Header -----
top = st.container()
h1, h2 = top.columns([8, 2])
with h1:
    st.markdown("<div class='app-top-bar'><div class='page-title'>Weekly overview</div></div>", unsafe_allow_html=True)
with h2:
    st.download_button(
        "Export CSV",
        data=weekly_export_csv(weeks).encode("utf-8"),
        file_name=f"analytics-export-{date.today().isoformat()}.csv",
        mime="text/csv",
        disabled=not weeks,
    )
st.markdown(f"<div class='chip-row'>{format_filter_summary(ctx['filters'])}</div>", unsafe_allow_html=True)

# ----- Summary cards -----
cols = st.columns(3)
cols[0].metric("Total Records", f"{summary['total_records']:,}")
cols[1].metric("CSAT Responses", f"{summary['csat_responses']:,}")
cols[2].metric("Weeks", f"{len(weeks):,}")

# ----- Charts -----
chart_cols = st.columns(2)
with chart_cols[0]:
    st.subheader("Escalation Rate")
    if weeks:
        st.altair_chart(escalation_rate_chart(weeks), use_container_width=True)
    else:
        st.info("No weekly data.")
with chart_cols[1]:
    st.subheader("Average CSAT")
    if weeks:
        st.altair_chart(csat_chart(weeks), use_container_width=True)
    else:
        st.info("No weekly data.")

# ----- Table -----
st.subheader("Weekly breakdown")
render_table(weeks)
