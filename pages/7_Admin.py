# pages/7_Admin.py
import datetime
import logging

import altair as alt
import pandas as pd
import streamlit as st

from utils.styling import GOLD, GREEN, setup_page

setup_page("Admin", "🛠️")

from domain.errors import WarisanError
from services import checkin_service, event_service, report_service
from services.qr_service import encode_payload, registration_payload
from services.storage_service import get_storage
from utils.auth_sidebar import _safe_rerun, render_auth_in_sidebar, require_admin
from utils.db import get_engine

logger = logging.getLogger(__name__)

render_auth_in_sidebar()
require_admin()

engine = get_engine()
storage = get_storage()

st.markdown("<h2 class='big-title'>🛠️ Back office</h2>", unsafe_allow_html=True)

st.markdown("""
<style>
div[data-testid="stExpander"] > details > summary {
  background: #0A402F10;
  border: 1px solid #B48F5E55;
  border-radius: 10px;
  padding: .6rem .9rem;
}
</style>
""", unsafe_allow_html=True)

tab_events, tab_scan, tab_attendance, tab_reports = st.tabs(
    ["📅 Events", "📷 Scanner", "📈 Attendance", "📊 Reports"]
)

# ──────────────────────────────────────────────
# Events
# ──────────────────────────────────────────────
with tab_events:
    with st.expander("➕ Create event", expanded=False):
        with st.form("create_event", clear_on_submit=True):
            title = st.text_input("Title")
            c1, c2 = st.columns(2)
            with c1:
                date = st.date_input("Date", min_value=datetime.date.today())
            with c2:
                time = st.time_input("Time", value=datetime.time(10, 0))
            location = st.text_input("Location", placeholder="Rumah Penghulu, Kuala Lumpur")
            description = st.text_area("Description")
            c3, c4 = st.columns(2)
            with c3:
                fee = st.number_input("Fee (RM, 0 = free)", min_value=0.0, step=5.0)
            with c4:
                member_fee = st.number_input("Member fee (RM, blank = normal fee)", min_value=0.0, value=None, step=5.0)
            poster = st.file_uploader("Poster (optional)", type=["png", "jpg", "jpeg"])
            submitted = st.form_submit_button("Create event")

        if submitted:
            form = {
                "title": title, "date": date.isoformat(), "time": time.strftime("%H:%M"),
                "location": location, "description": description,
                "fee": fee, "member_fee": member_fee,
            }
            try:
                ev = event_service.create_event(
                    engine, form,
                    poster=poster.getvalue() if poster else None,
                    poster_filename=poster.name if poster else "poster.png",
                    content_type=poster.type if poster else "image/png",
                    storage=storage,
                )
            except WarisanError as e:
                for msg in getattr(e, "errors", [str(e)]):
                    st.error(msg)
            except Exception:
                logger.exception("Event creation failed")
                st.error("❌ Could not create the event (poster upload or database error).")
            else:
                st.success(f"✅ Created **{ev.title}**")

    for ev in event_service.fetch_events(engine):
        c1, c2 = st.columns([5, 1])
        c1.markdown(f"**{ev.title}** · {ev.date} {ev.time or ''} · {ev.location} · "
                    f"{event_service.display_fee(ev)}")
        if c2.button("🗑️", key=f"del_{ev.id}", help="Delete event"):
            try:
                event_service.delete_event(engine, ev.id)
            except WarisanError as e:
                st.error(str(e))
            else:
                _safe_rerun()

# ──────────────────────────────────────────────
# Scanner (handheld scanners type into the box and press Enter)
# ──────────────────────────────────────────────
with tab_scan:
    verifier = st.text_input("Your name (recorded on check-in)", key="verifier_name")
    with st.form("scan", clear_on_submit=True):
        code = st.text_input("Scan or paste QR content")
        scanned = st.form_submit_button("Verify")
    if scanned and code:
        result = checkin_service.scan(engine, code, verifier_id=verifier or None)
        (st.success if result.ok else st.error)(result.message)
        if result.record:
            st.json(result.record)

    st.markdown("**Manual lookup**")
    q = st.text_input("Search by name or e-mail")
    if q:
        df = checkin_service.search_registrations(engine, q)
        if df.empty:
            st.info("No matching tickets.")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True)
            pick = st.selectbox("Ticket", df["id"].tolist(),
                                format_func=lambda i: df.set_index("id").loc[i, "registrant_name"])
            if st.button("Check in selected"):
                res = checkin_service.check_in_registration(
                    engine, encode_payload(registration_payload(pick)),
                    verifier_id=verifier or None)
                (st.success if res.ok else st.error)(res.message)

# ──────────────────────────────────────────────
# Attendance
# ──────────────────────────────────────────────
with tab_attendance:
    events = event_service.fetch_events(engine)
    options = [None] + [e.id for e in events]
    titles = {e.id: f"{e.title} ({e.date})" for e in events}
    picked = st.selectbox("Event", options, format_func=lambda i: titles.get(i, "All events"))

    summary = checkin_service.attendance_summary(engine, picked)
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Tickets", f"{summary['total']:,}")
    k2.metric("Checked-in", f"{summary['checked_in']:,}")
    k3.metric("Remaining", f"{summary['remaining']:,}")
    k4.metric("Completion", f"{summary['completion_pct']:.1f}%")

    left, right = st.columns([1, 1.4])
    with left:
        if summary["total"]:
            data = pd.DataFrame({
                "label": ["Checked-in", "Not checked-in"],
                "value": [summary["checked_in"], summary["remaining"]],
            })
            donut = alt.Chart(data).mark_arc(innerRadius=70).encode(
                theta=alt.Theta("value:Q"),
                color=alt.Color(
                    "label:N",
                    legend=alt.Legend(title=None),
                    scale=alt.Scale(domain=["Checked-in", "Not checked-in"], range=[GREEN, GOLD]),
                ),
                tooltip=["label:N", "value:Q"],
            ).properties(height=260, title="Headcount")
            st.altair_chart(donut, use_container_width=True)
        else:
            st.info("No tickets issued yet.")
        if summary["cancelled"]:
            st.caption(f"Cancelled tickets (not counted): {summary['cancelled']:,}")

    with right:
        st.subheader("Recent check-ins")
        recent = checkin_service.recent_checkins(engine, event_id=picked)
        if recent.empty:
            st.caption("Nobody has been checked in yet.")
        else:
            st.dataframe(recent, use_container_width=True, hide_index=True)

# ──────────────────────────────────────────────
# Reports
# ──────────────────────────────────────────────
with tab_reports:
    labels = {t: label for t, (label, _) in report_service.EXPORTABLE_TABLES.items()}
    table = st.selectbox("Table", list(labels), format_func=labels.get)
    c1, c2 = st.columns(2)
    start = c1.date_input("From", value=None)
    end = c2.date_input("To", value=None)

    try:
        csv_text = report_service.export_table_csv(
            engine, table,
            start.isoformat() if start else None,
            end.isoformat() if end else None,
        )
    except WarisanError as e:
        st.error(str(e))
    else:
        st.download_button(
            "⬇️ Download CSV",
            data=csv_text.encode("utf-8"),
            file_name=f"{table}-{datetime.date.today().isoformat()}.csv",
            mime="text/csv",
        )

    if st.button("💾 Generate & save report"):
        try:
            rec = report_service.generate_and_save_report(engine, storage, table)
        except WarisanError as e:
            st.error(str(e))
        except Exception:
            logger.exception("Saving report failed")
            st.error("❌ Could not save the report.")
        else:
            st.success(f"Saved **{rec.file_name}** ({rec.row_count} rows)")

    st.markdown("**Report history**")
    for rec in report_service.list_reports(engine):
        c1, c2, c3 = st.columns([4, 1, 1])
        c1.markdown(f"{rec.file_name}  \n<small>{rec.created_at} · {rec.row_count} rows</small>",
                    unsafe_allow_html=True)
        try:
            name, data = report_service.download_report(engine, storage, rec.id)
        except Exception as e:
            c2.caption("missing")
            logger.warning("Report %s unavailable: %s", rec.id, e)
        else:
            c2.download_button("⬇️", data=data, file_name=name, mime="text/csv", key=f"dl_{rec.id}")
        if c3.button("🗑️", key=f"rm_{rec.id}"):
            report_service.delete_report(engine, storage, rec.id)
            _safe_rerun()
