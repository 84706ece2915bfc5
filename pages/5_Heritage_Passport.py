# pages/5_Heritage_Passport.py
import streamlit as st

from utils.styling import setup_page

setup_page("Heritage Passport", "🗺️")

from domain.errors import WarisanError
from services import heritage_service as hs
from utils.auth_sidebar import _safe_rerun, render_auth_in_sidebar, require_auth
from utils.db import get_engine

render_auth_in_sidebar()
user = require_auth()
engine = get_engine()

st.markdown("<h2 class='big-title'>🗺️ Heritage Passport</h2>", unsafe_allow_html=True)

sites = hs.fetch_sites_with_visits(engine, user.id)
visited, total = hs.passport_progress(sites)
st.progress(visited / total if total else 0.0)
st.caption(f"{visited} of {total} heritage sites visited. Attend events at these sites to collect stamps.")

cols = st.columns(3)
for i, sv in enumerate(sites):
    with cols[i % 3]:
        off = "" if sv.visited else " off"
        stamp = f"✅ {sv.visit_date[:10]}" if sv.visited and sv.visit_date else "Not yet visited"
        st.markdown(
            f"""
            <div class="stamp{off}">
              <div style="font-size:1.6rem;">🏛️</div>
              <b>{sv.site.name}</b><br/>
              <small>{sv.site.description}</small><br/>
              <span class="pill{'' if sv.visited else ' muted'}">{stamp}</span>
            </div>
            """,
            unsafe_allow_html=True,
        )

st.divider()
st.subheader("📔 My heritage journal")

site_names = {s.site.id: s.site.name for s in sites if s.visited}
with st.form("journal", clear_on_submit=True):
    title = st.text_input("Title")
    site_id = st.selectbox("Site (optional)", [None] + list(site_names),
                           format_func=lambda k: "-" if k is None else site_names[k])
    content = st.text_area("Your notes")
    submitted = st.form_submit_button("Save entry")
if submitted:
    try:
        hs.create_journal_entry(engine, user.id, title, content, site_id=site_id)
    except WarisanError as e:
        for msg in getattr(e, "errors", [str(e)]):
            st.error(msg)
    else:
        st.success("Entry saved ✓")
        _safe_rerun()

for entry in hs.fetch_journal_entries(engine, user.id):
    site = hs.get_site(entry.site_id) if entry.site_id else None
    with st.container(border=True):
        st.markdown(f"**{entry.title}**" + (f" · _{site.name}_" if site else ""))
        st.caption((entry.created_at or "")[:10])
        st.write(entry.content)
