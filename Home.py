# Home.py
import streamlit as st

from utils.styling import setup_page

# ── Page config FIRST ─────────────────────────────────────────
setup_page("Badan Warisan Malaysia", "🏛️")

from config import ORG_NAME
from utils.auth_sidebar import render_auth_in_sidebar

# ── Sidebar auth on EVERY page ────────────────────────────────
render_auth_in_sidebar()

# ── Hero ──────────────────────────────────────────────────────
name = st.session_state.get("name")
st.markdown(
    f"""
    <h2 class="big-title">
        <span class='emoji'>🏛️</span> {ORG_NAME}
    </h2>
    <div class='subtitle'>{"Welcome back, " + name + "! " if name else ""}Membership, events and
    heritage, all in one place.</div>
    """,
    unsafe_allow_html=True,
)

# ── Robust page URL helper (works with server.baseUrlPath) ────
def page_href(page_name: str) -> str:
    base = st.get_option("server.baseUrlPath") or ""
    base = "" if base in ("", "/") else "/" + base.strip("/")
    return f"{base}/{page_name}"

cards = [
    ("🪪", "Membership", "Membership",
     "Join as an Ordinary, Student or Corporate member, show your digital card and renew each year."),
    ("🎟️", "Events", "Events",
     "Browse heritage walks, talks and workshops. Register, pay and keep your QR tickets."),
    ("💚", "Donate", "Donate",
     "Support restoration and education campaigns and see where you stand on the donor leaderboard."),
    ("🗺️", "Heritage Passport", "Heritage_Passport",
     "Collect a stamp for every heritage site you visit at our events and keep a journal."),
    ("💬", "Ask BWM", "Assistant",
     "Quick answers about BWM, our events and how to support us."),
    ("👤", "My Account", "Account",
     "Sign up, complete your address and verify your phone number."),
]

html = "".join(
    f"""
  <div class="feature-card">
    <div class="fc-head">
      <div class="fc-icon">{icon}</div>
      <div class="fc-title"><a href="{page_href(slug)}" target="_self">{title}</a></div>
    </div>
    <p class="fc-desc">{desc}</p>
  </div>"""
    for icon, title, slug, desc in cards
)
st.markdown(f'<div class="feature-grid">{html}</div>', unsafe_allow_html=True)
