# pages/4_Donate.py
import streamlit as st

from utils.styling import setup_page

setup_page("Donate", "💚")

from config import CURRENCY
from domain.errors import WarisanError
from services import donation_service as ds
from utils.auth_sidebar import _safe_rerun, current_user, render_auth_in_sidebar
from utils.db import get_engine
from utils.screens.payment_screen import render_payment_screen
from utils.session_cache import drop_payment

render_auth_in_sidebar()
engine = get_engine()
user = current_user()

st.markdown("<h2 class='big-title'>💚 Support our heritage</h2>", unsafe_allow_html=True)

tab_give, tab_board = st.tabs(["Campaigns", "🏆 Leaderboard"])

with tab_give:
    stats = ds.get_campaign_stats(engine)
    titles = {c.id: c.title for c in ds.CAMPAIGNS}
    for c in ds.CAMPAIGNS:
        raised, pct = ds.campaign_progress(c, stats)
        with st.container(border=True):
            st.image(c.image, use_container_width=True)
            st.markdown(f"**{c.title}**  \n{c.description}")
            st.progress(pct / 100)
            st.caption(f"{CURRENCY}{raised:,.0f} raised · {CURRENCY}{c.goal:,.0f} goal")

    st.divider()
    if not user:
        st.info("Please sign in to make a donation.")
    elif "donation_pending" not in st.session_state:
        campaign_id = st.selectbox("Campaign", list(titles), format_func=titles.get)
        preset = st.radio("Amount", [None] + ds.PRESET_AMOUNTS, horizontal=True,
                          format_func=lambda a: "Other" if a is None else f"{CURRENCY}{a}")
        custom = None
        if preset is None:
            custom = st.number_input(f"Custom amount ({CURRENCY})", min_value=0.0, step=10.0)
        if st.button("Continue to payment", use_container_width=True):
            try:
                amount = ds.resolve_amount(preset, custom)
            except WarisanError as e:
                st.error(str(e))
            else:
                st.session_state.donation_pending = {"campaign_id": campaign_id, "amount": amount}
                _safe_rerun()
    else:
        pending = st.session_state.donation_pending

        def _record(payment):
            ds.add_donation(engine, user.id, payment.amount, payment.method,
                            pending["campaign_id"], payment_reference=payment.reference)

        paid = render_payment_screen("donation", pending["amount"],
                                     f"Donation to {titles[pending['campaign_id']]}", on_success=_record)
        if paid:
            st.balloons()
            st.success("Thank you for your generosity! 💚")
        label = "Make another donation" if paid else "Cancel"
        if st.button(label):
            st.session_state.pop("donation_pending", None)
            drop_payment("donation")
            _safe_rerun()

with tab_board:
    board = ds.get_leaderboard(engine)
    if not board:
        st.info("Be the first to donate!")
    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    for entry in board:
        me = " (you)" if user and entry.user_id == user.id else ""
        st.markdown(f"{medals.get(entry.rank, f'#{entry.rank}')} **{entry.name}**{me} · "
                    f"{CURRENCY}{entry.amount:,.2f}")
