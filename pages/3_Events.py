# pages/3_Events.py
import streamlit as st

from utils.styling import setup_page

setup_page("Events", "🎟️")

from domain.errors import WarisanError
from services import event_service, membership_service
from services.qr_service import registration_payload, render_qr_png
from utils.auth_sidebar import _safe_rerun, current_user, render_auth_in_sidebar
from utils.db import get_engine
from utils.screens.payment_screen import render_payment_screen
from utils.session_cache import drop_payment

render_auth_in_sidebar()
engine = get_engine()
user = current_user()
is_member = bool(user) and membership_service.membership_state(
    membership_service.get_membership(engine, user.id)) == "active"

st.markdown("<h2 class='big-title'>🎟️ Events</h2>", unsafe_allow_html=True)


def _register(ev) -> None:
    pending_key = f"reg_form:{ev.id}"
    fee = event_service.applicable_fee(ev, is_member)

    if pending_key not in st.session_state:
        with st.form(f"register_{ev.id}"):
            name = st.text_input("Full name", value=user.full_name if user else "")
            email = st.text_input("Email", value=user.email if user else "")
            phone = st.text_input("Phone", value=(user.phone_number or "") if user else "")
            label = "Register" if fee <= 0 else f"Continue to payment ({event_service.display_fee(ev, is_member)})"
            submitted = st.form_submit_button(label, use_container_width=True)
        if not submitted:
            return
        form = {"name": name, "email": email, "phone": phone}
        errors = event_service.validate_registration_form(form)
        if errors:
            for e in errors:
                st.error(e)
            return
        if event_service.check_registration(engine, ev.id, email):
            st.info("You are already registered for this event.")
            return
        if fee <= 0:
            try:
                reg = event_service.register_for_event(
                    engine, ev.id, form, user_id=user.id if user else None, is_member=is_member)
            except WarisanError as e:
                st.error(str(e))
                return
            st.success("🎉 You're registered! Your ticket is below.")
            st.image(render_qr_png(registration_payload(reg.id)), width=200)
            return
        st.session_state[pending_key] = form
        _safe_rerun()

    form = st.session_state[pending_key]

    def _record(payment):
        event_service.register_for_event(
            engine, ev.id, form, user_id=user.id if user else None,
            is_member=is_member, payment=payment)

    paid = render_payment_screen(f"event:{ev.id}", fee, f"Ticket for {ev.title}", on_success=_record)
    if paid:
        st.success("🎉 You're registered! Find your ticket under My Tickets.")
        if st.button("Done", key=f"done_{ev.id}"):
            st.session_state.pop(pending_key, None)
            drop_payment(f"event:{ev.id}")
            _safe_rerun()
    elif st.button("Cancel", key=f"cancel_{ev.id}"):
        st.session_state.pop(pending_key, None)
        _safe_rerun()


tab_events, tab_tickets = st.tabs(["Upcoming events", "My tickets"])

with tab_events:
    events = event_service.fetch_events(engine, upcoming_only=True)
    if not events:
        st.info("No upcoming events right now. Check back soon!")
    for ev in events:
        with st.expander(f"**{ev.title}** · {ev.date} · {event_service.display_fee(ev, is_member)}"):
            if ev.image_url:
                st.image(ev.image_url, use_container_width=True)
            st.markdown(f"🗓️ {ev.date}{' · ' + ev.time if ev.time else ''}  \n📍 {ev.location}")
            st.write(ev.description or "")
            if ev.member_fee is not None and not is_member and (ev.fee or 0) > ev.member_fee:
                st.caption(f"Members pay {event_service.display_fee(ev, True)}.")
            _register(ev)

with tab_tickets:
    if not user:
        st.info("Sign in to see your tickets.")
    else:
        regs = event_service.fetch_user_registrations(engine, user.id)
        if not regs:
            st.info("You haven't registered for any events yet.")
        for reg in regs:
            muted = "" if reg.status in ("registered", "confirmed") else " muted"
            st.markdown(
                f"""
                <div class="ticket">
                  <div class="t-title">{reg.event_title}</div>
                  <div>🗓️ {reg.event_date} · 📍 {reg.event_location}</div>
                  <span class="pill{muted}">{reg.status.upper()}</span>
                </div>
                """,
                unsafe_allow_html=True,
            )
            if reg.status in ("registered", "confirmed"):
                c1, c2 = st.columns([2, 1])
                with c1:
                    st.image(render_qr_png(registration_payload(reg.id)), width=180)
                with c2:
                    if st.button("Cancel registration", key=f"cancel_reg_{reg.id}"):
                        try:
                            event_service.cancel_registration(engine, reg.id, user.id)
                        except WarisanError as e:
                            st.error(str(e))
                        else:
                            _safe_rerun()
