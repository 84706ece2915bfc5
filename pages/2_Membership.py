# pages/2_Membership.py
import datetime

import streamlit as st

from utils.styling import setup_page

setup_page("Membership", "🪪")

from config import CURRENCY
from domain.errors import WarisanError
from services import membership_service as ms
from services.qr_service import membership_payload, qr_data_uri
from utils.auth_sidebar import _safe_rerun, render_auth_in_sidebar, require_onboarded
from utils.db import get_engine
from utils.screens.payment_screen import render_payment_screen
from utils.session_cache import drop_payment

render_auth_in_sidebar()
user = require_onboarded()
engine = get_engine()

st.session_state.setdefault("mship_step", 0)
st.session_state.setdefault("mship_role", None)
st.session_state.setdefault("mship_form", {"email": user.email})
st.session_state.setdefault("mship_upgrade", False)


def _reset_wizard() -> None:
    st.session_state.mship_step = 0
    st.session_state.mship_role = None
    st.session_state.mship_form = {"email": user.email}
    st.session_state.mship_upgrade = False
    drop_payment("membership")


def _show_errors(errors: list[str]) -> bool:
    for e in errors:
        st.error(e)
    return bool(errors)


# ──────────────────────────────────────────────────────────────
# Card view
# ──────────────────────────────────────────────────────────────
def _card(m) -> None:
    state = ms.membership_state(m)
    gold = " gold" if ms.is_gold_card(m.tier) else ""
    st.markdown(
        f"""
        <div class="member-card{gold}">
          <div class="mc-meta">Badan Warisan Malaysia</div>
          <div class="mc-tier">{m.tier}</div>
          <div style="font-size:1.1rem;margin:.4rem 0;">{m.full_name or user.full_name}</div>
          <div class="mc-meta">Member ID: {m.id[:8].upper()} · Valid until: {(m.expires_at or '-')[:10]}</div>
          <img src="{qr_data_uri(membership_payload(m.id, user.id))}" alt="Membership QR"
               style="width:180px;margin-top:.8rem;background:#fff;padding:6px;border-radius:8px;" />
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.caption("Show this QR at BWM events and partner venues")

    if state == "expired":
        st.warning("Your membership has expired. Renew to keep your benefits.")
        fee = ms.annual_fee(m.tier)

        def _renew(payment):
            ms.renew_membership(engine, m.id, payment)

        if render_payment_screen(f"renewal:{m.id}", fee, f"Annual renewal, {m.tier}", on_success=_renew):
            if st.button("View renewed card"):
                drop_payment(f"renewal:{m.id}")
                _safe_rerun()
    else:
        st.success("✅ Active membership")

    if not ms.is_gold_card(m.tier) and st.button("⬆️ Upgrade membership"):
        _reset_wizard()
        st.session_state.mship_upgrade = True
        _safe_rerun()


# ──────────────────────────────────────────────────────────────
# Wizard steps
# ──────────────────────────────────────────────────────────────
def _step_choose() -> None:
    st.markdown("<h2 class='big-title'>🪪 Become a member</h2>", unsafe_allow_html=True)
    for role, tier in ms.TIERS.items():
        with st.container(border=True):
            st.markdown(f"**{tier.title}** · _{tier.subtitle}_  \n"
                        f"{CURRENCY}{tier.first_payment:,.0f} · {tier.description}")
            if st.button(f"Choose {tier.title}", key=f"role_{role}"):
                st.session_state.mship_role = role
                st.session_state.mship_step = 1
                _safe_rerun()


def _step_details(role: str, form: dict) -> None:
    st.subheader("Step 1 · Your details")
    if role == "corporate":
        form["company_name"] = st.text_input("Company / society name", form.get("company_name", ""))
        form["company_roc"] = st.text_input("ROC number", form.get("company_roc", ""))
        form["company_phone"] = st.text_input("Company phone", form.get("company_phone", ""))
        form["company_fax"] = st.text_input("Company fax (optional)", form.get("company_fax", ""))
        form["representative_name"] = st.text_input("Representative name", form.get("representative_name", ""))
        form["representative_designation"] = st.text_input(
            "Representative designation", form.get("representative_designation", ""))
        form["email"] = st.text_input("Email", form.get("email", ""))
    else:
        form["email"] = st.text_input("Email", form.get("email", ""))
        form["ic_number"] = st.text_input("IC number", form.get("ic_number", ""))
        dob = st.date_input("Date of birth", value=None,
                            min_value=datetime.date(1900, 1, 1), max_value=datetime.date.today())
        form["date_of_birth"] = dob.isoformat() if dob else form.get("date_of_birth", "")
        form["profession"] = st.text_input("Profession", form.get("profession", ""))
        if role == "student":
            form["student_email"] = st.text_input("Student email", form.get("student_email", ""))
            levels = list(ms.EDUCATION_LEVELS)
            current = form.get("education_level")
            form["education_level"] = st.selectbox(
                "Education level", levels,
                index=levels.index(current) if current in levels else None,
                format_func=lambda k: ms.EDUCATION_LEVELS[k],
                placeholder="Choose",
            )

    c1, c2 = st.columns(2)
    if c1.button("← Back"):
        st.session_state.mship_step = 0
        _safe_rerun()
    if c2.button("Next →"):
        if not _show_errors(ms.validate_details(role, form)):
            st.session_state.mship_step = 2
            _safe_rerun()


def _step_survey(form: dict) -> None:
    st.subheader("Step 2 · A little about you")
    form["interests"] = st.multiselect("Interests", ms.INTEREST_OPTIONS, form.get("interests", []))
    if "Other" in form["interests"]:
        form["other_interest"] = st.text_input("Other interest", form.get("other_interest", ""))
    form["referral_sources"] = st.multiselect(
        "How did you hear about us?", ms.REFERRAL_OPTIONS, form.get("referral_sources", []))
    if "Other" in form["referral_sources"]:
        form["other_referral_source"] = st.text_input("Please specify", form.get("other_referral_source", ""))

    answer = st.radio("Are you interested to volunteer?", ["Yes", "No"], index=None, horizontal=True)
    form["volunteer_interest"] = None if answer is None else answer == "Yes"
    if form["volunteer_interest"]:
        form["volunteer_areas"] = st.multiselect(
            "Areas", ms.VOLUNTEER_OPTIONS, form.get("volunteer_areas", []))
        if "Other" in form["volunteer_areas"]:
            form["other_volunteer_area"] = st.text_input("Other area", form.get("other_volunteer_area", ""))
    else:
        form["volunteer_areas"] = []

    c1, c2 = st.columns(2)
    if c1.button("← Back"):
        st.session_state.mship_step = 1
        _safe_rerun()
    if c2.button("Continue to payment →"):
        if not _show_errors(ms.validate_survey(form)):
            st.session_state.mship_step = 3
            _safe_rerun()


def _step_pay(role: str, form: dict) -> None:
    st.subheader("Step 3 · Payment")
    tier = ms.TIERS[role]

    def _register(payment):
        ms.register_membership(engine, user, role, form, payment.reference,
                               upgrade=st.session_state.mship_upgrade)

    paid = render_payment_screen("membership", tier.first_payment,
                                 f"{tier.title} · {tier.description}", on_success=_register)
    if paid:
        st.balloons()
        st.success(f"Welcome aboard! You are now a {tier.title}.")
        if st.button("View my membership card"):
            _reset_wizard()
            _safe_rerun()


# ──────────────────────────────────────────────────────────────
membership = ms.get_membership(engine, user.id)

if membership and not st.session_state.mship_upgrade:
    st.markdown("<h2 class='big-title'>🪪 My membership</h2>", unsafe_allow_html=True)
    _card(membership)
    st.stop()

if membership and st.session_state.mship_upgrade:
    st.info(f"Upgrading from {membership.tier}. Your card will be updated in place.")
    if st.button("Cancel upgrade"):
        _reset_wizard()
        _safe_rerun()

step = st.session_state.mship_step
role = st.session_state.mship_role
form = st.session_state.mship_form

try:
    if step == 0 or role is None:
        _step_choose()
    elif step == 1:
        _step_details(role, form)
    elif step == 2:
        _step_survey(form)
    else:
        _step_pay(role, form)
except WarisanError as e:
    st.error(str(e))
