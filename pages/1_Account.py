# pages/1_Account.py
import logging

import streamlit as st

from utils.styling import setup_page

setup_page("My Account", "👤")

from domain.errors import WarisanError
from services import auth_service, phone_verification
from utils.auth_sidebar import log_in, _safe_rerun, current_user, render_auth_in_sidebar
from utils.db import get_engine
from utils.validation import STATES

logger = logging.getLogger(__name__)

render_auth_in_sidebar()
engine = get_engine()


def _sign_up_form() -> None:
    st.markdown("<h2 class='big-title'>📝 Create an account</h2>", unsafe_allow_html=True)
    with st.form("signup"):
        full_name = st.text_input("Full name")
        email = st.text_input("Email")
        phone = st.text_input("Phone number", placeholder="+60 12-345 6789")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Sign up", use_container_width=True)

    if submitted:
        try:
            user = auth_service.sign_up(engine, email, password, confirm, full_name, phone)
        except WarisanError as e:
            for msg in getattr(e, "errors", [str(e)]):
                st.error(msg)
        else:
            log_in(user)
            st.success("Account created! Let's finish setting up your profile.")
            _safe_rerun()


def _address_form(user) -> None:
    st.subheader("🏠 Address details")
    st.caption("We need your mailing address before you can continue.")
    with st.form("address"):
        line1 = st.text_input("Address line 1", value=user.address_line1 or "")
        line2 = st.text_input("Address line 2 (optional)", value=user.address_line2 or "")
        c1, c2 = st.columns(2)
        with c1:
            postcode = st.text_input("Postcode", value=user.postcode or "", max_chars=5)
        with c2:
            city = st.text_input("City", value=user.city or "")
        idx = STATES.index(user.state) + 1 if user.state in STATES else 0
        state = st.selectbox("State", [""] + STATES, index=idx)
        submitted = st.form_submit_button("Save address", use_container_width=True)

    if submitted:
        try:
            auth_service.update_address(
                engine, user.id,
                address_line1=line1, address_line2=line2,
                postcode=postcode, city=city, state=state,
            )
        except WarisanError as e:
            for msg in getattr(e, "errors", [str(e)]):
                st.error(msg)
        else:
            st.success("Address saved ✓")
            _safe_rerun()


def _phone_form(user) -> None:
    st.subheader("📱 Verify your phone number")
    phone = st.text_input("Phone number", value=user.phone_number or "", key="verify_phone")
    if st.button("Send code"):
        res = phone_verification.send_verification_code(engine, phone)
        (st.success if res.success else st.error)(res.message)
        if res.success:
            st.session_state["otp_phone"] = phone

    if st.session_state.get("otp_phone"):
        code = st.text_input("Verification code", max_chars=6)
        if st.button("Verify"):
            res = phone_verification.verify_phone_number(
                engine, st.session_state["otp_phone"], code, user_id=user.id
            )
            if res.success:
                st.session_state.pop("otp_phone", None)
                st.success(res.message)
                _safe_rerun()
            else:
                st.error(res.message)


def _profile(user) -> None:
    st.markdown(f"<h2 class='big-title'>👤 {user.full_name}</h2>", unsafe_allow_html=True)
    st.markdown(
        f"**Email:** {user.email}  \n"
        f"**Phone:** {user.phone_number or '-'} "
        f"{'✅ verified' if user.phone_verified else '⚠️ not verified'}  \n"
        f"**Address:** {', '.join(p for p in [user.address_line1, user.address_line2, user.postcode, user.city, user.state] if p)}"
    )

    with st.expander("✏️ Edit profile"):
        with st.form("profile"):
            full_name = st.text_input("Full name", value=user.full_name)
            phone = st.text_input(
                "Phone number", value=user.phone_number or "",
                help="A verified phone number can only be changed once.",
            )
            submitted = st.form_submit_button("Save")
        if submitted:
            try:
                auth_service.update_profile(engine, user.id, full_name=full_name, phone_number=phone)
            except WarisanError as e:
                st.error(str(e))
            else:
                st.success("Profile updated ✓")
                _safe_rerun()

    with st.expander("🏠 Update address"):
        _address_form(user)


user = current_user()
if user is None:
    _sign_up_form()
    st.stop()

step = auth_service.next_onboarding_step(user)
if step == "address":
    _address_form(user)
elif step == "phone":
    _phone_form(user)
else:
    _profile(user)
