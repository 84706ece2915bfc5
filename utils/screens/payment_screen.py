# utils/screens/payment_screen.py
"""
Shared simulated checkout.

Used by Membership, Events and Donate:

    result = render_payment_screen("donation", amount, "Donation to ...", on_success=record)

Returns the PaymentResult once the flow has been paid in this session, or
None while the form is still open. The result is cached per flow in
session state, so a rerun after paying does not charge twice.
"""
import logging
from typing import Callable, Optional

import streamlit as st

from config import CURRENCY
from domain.errors import WarisanError
from domain.models import PaymentResult
from services import payment_service
from utils.session_cache import drop_payment, get_payment, put_payment

logger = logging.getLogger(__name__)

_FPX_STEP_LABELS = {
    "select_bank": "Redirecting to your bank…",
    "login": "Logging in to online banking…",
    "confirm": "Confirming payment…",
}


def _method_form(flow: str) -> tuple[str, dict]:
    labels = list(payment_service.METHODS.values())
    codes = list(payment_service.METHODS)
    choice = st.radio("Payment method", labels, key=f"{flow}__method", horizontal=True)
    method = codes[labels.index(choice)]

    form: dict = {}
    if method == "fpx":
        form["bank"] = st.selectbox("Select your bank", payment_service.FPX_BANKS, key=f"{flow}__bank")
    elif method == "card":
        raw = st.text_input("Card number", key=f"{flow}__card", placeholder="1234 5678 9012 3456")
        form["card_number"] = payment_service.format_card_number(raw)
        c1, c2 = st.columns(2)
        with c1:
            form["expiry"] = payment_service.format_expiry(
                st.text_input("Expiry (MM/YY)", key=f"{flow}__exp", placeholder="MM/YY")
            )
        with c2:
            form["cvc"] = st.text_input("CVC", key=f"{flow}__cvc", type="password", max_chars=4)
        form["name_on_card"] = st.text_input("Name on card", key=f"{flow}__name")
    else:
        st.caption("You'll approve the payment in your GrabPay app.")
    return method, form


def render_payment_screen(
    flow: str,
    amount: float,
    description: str,
    on_success: Optional[Callable[[PaymentResult], None]] = None,
) -> Optional[PaymentResult]:
    paid = get_payment(flow)
    if paid:
        st.success(f"✅ Paid {CURRENCY}{paid.amount:,.2f} via {payment_service.METHODS[paid.method]} "
                   f"(ref {paid.reference})")
        return paid

    st.markdown(f"#### 💳 Payment · {CURRENCY}{amount:,.2f}")
    st.caption(description)
    method, form = _method_form(flow)

    if not st.button(f"Pay {CURRENCY}{amount:,.2f}", key=f"{flow}__pay", use_container_width=True):
        return None

    status = st.empty()

    def _step(step: str) -> None:
        status.info(_FPX_STEP_LABELS.get(step, "Processing…"))

    try:
        with st.spinner("Processing payment…"):
            if method == "fpx":
                result = payment_service.pay_fpx(amount, form.get("bank", ""), on_step=_step)
            else:
                result = payment_service.process_payment(method, amount, form)
    except WarisanError as e:
        status.empty()
        st.error(f"❌ {e}")
        return None
    status.empty()

    put_payment(flow, result)
    if on_success:
        try:
            on_success(result)
        except WarisanError as e:
            drop_payment(flow)
            st.error(f"❌ {e}")
            return None
        except Exception:
            drop_payment(flow)
            logger.exception("Recording payment for %s failed", flow)
            st.error("❌ Payment went through but we could not record it. Please contact us.")
            return None

    st.success(f"✅ Payment successful (ref {result.reference})")
    return result
