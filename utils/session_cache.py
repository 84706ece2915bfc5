# utils/session_cache.py
import streamlit as st

from domain.models import PaymentResult

# Per-flow results of the simulated checkout ("membership", "event:<id>", "donation", ...)

def put_payment(flow: str, result: PaymentResult):
    st.session_state.setdefault("payments", {})[flow] = result

def get_payment(flow: str) -> PaymentResult | None:
    return (st.session_state.get("payments") or {}).get(flow)

def drop_payment(flow: str):
    (st.session_state.get("payments") or {}).pop(flow, None)
