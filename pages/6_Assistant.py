# pages/6_Assistant.py
import streamlit as st

from utils.styling import setup_page

setup_page("Ask BWM", "💬")

from services.chatbot_service import get_answer_by_question
from services.faq_list import CATEGORY_LABELS, get_faqs_by_category, get_top_faqs
from utils.auth_sidebar import render_auth_in_sidebar
from utils.db import get_engine

render_auth_in_sidebar()
engine = get_engine()

st.markdown("<h2 class='big-title'>💬 Ask BWM</h2>", unsafe_allow_html=True)
st.caption("Pick a question below.")

st.session_state.setdefault("chat", [])


def _ask(question: str) -> None:
    st.session_state.chat.append(("user", question))
    st.session_state.chat.append(("assistant", get_answer_by_question(question, engine)))


st.markdown("**Popular questions**")
for faq in get_top_faqs():
    if st.button(faq.question, key=f"faq_{faq.id}", use_container_width=True):
        _ask(faq.question)

with st.expander("More questions"):
    for cat, (emoji, label) in CATEGORY_LABELS.items():
        items = get_faqs_by_category(cat)
        if not items:
            continue
        st.markdown(f"{emoji} **{label}**")
        for faq in items:
            if st.button(faq.question, key=f"faq_{faq.id}", use_container_width=True):
                _ask(faq.question)

for role, text in st.session_state.chat:
    with st.chat_message(role):
        st.write(text)

if st.session_state.chat and st.button("Clear conversation"):
    st.session_state.chat = []
