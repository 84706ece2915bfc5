# utils/auth_sidebar.py
from typing import Optional

import streamlit as st

from config import ORG_NAME, setup_logging, validate_config
from domain.errors import WarisanError
from domain.models import UserProfile
from services import auth_service
from utils.db import get_engine
from utils.schema import init_db

__all__ = [
    "render_auth_in_sidebar", "require_auth", "require_onboarded",
    "current_user", "require_admin", "log_in", "_safe_rerun",
]

_AUTH_KEYS = ("authenticated", "user_id", "name", "email")


def _safe_rerun() -> None:
    """Call st.rerun() on modern Streamlit; fallback to experimental_rerun() on older versions."""
    rerun = getattr(st, "rerun", None)
    if callable(rerun):
        rerun()
    else:  # older Streamlit
        getattr(st, "experimental_rerun")()


def _bootstrap_once() -> None:
    if not st.session_state.get("_db_ready"):
        setup_logging()
        validate_config()
        init_db(get_engine())
        st.session_state["_db_ready"] = True


def _ensure_auth_state() -> None:
    _bootstrap_once()
    st.session_state.setdefault("authenticated", False)
    st.session_state.setdefault("user_id", "")
    st.session_state.setdefault("name", "")
    st.session_state.setdefault("email", "")
    st.session_state.setdefault("admin_ok", False)


def log_in(user: UserProfile) -> None:
    st.session_state.user_id = user.id
    st.session_state.name = user.full_name
    st.session_state.email = user.email
    st.session_state.authenticated = True


def _log_out() -> None:
    for k in _AUTH_KEYS:
        st.session_state[k] = False if k == "authenticated" else ""
    st.session_state.admin_ok = False
    st.session_state.pop("payments", None)


def current_user() -> Optional[UserProfile]:
    """Fresh profile for the signed-in user (None when signed out or deleted)."""
    _ensure_auth_state()
    if not st.session_state.get("authenticated"):
        return None
    try:
        return auth_service.get_user(get_engine(), st.session_state.user_id)
    except WarisanError:
        _log_out()
        return None


def render_auth_in_sidebar() -> None:
    _ensure_auth_state()

    with st.sidebar:
        st.markdown(f"### 🏛️ {ORG_NAME}")

        if st.session_state.get("authenticated"):
            who = st.session_state.get("name") or st.session_state.get("email") or "(unknown)"
            st.success(f"✅ Signed in as {who}")
            if st.button("🚪 Logout", use_container_width=True):
                _log_out()
                _safe_rerun()
            return

        st.subheader("Sign in")
        email = st.text_input("Email", key="__login_email__", placeholder="you@example.com")
        pwd   = st.text_input("Password", key="__login_pass__", type="password", placeholder="Password")

        if st.button("Sign in", use_container_width=True):
            try:
                user = auth_service.sign_in(get_engine(), email, pwd)
            except WarisanError as e:
                st.session_state.authenticated = False
                st.error(f"❌ {e}")
            else:
                log_in(user)
                st.success("Signed in ✓")
                _safe_rerun()

        st.page_link("pages/1_Account.py", label="New here? Create an account", icon="📝")


def require_auth() -> UserProfile:
    """Call near the top of a page that needs a signed-in user."""
    user = current_user()
    if user is None:
        st.error("Please sign in from the sidebar to access this page.")
        st.stop()
    return user


def require_onboarded() -> UserProfile:
    """Signed in, with the address filled in and the phone verified."""
    user = require_auth()
    step = auth_service.next_onboarding_step(user)
    if step != "done":
        msg = ("Please complete your address details first." if step == "address"
               else "Please verify your phone number first.")
        st.warning(msg)
        st.page_link("pages/1_Account.py", label="Go to My Account", icon="👤")
        st.stop()
    return user


def require_admin() -> None:
    """Back-office pages are unlocked with the admin access key for this session."""
    _ensure_auth_state()
    if st.session_state.get("admin_ok"):
        return
    st.subheader("🔐 Admin access")
    key = st.text_input("Access key", type="password", key="__admin_key__")
    if st.button("Unlock"):
        try:
            auth_service.check_admin_access(key)
        except WarisanError as e:
            st.error(f"❌ {e}")
        else:
            st.session_state.admin_ok = True
            _safe_rerun()
    st.stop()
