import streamlit as st

# Heritage palette
GREEN = "#0A402F"
GOLD = "#B48F5E"
CREAM = "#FFFBEA"
DARK_GOLD = "#B8860B"


def inject_global_styles():
    st.markdown(f"""
    <style>
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&family=Lora:wght@500;600;700&display=swap');

    html, body, .stApp, [data-testid="stAppViewContainer"] {{
      font-family: "Inter", -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif !important;
      -webkit-font-smoothing: antialiased;
      font-size: 16px; line-height: 1.55;
    }}
    .stApp {{ background-color: {CREAM}; }}
    .block-container {{ max-width: 880px; padding-top: 1.6rem; }}

    h1, h2, h3, h4 {{ font-family: "Lora", Georgia, serif; color: {GREEN}; font-weight: 700; margin: .2rem 0 .6rem; }}
    .big-title {{ font-size: 2.2rem; display:flex; align-items:center; gap:.5rem; margin-bottom:.25rem; }}
    .big-title span.emoji {{ font-size:1.8rem; line-height:1; }}
    .subtitle {{ font-size:1.02rem; color:#4b5563; margin-bottom:1.2rem; }}

    .stButton > button, .stFormSubmitButton > button {{
      font-weight: 700 !important;
      border-radius: 12px !important;
      background: {GREEN} !important;
      color: #fff !important;
      border: 0 !important;
    }}
    .stButton > button:hover {{ filter: brightness(1.1); }}
    a {{ color: {GREEN}; }}

    /* Cards */
    .feature-grid {{ display:grid; gap:1rem; grid-template-columns:repeat(2,minmax(0,1fr)); }}
    @media (max-width:700px){{ .feature-grid {{ grid-template-columns:1fr; }} }}
    .feature-card {{
      background:#fff; border:1px solid #EFE6D2; border-radius:16px; padding:1rem 1.1rem;
      box-shadow:0 6px 18px rgba(10,64,47,0.06); position:relative; overflow:hidden;
    }}
    .feature-card::before {{ content:""; position:absolute; inset:0 0 auto 0; height:4px;
      background:linear-gradient(90deg,{GREEN},{GOLD}); }}
    .fc-head {{ display:flex; align-items:center; gap:.6rem; margin:.25rem 0 .5rem; }}
    .fc-title a {{ color:{GREEN}; font-weight:700; text-decoration:none; }}
    .fc-desc {{ font-size:.95rem; color:#374151; margin:.3rem 0 0; }}

    /* Membership card */
    .member-card {{
      border-radius:18px; padding:1.2rem 1.3rem; color:#fff; margin:.5rem 0 1rem;
      background:linear-gradient(135deg,{GREEN},#14694f);
      box-shadow:0 10px 24px rgba(10,64,47,0.25);
    }}
    .member-card.gold {{ background:linear-gradient(135deg,#8a6a1f,{DARK_GOLD},#e0c36b); }}
    .member-card * {{ color:#fff !important; }}
    .member-card .mc-tier {{ font-family:"Lora",serif; font-size:1.3rem; font-weight:700; }}
    .member-card .mc-meta {{ opacity:.85; font-size:.9rem; }}

    /* Ticket */
    .ticket {{ background:#fff; border:1px dashed {GOLD}; border-radius:14px; padding:.9rem 1rem; margin:.4rem 0; }}
    .ticket .t-title {{ font-weight:700; color:{GREEN}; }}
    .pill {{ display:inline-block; padding:.1rem .55rem; border-radius:999px; font-size:.8rem; font-weight:600;
             background:#E8F3EE; color:{GREEN}; }}
    .pill.muted {{ background:#F3F4F6; color:#6b7280; }}

    /* Passport stamps */
    .stamp {{ text-align:center; padding:.8rem; border-radius:14px; border:2px solid {GOLD}; background:#fff; }}
    .stamp.off {{ border-style:dashed; opacity:.55; }}
    </style>
    """, unsafe_allow_html=True)


def inject_sidebar_styles():
    st.markdown(f"""
    <style>
    section[data-testid="stSidebar"] {{
      background-color: {GREEN} !important;
      border-right: 3px solid {GOLD};
      padding-top: 12px !important;
    }}
    section[data-testid="stSidebar"] * {{ color: {CREAM} !important; }}
    section[data-testid="stSidebar"] input {{ color: #111827 !important; }}
    section[data-testid="stSidebar"] hr {{ border-color: rgba(255,255,255,0.18) !important; }}

    section[data-testid="stSidebar"] nav a {{
      border-radius: 12px !important;
      padding: 8px 12px !important;
      font-weight: 600 !important;
    }}
    section[data-testid="stSidebar"] nav a[aria-current="page"] {{
      background: {GOLD} !important;
      font-weight: 700 !important;
    }}

    section[data-testid="stSidebar"] .stButton > button {{
      width: 100% !important;
      min-height: 44px !important;
      background: {GOLD} !important;
      border: 0 !important;
      border-radius: 14px !important;
      font-weight: 700 !important;
    }}
    section[data-testid="stSidebar"] .stButton > button * {{ color: #fff !important; }}
    </style>
    """, unsafe_allow_html=True)


def setup_page(title: str, icon: str = "🏛️") -> None:
    """Page config + theme; must run before any other st.* call on a page."""
    st.set_page_config(page_title=title, page_icon=icon, layout="centered")
    inject_global_styles()
    inject_sidebar_styles()
