# services/chatbot_service.py
import logging
from typing import Optional

from sqlalchemy.engine import Engine

from config import CURRENCY
from services.faq_list import FAQS, FALLBACK_ANSWER, FaqItem

logger = logging.getLogger(__name__)

NEXT_EVENT_ID = 1
RUMAH_PENGHULU_ID = 2


def _next_event_answer(engine: Engine) -> Optional[str]:
    from services.event_service import display_fee, fetch_events

    events = fetch_events(engine, upcoming_only=True)
    if not events:
        return "There are no upcoming events scheduled right now. Please check the Events page again soon!"
    ev = events[0]
    when = ev.date + (f" at {ev.time}" if ev.time else "")
    return (
        f"Our next event is {ev.title} on {when} at {ev.location} "
        f"({display_fee(ev)}). Would you like to book a spot on the Events page?"
    )


def _rumah_penghulu_answer(engine: Engine) -> Optional[str]:
    from services.donation_service import campaign_progress, get_campaign, get_campaign_stats

    campaign = get_campaign("rumah-penghulu")
    raised, _ = campaign_progress(campaign, get_campaign_stats(engine))
    return (
        "Rumah Penghulu is a beautiful traditional Malay house that we're currently restoring. "
        f"We've raised {CURRENCY}{raised:,.0f} of our {CURRENCY}{campaign.goal:,.0f} goal. "
        "Every donation helps preserve this piece of Malaysian heritage!"
    )


_DYNAMIC = {
    NEXT_EVENT_ID: _next_event_answer,
    RUMAH_PENGHULU_ID: _rumah_penghulu_answer,
}


def find_faq(question: str) -> Optional[FaqItem]:
    return next((f for f in FAQS if f.question == question), None)


def get_answer_by_question(question: str, engine: Optional[Engine] = None) -> str:
    """Exact-match lookup; live answers for dynamic items when a DB is available."""
    found = find_faq(question)
    if not found:
        return FALLBACK_ANSWER
    if found.dynamic and engine is not None and found.id in _DYNAMIC:
        try:
            return _DYNAMIC[found.id](engine) or found.answer
        except Exception:
            logger.exception("Dynamic FAQ answer %s failed; using static text", found.id)
    return found.answer
