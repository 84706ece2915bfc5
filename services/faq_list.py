# services/faq_list.py
"""Fixed FAQ content for the assistant page."""
from dataclasses import dataclass, field
from typing import List

ABOUT, EVENTS, SUPPORT = "about", "events", "support"

CATEGORY_LABELS = {
    ABOUT: ("🏛️", "About BWM"),
    EVENTS: ("🎟️", "Events & Activities"),
    SUPPORT: ("💰", "Support & Membership"),
}

FALLBACK_ANSWER = (
    "Sorry, I cannot find an answer for that question yet. "
    "Please choose another FAQ option."
)


@dataclass(frozen=True)
class FaqItem:
    id: int
    question: str
    answer: str
    category: str
    keywords: List[str] = field(default_factory=list)
    priority: bool = False
    dynamic: bool = False   # answer is computed from live data when possible


FAQS = [
    # top questions, shown first
    FaqItem(
        2, "Tell me about Rumah Penghulu",
        "Rumah Penghulu is a beautiful traditional Malay house that we're currently restoring. "
        "We've raised RM15,000 of our RM20,000 goal. Every donation helps preserve this piece "
        "of Malaysian heritage!",
        ABOUT, ["rumah", "penghulu", "house", "restoration"], priority=True, dynamic=True,
    ),
    FaqItem(
        5, "How do I donate to BWM?",
        "You can donate via the Donate page using available payment methods such as QR payment, "
        "card, or e-wallet (depending on the implementation). Every donation helps heritage "
        "conservation efforts.",
        SUPPORT, ["donate", "donation", "payment"], priority=True,
    ),
    FaqItem(
        4, "What are the membership benefits?",
        "BWM membership offers free entry to selected events, a quarterly heritage newsletter, "
        "discounts at partner shops, and access to member-only tours. Student membership is "
        "available at a lower fee.",
        SUPPORT, ["membership", "benefits", "member"], priority=True,
    ),
    FaqItem(
        3, "How can I become a volunteer?",
        "You can become a volunteer by registering through any event page. Common volunteer "
        "roles include assisting heritage walks and supporting restoration activities.",
        EVENTS, ["volunteer", "join", "help", "contribute"], priority=True,
    ),
    FaqItem(
        1, "When is the next event?",
        "Our next event is the Kuala Lumpur Heritage Walk on November 25, 2025. It's a guided "
        "tour through KL's colonial architecture. Would you like to book a spot?",
        EVENTS, ["event", "next", "upcoming", "date"], priority=True, dynamic=True,
    ),
    # "More questions"
    FaqItem(
        8, "What is BWM's mission?",
        "BWM aims to preserve and promote Malaysia's built heritage and cultural legacy through "
        "advocacy, education, community programs, and restoration initiatives.",
        ABOUT, ["mission", "goal", "purpose"],
    ),
    FaqItem(
        6, "Where can I find the Events page?",
        "You can open the Events page from the sidebar to view upcoming events and details.",
        EVENTS, ["events", "page", "calendar"],
    ),
    FaqItem(
        7, "How do I join a heritage walk?",
        "Open the Events page, select a heritage walk event, and follow the registration/booking "
        "instructions shown on the event details screen.",
        EVENTS, ["join", "heritage walk", "book"],
    ),
    FaqItem(
        9, "Can I donate without membership?",
        "Yes. Donations are open to everyone. Membership is optional and provides additional "
        "member benefits.",
        SUPPORT, ["donate", "membership", "without"],
    ),
    FaqItem(
        10, "How do I contact BWM for more info?",
        "For more information, you may contact the team via email: info@badanwarisan.org.my",
        SUPPORT, ["contact", "email", "support"],
    ),
]


def get_top_faqs() -> List[FaqItem]:
    return [f for f in FAQS if f.priority]


def get_other_faqs() -> List[FaqItem]:
    return [f for f in FAQS if not f.priority]


def get_faqs_by_category(category: str) -> List[FaqItem]:
    return [f for f in FAQS if f.category == category and not f.priority]
