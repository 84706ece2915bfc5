# services/heritage_service.py
"""
Heritage passport: a fixed list of sites that get "stamped" when the user
has attended an event held there, plus a personal journal.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from domain.errors import ValidationError
from domain.models import HeritageSite, HeritageSiteWithVisit, JournalEntry
from utils.db import new_id, now_iso
from utils.validation import clean_text

logger = logging.getLogger(__name__)

HERITAGE_SITES = [
    HeritageSite("1", "Rumah Penghulu",
                 "Traditional Malay house showcasing heritage architecture",
                 "Rumah Penghulu", "BWM-SITE-001"),
    HeritageSite("2", "Sultan Abdul Samad Building",
                 "Iconic Moorish-style building built in 1897",
                 "Sultan Abdul Samad Building", "BWM-SITE-002"),
    HeritageSite("3", "St. Mary's Cathedral",
                 "Historic Anglican church established in 1894",
                 "St. Mary's Cathedral", "BWM-SITE-003"),
    HeritageSite("4", "Merdeka Square",
                 "Historic square where independence was declared",
                 "Merdeka Square", "BWM-SITE-004"),
    HeritageSite("5", "George Town Heritage",
                 "UNESCO World Heritage Site in Penang",
                 "George Town", "BWM-SITE-005"),
    HeritageSite("6", "A Famosa Fort",
                 "Portuguese fortress built in 1512",
                 "Malacca", "BWM-SITE-006"),
]


def get_site(site_id: str) -> Optional[HeritageSite]:
    return next((s for s in HERITAGE_SITES if s.id == str(site_id)), None)


def match_site(location: str) -> Optional[HeritageSite]:
    """
    First site whose name or location overlaps the event location, compared
    case-insensitively. Only the part before the first comma is used when
    checking the other direction ("George Town, Penang" → "george town").
    """
    loc = (location or "").strip().lower()
    if not loc:
        return None
    head = loc.split(",")[0].strip()
    for site in HERITAGE_SITES:
        site_loc = (site.location or "").lower()
        site_name = site.name.lower()
        if (
            (site_loc and site_loc in loc)
            or (head and head in site_loc)
            or site_name in loc
            or (head and head in site_name)
        ):
            return site
    return None


def fetch_sites_with_visits(engine: Engine, user_id: Optional[str]) -> list[HeritageSiteWithVisit]:
    visits: dict[str, str] = {}
    if user_id:
        with engine.connect() as conn:
            rows = conn.execute(
                text("""
                    SELECT event_location, created_at
                    FROM event_registrations
                    WHERE user_id = :uid AND status = 'attended'
                    ORDER BY created_at ASC
                """),
                {"uid": user_id},
            ).mappings().all()
        for r in rows:
            site = match_site(r["event_location"])
            if site and site.id not in visits:
                visits[site.id] = r["created_at"]

    return [
        HeritageSiteWithVisit(site=s, visited=s.id in visits, visit_date=visits.get(s.id))
        for s in HERITAGE_SITES
    ]


def passport_progress(sites: list[HeritageSiteWithVisit]) -> tuple[int, int]:
    return sum(1 for s in sites if s.visited), len(sites)


# ──────────────────────────────────────────────────────────────
# Journal
# ──────────────────────────────────────────────────────────────
def fetch_journal_entries(engine: Engine, user_id: str) -> list[JournalEntry]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT id, user_id, site_id, event_id, title, content, image_url, created_at
                FROM journal_entries
                WHERE user_id = :uid
                ORDER BY created_at DESC
            """),
            {"uid": user_id},
        ).mappings().all()
    return [JournalEntry.from_row(r) for r in rows]


def create_journal_entry(
    engine: Engine,
    user_id: str,
    title: str,
    content: str,
    site_id: Optional[str] = None,
    event_id: Optional[str] = None,
    image_url: Optional[str] = None,
) -> JournalEntry:
    title = clean_text(title)
    content = clean_text(content)
    errors = []
    if not title:
        errors.append("Title is required")
    if not content:
        errors.append("Please write something about your visit")
    if errors:
        raise ValidationError(errors)

    jid = new_id()
    now = now_iso()
    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO journal_entries (id, user_id, site_id, event_id, title, content, image_url, created_at)
                VALUES (:id, :uid, :sid, :eid, :title, :content, :img, :now)
            """),
            {"id": jid, "uid": user_id, "sid": site_id, "eid": event_id,
             "title": title, "content": content, "img": image_url, "now": now},
        )
    logger.info("Journal entry %s saved for user %s", jid, user_id)
    return JournalEntry(id=jid, user_id=user_id, title=title, content=content,
                        site_id=site_id, event_id=event_id, image_url=image_url, created_at=now)
