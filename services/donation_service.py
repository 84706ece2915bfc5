# services/donation_service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from domain.errors import AuthError, NotFoundError, ValidationError
from domain.models import Campaign, LeaderboardEntry
from services.payment_service import METHODS
from utils.db import new_id, now_iso

logger = logging.getLogger(__name__)

DEFAULT_CAMPAIGN = "general"
ANONYMOUS = "Anonymous Donor"
PRESET_AMOUNTS = [10, 50, 100, 200]

_IMG = "https://images.unsplash.com/{}?crop=entropy&cs=tinysrgb&fit=max&fm=jpg&q=80&w=1080"

CAMPAIGNS = [
    Campaign(
        "rumah-penghulu",
        "Rumah Penghulu Restoration",
        "Help us restore this beautiful traditional Malay house from the 1900s. Your donation "
        "will help preserve authentic craftsmanship and heritage architecture.",
        20000,
        _IMG.format("photo-1610794267125-da22a00fca8d"),
    ),
    Campaign(
        "heritage-education",
        "Heritage Education Programme",
        "Fund educational workshops and school visits to inspire the next generation about "
        "Malaysian heritage and cultural preservation.",
        12000,
        _IMG.format("photo-1716016761758-85ee3d6c3c01"),
    ),
    Campaign(
        "malacca-conservation",
        "Malacca Conservation Project",
        "Support the conservation of historic buildings in Melaka. Protect UNESCO World "
        "Heritage Sites for future generations.",
        30000,
        _IMG.format("photo-1745865636112-3269c9fc40b8"),
    ),
    Campaign(
        "general-fund",
        "General Heritage Fund",
        "Contribute to our general fund to support all heritage preservation efforts across "
        "Malaysia, including urgent conservation needs.",
        50000,
        _IMG.format("photo-1685710734950-2f0c1ab9c04d"),
    ),
]


def get_campaign(campaign_id: str) -> Campaign:
    for c in CAMPAIGNS:
        if c.id == campaign_id:
            return c
    raise NotFoundError(f"Unknown campaign: {campaign_id}")


def resolve_amount(selected: Optional[float], custom) -> float:
    """A chosen preset wins over the custom field."""
    if selected:
        amount = float(selected)
    else:
        try:
            amount = float(str(custom).strip()) if custom not in (None, "") else 0.0
        except ValueError:
            raise ValidationError("Please enter a valid amount")
    if amount <= 0:
        raise ValidationError("Please select or enter a donation amount")
    return round(amount, 2)


def add_donation(
    engine: Engine,
    user_id: Optional[str],
    amount: float,
    payment_method: str,
    campaign_id: Optional[str] = None,
    payment_reference: Optional[str] = None,
) -> str:
    if not user_id:
        raise AuthError("User must be logged in to donate")
    if payment_method not in METHODS:
        raise ValidationError(f"Unsupported payment method: {payment_method}")
    if amount is None or float(amount) <= 0:
        raise ValidationError("Donation amount must be greater than zero")

    did = new_id()
    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO donations (id, user_id, amount, payment_method, campaign_id,
                                       payment_reference, created_at)
                VALUES (:id, :uid, :amount, :method, :cid, :ref, :now)
            """),
            {"id": did, "uid": user_id, "amount": round(float(amount), 2),
             "method": payment_method, "cid": campaign_id or DEFAULT_CAMPAIGN,
             "ref": payment_reference, "now": now_iso()},
        )
    logger.info("Recorded donation %s of %.2f to %s", did, float(amount), campaign_id or DEFAULT_CAMPAIGN)
    return did


def get_campaign_stats(engine: Engine) -> dict[str, float]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT COALESCE(campaign_id, :default) AS campaign_id, SUM(amount) AS total
                FROM donations
                GROUP BY COALESCE(campaign_id, :default)
            """),
            {"default": DEFAULT_CAMPAIGN},
        ).mappings().all()
    return {r["campaign_id"]: float(r["total"] or 0) for r in rows}


def campaign_progress(campaign: Campaign, stats: dict[str, float]) -> tuple[float, float]:
    """(raised, percent of goal capped at 100)."""
    raised = float(stats.get(campaign.id, 0)) + float(campaign.initial_raised or 0)
    if not campaign.goal:
        return raised, 0.0
    return raised, min(raised / campaign.goal * 100, 100.0)


def get_leaderboard(engine: Engine, limit: int = 10) -> list[LeaderboardEntry]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT d.user_id, u.full_name, SUM(d.amount) AS total
                FROM donations d
                LEFT JOIN users u ON u.id = d.user_id
                GROUP BY d.user_id, u.full_name
                ORDER BY total DESC
            """)
        ).mappings().all()

    board = []
    for i, r in enumerate(rows[:limit], start=1):
        board.append(LeaderboardEntry(
            rank=i,
            name=r["full_name"] or ANONYMOUS,
            amount=float(r["total"] or 0),
            user_id=r["user_id"],
        ))
    return board
