from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional


def _from_row(cls, row: Mapping[str, Any]):
    """Build a dataclass from a DB row, ignoring columns the class doesn't know."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in dict(row).items() if k in names})


def _json_list(v) -> list:
    if v is None or v == "":
        return []
    if isinstance(v, list):
        return v
    try:
        parsed = json.loads(v)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


@dataclass
class UserProfile:
    id: str
    email: str
    full_name: str
    phone_number: Optional[str] = None
    phone_verified: bool = False
    phone_change_count: int = 0
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address_complete: bool = False
    is_admin: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserProfile":
        u = _from_row(cls, row)
        u.phone_verified = bool(u.phone_verified)
        u.address_complete = bool(u.address_complete)
        u.is_admin = bool(u.is_admin)
        u.phone_change_count = int(u.phone_change_count or 0)
        return u


@dataclass
class Membership:
    id: str
    user_id: str
    status: str
    tier: str
    full_name: str = ""
    email: str = ""
    ic_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    profession: Optional[str] = None
    student_email: Optional[str] = None
    education_level: Optional[str] = None
    company_name: Optional[str] = None
    company_roc: Optional[str] = None
    company_phone: Optional[str] = None
    company_fax: Optional[str] = None
    representative_name: Optional[str] = None
    representative_designation: Optional[str] = None
    interests: list = field(default_factory=list)
    other_interest: Optional[str] = None
    referral_sources: list = field(default_factory=list)
    other_referral_source: Optional[str] = None
    volunteer_interest: Optional[bool] = None
    volunteer_areas: list = field(default_factory=list)
    other_volunteer_area: Optional[str] = None
    payment_reference: Optional[str] = None
    expires_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Membership":
        m = _from_row(cls, row)
        m.interests = _json_list(m.interests)
        m.referral_sources = _json_list(m.referral_sources)
        m.volunteer_areas = _json_list(m.volunteer_areas)
        if m.volunteer_interest is not None:
            m.volunteer_interest = bool(m.volunteer_interest)
        return m


@dataclass
class Event:
    id: str
    title: str
    date: str
    location: str
    description: str = ""
    time: Optional[str] = None
    image_url: Optional[str] = None
    fee: Optional[float] = None
    member_fee: Optional[float] = None
    status: str = "upcoming"
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Event":
        return _from_row(cls, row)


@dataclass
class EventRegistration:
    id: str
    event_id: str
    registrant_name: str
    registrant_email: str
    registrant_phone: str
    status: str = "registered"
    user_id: Optional[str] = None
    event_title: Optional[str] = None
    event_date: Optional[str] = None
    event_location: Optional[str] = None
    event_image_url: Optional[str] = None
    is_member: bool = False
    payment_method: Optional[str] = None
    amount_paid: float = 0.0
    checked_in_at: Optional[str] = None
    checked_in_by: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventRegistration":
        r = _from_row(cls, row)
        r.is_member = bool(r.is_member)
        r.amount_paid = float(r.amount_paid or 0)
        return r


@dataclass
class Campaign:
    id: str
    title: str
    description: str
    goal: float
    image: str = ""
    initial_raised: float = 0.0


@dataclass
class LeaderboardEntry:
    rank: int
    name: str
    amount: float
    user_id: str


@dataclass
class HeritageSite:
    id: str
    name: str
    description: str
    location: str
    qr_code: str
    image_url: Optional[str] = None


@dataclass
class HeritageSiteWithVisit:
    site: HeritageSite
    visited: bool = False
    visit_date: Optional[str] = None


@dataclass
class JournalEntry:
    id: str
    user_id: str
    title: str
    content: str
    site_id: Optional[str] = None
    event_id: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "JournalEntry":
        return _from_row(cls, row)


@dataclass
class ReportRecord:
    id: str
    file_name: str
    file_path: str
    table_name: str = "events"
    row_count: int = 0
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ReportRecord":
        return _from_row(cls, row)


@dataclass
class PaymentResult:
    method: str
    amount: float
    reference: str
    paid_at: str
    detail: str = ""


@dataclass
class VerificationResult:
    success: bool
    message: str


@dataclass
class CheckResult:
    ok: bool
    message: str
    kind: str = "unknown"       # "membership" | "event_registration" | "unknown"
    record: Optional[dict] = None
