# utils/schema.py
from sqlalchemy import (
    Boolean, Column, Float, ForeignKey, Integer, MetaData, String, Table, Text,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("full_name", String(255), nullable=False),
    Column("phone_number", String(32)),
    Column("phone_verified", Boolean, nullable=False, default=False),
    Column("phone_change_count", Integer, nullable=False, default=0),
    Column("address_line1", String(255)),
    Column("address_line2", String(255)),
    Column("postcode", String(10)),
    Column("city", String(120)),
    Column("state", String(120)),
    Column("address_complete", Boolean, nullable=False, default=False),
    Column("is_admin", Boolean, nullable=False, default=False),
    Column("created_at", String(32)),
    Column("updated_at", String(32)),
)

phone_otps = Table(
    "phone_otps", metadata,
    Column("id", String(36), primary_key=True),
    Column("phone_number", String(32), nullable=False, index=True),
    Column("code_hash", String(255), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("attempts", Integer, nullable=False, default=0),
    Column("consumed", Boolean, nullable=False, default=False),
    Column("created_at", String(32)),
)

memberships = Table(
    "memberships", metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False, index=True),
    Column("status", String(20), nullable=False, default="active"),
    Column("tier", String(40), nullable=False),
    Column("full_name", String(255)),
    Column("email", String(255)),
    Column("ic_number", String(40)),
    Column("date_of_birth", String(10)),
    Column("profession", String(120)),
    Column("student_email", String(255)),
    Column("education_level", String(80)),
    Column("company_name", String(255)),
    Column("company_roc", String(80)),
    Column("company_phone", String(32)),
    Column("company_fax", String(32)),
    Column("representative_name", String(255)),
    Column("representative_designation", String(120)),
    Column("interests", Text),
    Column("other_interest", String(255)),
    Column("referral_sources", Text),
    Column("other_referral_source", String(255)),
    Column("volunteer_interest", Boolean),
    Column("volunteer_areas", Text),
    Column("other_volunteer_area", String(255)),
    Column("payment_reference", String(80)),
    Column("expires_at", String(32)),
    Column("created_at", String(32)),
    Column("updated_at", String(32)),
)

events = Table(
    "events", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("date", String(10), nullable=False),
    Column("time", String(5)),
    Column("location", String(255), nullable=False),
    Column("description", Text),
    Column("image_url", String(1024)),
    Column("fee", Float),
    Column("member_fee", Float),
    Column("status", String(20), nullable=False, default="upcoming"),
    Column("created_at", String(32)),
)

event_registrations = Table(
    "event_registrations", metadata,
    Column("id", String(36), primary_key=True),
    Column("event_id", String(36), nullable=False, index=True),
    Column("user_id", String(36), index=True),
    Column("event_title", String(255)),
    Column("event_date", String(10)),
    Column("event_location", String(255)),
    Column("event_image_url", String(1024)),
    Column("registrant_name", String(255), nullable=False),
    Column("registrant_email", String(255), nullable=False),
    Column("registrant_phone", String(32), nullable=False),
    Column("is_member", Boolean, nullable=False, default=False),
    Column("status", String(20), nullable=False, default="registered"),
    Column("payment_method", String(20)),
    Column("amount_paid", Float, nullable=False, default=0.0),
    Column("checked_in_at", String(32)),
    Column("checked_in_by", String(120)),
    Column("created_at", String(32)),
)

donations = Table(
    "donations", metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("amount", Float, nullable=False),
    Column("payment_method", String(20), nullable=False),
    Column("campaign_id", String(60), nullable=False, default="general"),
    Column("payment_reference", String(80)),
    Column("created_at", String(32)),
)

journal_entries = Table(
    "journal_entries", metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("site_id", String(36)),
    Column("event_id", String(36)),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("image_url", String(1024)),
    Column("created_at", String(32)),
)

report_history = Table(
    "report_history", metadata,
    Column("id", String(36), primary_key=True),
    Column("file_name", String(255), nullable=False),
    Column("file_path", String(1024), nullable=False),
    Column("table_name", String(60), nullable=False),
    Column("row_count", Integer, nullable=False, default=0),
    Column("created_at", String(32)),
)


def init_db(engine: Engine) -> None:
    """Create any missing tables (no-op for tables that already exist)."""
    metadata.create_all(engine)
