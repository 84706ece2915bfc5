# utils/db.py
from __future__ import annotations

import datetime
import uuid
from typing import Optional

from zoneinfo import ZoneInfo

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from config import APP_TZ, DATABASE_URL

_engine: Optional[Engine] = None


def get_engine(url: Optional[str] = None) -> Engine:
    """
    Return an engine for `url`, or the shared app engine when url is None.
    In-memory SQLite gets a StaticPool so every connection sees the same DB.
    """
    global _engine
    if url is None and _engine is not None:
        return _engine

    target = url or DATABASE_URL
    if target.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if target in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(target, **kwargs)
    else:
        engine = create_engine(target, pool_pre_ping=True)

    if url is None:
        _engine = engine
    return engine


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def now_iso() -> str:
    """Timestamps are stored as ISO-8601 UTC text, comparable as strings."""
    return utcnow().strftime("%Y-%m-%dT%H:%M:%S")


def to_iso(dt: datetime.datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt.strftime("%Y-%m-%dT%H:%M:%S")


def local_today() -> datetime.date:
    """Today's date in the organisation's timezone (event dates are local)."""
    return datetime.datetime.now(ZoneInfo(APP_TZ)).date()
