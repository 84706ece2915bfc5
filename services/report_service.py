# services/report_service.py
"""
CSV exports for the back office.

Generated reports are kept in object storage under S3_REPORT_PREFIX with a
row in report_history; anything older than REPORT_RETENTION_DAYS is purged
every time a new report is saved.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from config import REPORT_RETENTION_DAYS, S3_REPORT_PREFIX
from domain.errors import NotFoundError, ValidationError
from domain.models import ReportRecord
from utils.db import new_id, now_iso, to_iso, utcnow
from utils.validation import DATE_RE

logger = logging.getLogger(__name__)

# table → (label, columns allowed as the date filter)
EXPORTABLE_TABLES = {
    "events": ("All Events", {"created_at", "date"}),
    "event_registrations": ("Event Registrations", {"created_at", "event_date", "checked_in_at"}),
    "donations": ("Donations", {"created_at"}),
    "memberships": ("Memberships", {"created_at", "expires_at"}),
}


def _check_table(table: str, date_column: str) -> None:
    if table not in EXPORTABLE_TABLES:
        raise ValidationError(f"Table '{table}' cannot be exported")
    if date_column not in EXPORTABLE_TABLES[table][1]:
        raise ValidationError(f"Cannot filter {table} by '{date_column}'")


def fetch_table_df(
    engine: Engine,
    table: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    date_column: str = "created_at",
) -> pd.DataFrame:
    """Rows of an exportable table; dates are YYYY-MM-DD and inclusive."""
    _check_table(table, date_column)
    for d in (start_date, end_date):
        if d and not DATE_RE.match(d):
            raise ValidationError("Dates must be in YYYY-MM-DD format")

    clauses, params = [], {}
    if start_date:
        clauses.append(f"{date_column} >= :start")
        params["start"] = start_date
    if end_date:
        clauses.append(f"{date_column} <= :end")
        params["end"] = f"{end_date}T23:59:59"
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

    with engine.connect() as conn:
        return pd.read_sql(text(f"SELECT * FROM {table}{where} ORDER BY {date_column} ASC"), conn, params=params)


def export_table_csv(
    engine: Engine,
    table: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    date_column: str = "created_at",
) -> str:
    df = fetch_table_df(engine, table, start_date, end_date, date_column)
    return df.to_csv(index=False)


def generate_and_save_report(engine: Engine, storage, table: str = "events") -> ReportRecord:
    df = fetch_table_df(engine, table)
    csv_text = df.to_csv(index=False)

    now = utcnow()
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    key = f"{S3_REPORT_PREFIX}{table}_report_{stamp}.csv"
    storage.upload_bytes(key, csv_text.encode("utf-8"), content_type="text/csv")

    label = EXPORTABLE_TABLES[table][0]
    record = ReportRecord(
        id=new_id(),
        file_name=f"{label} Report - {now.strftime('%d/%m/%Y')}",
        file_path=key,
        table_name=table,
        row_count=len(df),
        created_at=to_iso(now),
    )
    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO report_history (id, file_name, file_path, table_name, row_count, created_at)
                VALUES (:id, :file_name, :file_path, :table_name, :row_count, :created_at)
            """),
            vars(record),
        )
    logger.info("Saved %s report %s (%d rows)", table, key, record.row_count)

    cleanup_old_reports(engine, storage)
    return record


def cleanup_old_reports(engine: Engine, storage, now: Optional[datetime.datetime] = None) -> int:
    """Delete report files and rows older than the retention window."""
    cutoff = to_iso((now or utcnow()) - datetime.timedelta(days=REPORT_RETENTION_DAYS))
    with engine.connect() as conn:
        old = conn.execute(
            text("SELECT id, file_path FROM report_history WHERE created_at < :cutoff"),
            {"cutoff": cutoff},
        ).mappings().all()
    if not old:
        return 0

    for r in old:
        try:
            storage.delete(r["file_path"])
        except Exception as e:
            logger.warning("Could not delete old report file %s: %s", r["file_path"], e)

    with engine.begin() as conn:
        conn.execute(
            text("DELETE FROM report_history WHERE created_at < :cutoff"),
            {"cutoff": cutoff},
        )
    logger.info("Cleaned up %d report(s) older than %s", len(old), cutoff)
    return len(old)


def list_reports(engine: Engine) -> list[ReportRecord]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT id, file_name, file_path, table_name, row_count, created_at
                FROM report_history
                ORDER BY created_at DESC
            """)
        ).mappings().all()
    return [ReportRecord.from_row(r) for r in rows]


def _get_report(engine: Engine, report_id: str) -> ReportRecord:
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT id, file_name, file_path, table_name, row_count, created_at FROM report_history WHERE id = :id"),
            {"id": report_id},
        ).mappings().first()
    if not row:
        raise NotFoundError("Report not found")
    return ReportRecord.from_row(row)


def download_report(engine: Engine, storage, report_id: str) -> tuple[str, bytes]:
    """Returns (download file name, CSV bytes)."""
    record = _get_report(engine, report_id)
    data = storage.get_bytes(record.file_path)
    return record.file_path.rsplit("/", 1)[-1], data


def delete_report(engine: Engine, storage, report_id: str) -> None:
    record = _get_report(engine, report_id)
    try:
        storage.delete(record.file_path)
    except Exception as e:
        logger.warning("Error deleting report file %s: %s", record.file_path, e)
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM report_history WHERE id = :id"), {"id": report_id})
    logger.info("Deleted report %s", report_id)
