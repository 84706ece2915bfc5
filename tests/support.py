from sqlalchemy import text

from domain.models import PaymentResult
from services import auth_service, event_service
from utils.db import get_engine, now_iso
from utils.schema import init_db


def fresh_engine():
    """A private in-memory database with the schema created."""
    engine = get_engine("sqlite://")
    init_db(engine)
    return engine


def make_user(engine, email="aisyah@example.com", name="Aisyah Rahman", phone="+60 12-345 6789"):
    return auth_service.sign_up(engine, email, "secret123", "secret123", name, phone)


def make_event(engine, **overrides):
    form = {
        "title": "Kuala Lumpur Heritage Walk",
        "date": "2999-11-25",
        "time": "09:00",
        "location": "Merdeka Square, KL",
        "description": "Guided walk through KL's colonial architecture.",
        "fee": 0,
    }
    form.update(overrides)
    return event_service.create_event(engine, form)


def payment(amount, method="card", reference="CARD-TEST"):
    return PaymentResult(method=method, amount=amount, reference=reference, paid_at=now_iso())


def set_column(engine, table, row_id, column, value):
    with engine.begin() as conn:
        conn.execute(text(f"UPDATE {table} SET {column} = :v WHERE id = :id"), {"v": value, "id": row_id})
