# api_server.py
"""
Scanner API for door volunteers' devices.

    uvicorn api_server:app --port 8000
"""
import hmac
import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine

from config import API_ALLOWED_ORIGINS, VERIFIER_API_KEY, setup_logging, validate_config
from domain.errors import AuthError, NotFoundError, PaymentError, ValidationError, WarisanError
from services import checkin_service, event_service
from utils.db import get_engine
from utils.qr_scan_utils import parse_scanned_text
from utils.schema import init_db

logger = logging.getLogger(__name__)

_STATUS_FOR = {
    ValidationError: 400,
    AuthError: 401,
    PaymentError: 402,
    NotFoundError: 404,
}


# ──────────────────────────────────────────────
# Models
# ──────────────────────────────────────────────
class ScanReq(BaseModel):
    code: str = Field(..., min_length=1)
    verifier_id: Optional[str] = None  # optional audit tag (device/user)


class CheckResp(BaseModel):
    ok: bool
    message: str
    kind: str
    record: Optional[dict[str, Any]] = None


class EventOut(BaseModel):
    id: str
    title: str
    date: str
    time: Optional[str] = None
    location: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    fee: Optional[float] = None
    member_fee: Optional[float] = None
    status: str = "upcoming"


# ──────────────────────────────────────────────
# Dependencies
# ──────────────────────────────────────────────
def get_db(request: Request) -> Engine:
    return request.app.state.engine


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
):
    """X-API-Key: <key> or Authorization: Bearer <key>; disabled when no key is configured."""
    expected = request.app.state.api_key
    if not expected:
        return
    token = None
    if x_api_key:
        token = x_api_key.strip()
    elif authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token or not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _as_resp(result) -> CheckResp:
    return CheckResp(ok=result.ok, message=result.message, kind=result.kind, record=result.record)


def _event_out(event) -> EventOut:
    return EventOut(**{k: getattr(event, k) for k in EventOut.model_fields})


def _require_readable(code: str) -> None:
    if parse_scanned_text(code) is None:
        raise HTTPException(status_code=400, detail=checkin_service.UNREADABLE)


# ──────────────────────────────────────────────
# App
# ──────────────────────────────────────────────
def create_app(engine: Optional[Engine] = None, api_key: Optional[str] = VERIFIER_API_KEY) -> FastAPI:
    setup_logging()
    validate_config()
    app = FastAPI(title="BWM Scanner API")
    app.state.engine = engine or get_engine()
    app.state.api_key = api_key
    init_db(app.state.engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=API_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.exception_handler(WarisanError)
    async def _warisan_error(request: Request, exc: WarisanError):
        status = next((s for cls, s in _STATUS_FOR.items() if isinstance(exc, cls)), 400)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.get("/api/health")
    def health():
        return {"ok": True}

    @app.post("/api/scan", response_model=CheckResp, dependencies=[Depends(require_api_key)])
    def post_scan(payload: ScanReq, db: Engine = Depends(get_db)):
        """Ticket codes are checked in; membership cards are verified."""
        _require_readable(payload.code)
        result = checkin_service.scan(db, payload.code, verifier_id=payload.verifier_id)
        logger.info("Scan by %s → %s (%s)", payload.verifier_id, result.ok, result.kind)
        return _as_resp(result)

    @app.get("/api/membership/verify", response_model=CheckResp, dependencies=[Depends(require_api_key)])
    def verify_membership(code: str, db: Engine = Depends(get_db)):
        _require_readable(code)
        return _as_resp(checkin_service.verify_membership(db, code))

    @app.get("/api/events", response_model=list[EventOut], dependencies=[Depends(require_api_key)])
    def list_events(upcoming: bool = False, db: Engine = Depends(get_db)):
        events = event_service.fetch_events(db, upcoming_only=upcoming)
        return [_event_out(e) for e in events]

    @app.get("/api/events/{event_id}", response_model=EventOut, dependencies=[Depends(require_api_key)])
    def get_event(event_id: str, db: Engine = Depends(get_db)):
        return _event_out(event_service.fetch_event_by_id(db, event_id))

    return app


app = create_app()
