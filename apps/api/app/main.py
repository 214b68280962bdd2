import os
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.db import db_health, init_schema
from app.core.errors import DomainError, TransactionError
from app.core.observability import emit
from app.modules.championships.router import router as championships_router
from app.modules.roster.router import router as roster_router
from app.modules.shows.router import router as shows_router

APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

app = FastAPI(title="Promotion Core API", version=APP_VERSION)

app.include_router(roster_router)
app.include_router(championships_router)
app.include_router(shows_router)

# Contract locks:
# - /health keys: status, version, db, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details

_last_error: Optional[Dict[str, Any]] = None


def _remember(error: str, message: str, request_id: Optional[str]) -> None:
    global _last_error
    _last_error = {"error": error, "message": message, "request_id": request_id}


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )


@app.on_event("startup")
def _startup() -> None:
    init_schema()


@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp, 'status_code', None)}", rid, __name__)
    return resp


@app.exception_handler(DomainError)
async def _domain_exc_handler(request: Request, exc: DomainError):
    rid = getattr(request.state, "request_id", None)
    if isinstance(exc, TransactionError):
        _remember(exc.error, exc.message, rid)
    return _err_envelope(exc.error, exc.message, rid, jsonable_encoder(exc.details), exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("http_error", str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)


@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, jsonable_encoder(exc.errors()), 422)


@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    _remember("internal_error", type(exc).__name__, rid)
    emit("error", "http.request.unhandled", str(exc), rid, __name__, type=type(exc).__name__)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)


@app.get("/health")
def health():
    db = db_health()
    return {
        "status": "ok" if db.get("status") == "ok" else "degraded",
        "version": APP_VERSION,
        "db": db,
        "last_error_summary": _last_error,
    }
