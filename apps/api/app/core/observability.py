"""
Structured JSON log lines.

Contract keys: ts, level, message, request_id, event, module (+ extras).
"""
from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

_log = logging.getLogger("app")
if not _log.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(message)s")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "audit": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> None:
    payload: Dict[str, Any] = {
        "ts": _now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    _log.log(_LEVELS.get(level.lower(), logging.INFO), json.dumps(payload, ensure_ascii=False, default=str))


def request_id_of(request: Any) -> str:
    rid = request.headers.get("x-request-id")
    if rid:
        return str(rid)
    st = getattr(request, "state", None)
    rid2 = getattr(st, "request_id", None) if st is not None else None
    return str(rid2) if rid2 else ""
