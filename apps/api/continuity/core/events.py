"""
Structured event lines.

One JSON object per event, keys: ts, level, message, request_id, event, module
(plus any extra keys). Lines go through the stdlib logger so LOG_LEVEL applies.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_log = logging.getLogger("continuity")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit(level: str, event: str, message: str, request_id: Optional[str] = None, module: str = "continuity", **extra: Any) -> None:
    lvl = _LEVELS.get(level.lower(), logging.INFO)
    if not _log.isEnabledFor(lvl):
        return
    payload: Dict[str, Any] = {
        "ts": _now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    _log.log(lvl, json.dumps(payload, ensure_ascii=False, default=str))
