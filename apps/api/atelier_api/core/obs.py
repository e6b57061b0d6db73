"""
Structured log lines (one JSON object per line on stdout).

Contract keys: ts, level, message, request_id, event, module.
"""
from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, Optional

_log = logging.getLogger("atelier_api")


def configure_logging(level: str) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level.upper())
    _log.setLevel(level.upper())


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
    print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)
