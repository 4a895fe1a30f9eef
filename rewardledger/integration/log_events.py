from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict

from ..core.errors import LedgerError

Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one compact JSON object per line (`key=value` text if a field is not JSON-encodable)."""
    if not logger.isEnabledFor(level):
        return
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        logger.log(level, json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.log(level, " ".join(parts))


def log_rejection(logger: logging.Logger, action: str, exc: LedgerError, **fields: Any) -> None:
    """Consistency failures at ERROR, user and timing rejections at INFO."""
    level = logging.ERROR if exc.fatal else logging.INFO
    log_event(
        logger,
        "execute_rejected",
        level=level,
        action=action,
        kind=exc.kind.value,
        category=exc.category.value,
        detail=exc.fields(),
        **fields,
    )
