"""Structured JSON logging for crawl runs.

Every line carries the merged global + run context, so a single crawl can be
followed end to end by filtering on ``run_id``.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "scraper"
MAX_FIELD_CHARS = 300

_configured = False
_base_context: dict[str, Any] = {}
_run_stack: list[dict[str, Any]] = []


def configure_logging(level: int = logging.INFO) -> None:
    """Install the line formatter once per process."""

    global _configured
    if _configured:
        return
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def set_global_context(**fields: Any) -> None:
    _base_context.update({k: v for k, v in fields.items() if v is not None})


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def logging_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Scope extra fields (keyword, country, run_id...) to the ``with`` block."""

    ctx = {k: v for k, v in fields.items() if v is not None}
    _run_stack.append(ctx)
    try:
        yield ctx
    finally:
        _run_stack.pop()


def _clip(value: Any) -> Any:
    # card text can be several KB; keep log lines readable
    if isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
        return value[:MAX_FIELD_CHARS] + "..."
    return value


def _payload(fields: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {"ts": datetime.now(UTC).isoformat(), **_base_context}
    for ctx in _run_stack:
        merged.update(ctx)
    merged.update({k: _clip(v) for k, v in fields.items()})
    return merged


def jlog(level: str, /, **fields: Any) -> None:
    """Emit one JSON object on the ``scraper`` logger."""

    log = logging.getLogger(_LOGGER_NAME)
    getattr(log, level.lower())(json.dumps(_payload(fields), ensure_ascii=False, sort_keys=True, default=str))


def adlog(event: str, *, identity: str, advertiser: str | None, level: str = "info", **kw: Any) -> None:
    """Shortcut for records scoped to a single ad card."""

    jlog(level, event=event, identity=identity, advertiser=advertiser, **kw)


__all__ = [
    "MAX_FIELD_CHARS",
    "adlog",
    "configure_logging",
    "jlog",
    "logging_context",
    "new_run_id",
    "set_global_context",
]
