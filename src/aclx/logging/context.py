from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar, Token
from typing import Optional

_TRACE_ID: ContextVar[Optional[str]] = ContextVar("aclx_trace_id", default=None)


def gen_trace_id() -> str:
    return uuid.uuid4().hex


def set_current_trace_id(value: str) -> Token:
    return _TRACE_ID.set(value)


def get_current_trace_id() -> Optional[str]:
    return _TRACE_ID.get()


def clear_current_trace_id(token: Optional[Token] = None) -> None:
    if token is not None:
        _TRACE_ID.reset(token)
    else:
        _TRACE_ID.set(None)


class TraceIdFilter(logging.Filter):
    """Inject ``record.trace_id`` so formatters can use ``%(trace_id)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_current_trace_id()
        return True


__all__ = [
    "gen_trace_id",
    "set_current_trace_id",
    "get_current_trace_id",
    "clear_current_trace_id",
    "TraceIdFilter",
]
