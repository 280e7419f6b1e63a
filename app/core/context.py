from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

session_id_ctx: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_session_id(session_id: Optional[str]) -> None:
    session_id_ctx.set(session_id)


def get_session_id() -> Optional[str]:
    return session_id_ctx.get()


def set_request_id(request_id: Optional[str]) -> None:
    request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()
