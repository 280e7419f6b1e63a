from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import set_request_id, set_session_id

REQUEST_ID_HEADER = "X-Request-Id"


class SessionContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        """
        Puts session_id and request_id into contextvars for the request.

        session_id comes from the X-Session-Id header, then the session_id
        query param. request_id is taken from X-Request-Id or generated, and
        echoed back on the response.
        """
        session_id = request.headers.get("X-Session-Id") or request.query_params.get("session_id")
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]

        set_request_id(request_id)
        if session_id:
            set_session_id(str(session_id))
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # threadpool workers outlive the request
            set_session_id(None)
            set_request_id(None)
