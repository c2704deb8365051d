"""Binds a request id to every inbound HTTP request."""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from analysis_orchestrator.logging import reset_request_id, set_request_id

REQUEST_ID_HEADER = "x-request-id"
RESPONSE_TIME_HEADER = "x-response-time-ms"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's ``x-request-id`` or mint one, and echo it back.

    The id is visible to log records and telemetry rows written while the
    request is being handled.
    """

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = set_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.1f}"
        return response
