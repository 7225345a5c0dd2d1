"""
Per-request access logging for API routes.
"""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 80


def format_log_line(
    method: str, path: str, status_code: int, duration_ms: int, body: str | None
) -> str:
    line = f"{method} {path} {status_code} in {duration_ms}ms"
    if body:
        line += f" :: {body}"
    if len(line) > MAX_LINE_LENGTH:
        line = line[: MAX_LINE_LENGTH - 1] + "…"
    return line


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per API request: method, path, status, duration and the
    JSON body that was sent back, clipped to a single terminal line.
    """

    def __init__(self, app, *, path_prefix: str = "/api"):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not path.startswith(self.path_prefix):
            return await call_next(request)

        start = time.monotonic()
        response = await call_next(request)

        body = b""
        async for chunk in response.body_iterator:
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        duration_ms = int((time.monotonic() - start) * 1000)
        content_type = response.headers.get("content-type", "")
        logged_body = (
            body.decode("utf-8", errors="replace")
            if content_type.startswith("application/json")
            else None
        )
        logger.info(
            format_log_line(
                request.method, path, response.status_code, duration_ms, logged_body
            )
        )

        rebuilt = Response(content=body, status_code=response.status_code)
        # Raw pairs keep repeated headers such as set-cookie intact.
        rebuilt.raw_headers = list(response.raw_headers)
        return rebuilt
