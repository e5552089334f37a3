"""
Request context middleware.
Tags every request with an id and reports processing time.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Injects request.state.request_id and timing headers."""

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request.state.request_id = request.headers.get(self.header_name) or uuid.uuid4().hex

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers[self.header_name] = request.state.request_id
        response.headers["X-Process-Time"] = str(process_time)
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {process_time:.4f}s ({request.state.request_id})"
        )
        return response
