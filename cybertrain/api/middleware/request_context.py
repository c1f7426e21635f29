"""
Request context middleware for log correlation.

- Generates or accepts X-Request-ID and echoes it on the response
- Binds the request ID and the calling learner (X-User-ID) to the logging
  context vars, so every record written during the request carries both
- Warns about requests slower than the configured threshold
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from cybertrain.logging_config import get_logger, request_id_var, user_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlate every log line of a request with its request ID and learner."""

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = request_id_var.set(request_id)
        # Unauthenticated routes (health, challenges) still log the caller when known
        user_token = user_id_var.set(request.headers.get(USER_ID_HEADER) or None)

        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            duration_ms = (time.perf_counter() - start) * 1000
            if duration_ms > self.slow_request_ms:
                logger.warning(
                    "Slow request",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 1),
                    },
                )
            return response
        finally:
            user_id_var.reset(user_token)
            request_id_var.reset(request_token)
