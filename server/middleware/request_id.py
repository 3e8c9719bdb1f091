"""
Request ID middleware for HTTP request tracing.

Propagates an incoming X-Request-ID header, or generates one, and exposes it
to log records through logging_config.request_id_var.
"""

import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from logging_config import request_id_var


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to every HTTP request and response."""

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
        generator: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            app: FastAPI application.
            header_name: Header name for request ID.
            generator: Optional custom ID generator function.
        """
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator or (lambda: str(uuid.uuid4()))

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(self.header_name) or self.generator()
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
            response.headers[self.header_name] = request_id
            return response
        finally:
            request_id_var.reset(token)
