"""Scanner context middleware: client address, user agent and correlation id"""
import uuid
from collections.abc import Callable

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.shared.context import clear_scanner_context, set_scanner_context

CORRELATION_HEADER = "X-Correlation-ID"


class ScannerContextMiddleware(BaseHTTPMiddleware):
    """
    Capture where a request came from for the access log.

    - Accepts X-Correlation-ID from clients, generates one otherwise
    - Echoes the correlation id in the response headers
    - Prefers the first X-Forwarded-For hop over the socket peer address
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip_address = forwarded.split(",")[0].strip()
        else:
            ip_address = request.client.host if request.client else None

        set_scanner_context(
            ip_address=ip_address,
            user_agent=request.headers.get("User-Agent"),
            correlation_id=correlation_id,
        )
        try:
            response = await call_next(request)
        finally:
            clear_scanner_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
