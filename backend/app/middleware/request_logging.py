"""Request logging middleware."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

# Probes hit these every few seconds
QUIET_PATH_PREFIXES = ("/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and log each request with timing.

    An incoming ``X-Request-ID`` header is reused so ids can be followed
    across services. The authenticated principal is bound later by the
    auth dependency (``bind_principal``).
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        quiet = request.url.path.startswith(QUIET_PATH_PREFIXES)

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=self._get_client_ip(request),
        )
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            process_time = time.perf_counter() - start_time

            if not quiet:
                log = logger.warning if response.status_code >= 500 else logger.info
                log(
                    "request_completed",
                    status_code=response.status_code,
                    process_time_ms=round(process_time * 1000, 2),
                )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            return response

        except Exception as exc:
            process_time = time.perf_counter() - start_time
            logger.exception(
                "request_failed",
                error=str(exc),
                process_time_ms=round(process_time * 1000, 2),
            )
            raise

        finally:
            clear_context()

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"
