from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from storefront.core.logging import get_logger, request_id_var
from storefront.core.metrics import normalize_path, record_request_metrics

REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request latency metrics, correlation ids and one log line per failed request.

    The incoming ``X-Request-ID`` is reused when present, otherwise a new id is
    minted; it is echoed back on the response and attached to every log record
    emitted while the request is being served.
    """

    def __init__(self, app, *, log_client_errors: bool = True) -> None:
        super().__init__(app)
        self.logger = get_logger("storefront.requests")
        self.log_client_errors = log_client_errors

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception:
                elapsed = time.perf_counter() - start
                record_request_metrics(request, 500, elapsed)
                self.logger.exception("Unhandled error", extra=self._context(request, 500, elapsed))
                raise

            elapsed = time.perf_counter() - start
            record_request_metrics(request, response.status_code, elapsed)
            response.headers[REQUEST_ID_HEADER] = request_id

            if response.status_code >= 500:
                self.logger.error("Server error response", extra=self._context(request, response.status_code, elapsed))
            elif response.status_code >= 400 and self.log_client_errors:
                self.logger.warning("Client error response", extra=self._context(request, response.status_code, elapsed))
            return response
        finally:
            request_id_var.reset(token)

    @staticmethod
    def _context(request: Request, status_code: int, elapsed: float) -> dict:
        forwarded = request.headers.get("x-forwarded-for")
        client_ip = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
        return {
            "method": request.method,
            "path": normalize_path(request),
            "status_code": status_code,
            "duration_ms": round(elapsed * 1000, 3),
            "client_ip": client_ip,
        }
