"""
Custom middleware for request/response logging.
"""

import time
import uuid

import structlog

logger = structlog.get_logger("request")

SKIPPED_PATHS = {"/api/v1/health/", "/metrics", "/metrics/"}


class RequestLoggingMiddleware:
    """
    Log every HTTP request as one structured event.

    Adds a short request id to the response (X-Request-ID) and binds it to
    the structlog context so service-level events carry it too.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = str(uuid.uuid4())[:8]
        request.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.time()

        x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forwarded_for:
            client_ip = x_forwarded_for.split(",")[0].strip()
        else:
            client_ip = request.META.get("REMOTE_ADDR", "unknown")

        response = self.get_response(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)

        status_code = response.status_code
        if status_code >= 500:
            log_func = logger.error
        elif status_code >= 400:
            log_func = logger.warning
        else:
            log_func = logger.info

        response["X-Request-ID"] = request_id

        if request.path in SKIPPED_PATHS:
            return response

        log_func(
            "http_request",
            method=request.method,
            path=request.path,
            status_code=status_code,
            duration_ms=duration_ms,
            client_ip=client_ip,
            user_agent=request.META.get("HTTP_USER_AGENT", "")[:100],
        )

        return response
