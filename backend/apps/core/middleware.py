"""
Core middleware.
"""

import time
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """
    Binds per-request logging context and logs request completion.

    The trace ID is taken from the X-Request-ID header when the caller
    (load balancer, frontend) supplies one, otherwise generated. It is
    echoed back on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        clear_contextvars()
        trace_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_contextvars(
            trace_id=trace_id,
            **{
                "http.method": request.method,
                "http.url_details.path": request.path,
            },
        )

        start = time.perf_counter()
        try:
            response = self.get_response(request)
            response[REQUEST_ID_HEADER] = trace_id
            logger.info(
                "request_finished",
                duration_ms=(time.perf_counter() - start) * 1000,
                **{"http.status_code": response.status_code},
            )
            return response
        finally:
            clear_contextvars()
