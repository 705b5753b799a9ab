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

    The incoming X-Request-ID (or a generated one) becomes the ``trace_id``
    on every log line emitted while handling the request, and is echoed
    back on the response. Completion is logged with the status code and
    the duration in nanoseconds.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.request_id = request_id  # type: ignore[attr-defined]

        clear_contextvars()
        bind_contextvars(
            trace_id=request_id,
            **{
                "http.method": request.method,
                "http.url_details.path": request.path,
            },
        )

        started = time.perf_counter_ns()
        response = self.get_response(request)

        response[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_finished",
            duration=time.perf_counter_ns() - started,
            **{"http.status_code": response.status_code},
        )
        clear_contextvars()
        return response
