"""Access logging middleware: one line per request with its latency."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 1000
QUIET_PATHS = frozenset({"/health", "/health/ready"})


async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency.

    Health probes log at debug. 5xx responses log at error; 4xx and slow
    requests at warning.
    """
    start_time = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response is not None else 500
        log_msg = "%s %s - %d - %.2fms"
        args = (request.method, request.url.path, status_code, latency_ms)

        if request.url.path in QUIET_PATHS:
            logger.debug(log_msg, *args)
        elif status_code >= 500:
            logger.error(log_msg, *args)
        elif status_code >= 400 or latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(log_msg, *args)
        else:
            logger.info(log_msg, *args)
