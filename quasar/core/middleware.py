"""
Request context middleware

Every request gets a request id (taken from `X-Request-ID` when the caller
sends a usable one) that is bound to the logging context and echoed back.
Health check endpoints are logged at DEBUG so they do not flood the access log.
"""
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from quasar.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/health", "/metrics")

_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def resolve_request_id(header_value) -> str:
    if header_value and _REQUEST_ID.match(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request id, method and path to the log context for one request"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.url.path
        quiet = path.startswith(QUIET_PATHS)

        LoggingConfig.set_context(
            request_id=request_id,
            method=request.method,
            path=path,
            client_host=request.client.host if request.client else None,
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} raised {type(e).__name__}",
                exc_info=True,
                extra={"duration_ms": int((time.perf_counter() - started) * 1000)},
            )
            raise
        else:
            extra = {
                "status_code": response.status_code,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            }
            message = f"{request.method} {path} -> {response.status_code}"
            if response.status_code >= 500:
                logger.error(message, extra=extra)
            elif response.status_code >= 400:
                logger.warning(message, extra=extra)
            elif quiet:
                logger.debug(message, extra=extra)
            else:
                logger.info(message, extra=extra)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            LoggingConfig.clear_context()
