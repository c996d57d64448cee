import logging
import uuid
import time
import contextvars
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

correlation_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


class CorrelationIdFilter(logging.Filter):
    """
    Logging filter to inject the correlation_id into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get()
        return True


logger = logging.getLogger(__name__)
logger.addFilter(CorrelationIdFilter())


def _fmt_ctx(ctx: Dict[str, Any]) -> str:
    """Return a deterministic key=value string used in log messages."""
    return " ".join(f"{k}={v}" for k, v in ctx.items() if v is not None)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with a correlation id, its outcome and how long it took.
    The correlation id is echoed back in the X-Correlation-ID header.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cid = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        correlation_id_ctx.set(cid)

        incoming_ctx = {
            "correlation_id": cid,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info(f"Incoming request {_fmt_ctx(incoming_ctx)}", extra=incoming_ctx)

        start_time = time.monotonic()
        status_code = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Correlation-ID"] = cid
            return response
        except Exception as e:
            exc_ctx = {
                "correlation_id": cid,
                "method": request.method,
                "path": request.url.path,
                "error": str(e),
            }
            logger.exception(f"Exception caught in handler {_fmt_ctx(exc_ctx)}", extra=exc_ctx)
            raise
        finally:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            processed_ctx = {
                "correlation_id": cid,
                "method": request.method,
                "path": request.url.path,
                "status": status_code,
                "execution_time_ms": elapsed_ms,
            }
            logger.info(f"Request processed {_fmt_ctx(processed_ctx)}", extra=processed_ctx)
