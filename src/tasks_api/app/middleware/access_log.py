import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tasks_api.domain.errors import InternalError
from tasks_api.observability.logging import bind_request_context, reset_request_context

logger = logging.getLogger("tasks_api.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Logs every request and turns anything a route lets escape into a 500."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = bind_request_context(request_id, request.method, request.url.path)
        try:
            return await self._timed(request, call_next, request_id)
        finally:
            reset_request_context(token)

    async def _timed(self, request: Request, call_next, request_id: str) -> Response:
        start = time.perf_counter()

        logger.info(
            "request.start",
            extra={
                "category": "http",
                "event": "request.start",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query": str(request.url.query),
                "client": request.client.host if request.client else None,
            },
        )

        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.exception(
                "request.error",
                extra={
                    "category": "http",
                    "event": "request.error",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": duration_ms,
                },
            )
            err = InternalError()
            response = JSONResponse(err.to_body(), status_code=err.status_code)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request.end",
            extra={
                "category": "http",
                "event": "request.end",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
