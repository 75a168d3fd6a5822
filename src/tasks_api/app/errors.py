import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tasks_api.domain.errors import InvalidInput, TaskError

logger = logging.getLogger("tasks_api.errors")


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "task.error",
            extra={
                "category": "tasks",
                "event": "task.error",
                "path": request.url.path,
                "error": exc.error,
                "detail": exc.message,
            },
        )
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = InvalidInput("Invalid request body", _describe_validation(exc))
    return JSONResponse(err.to_body(), status_code=err.status_code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskError, task_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
