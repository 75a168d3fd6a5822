import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from tasks_api.app.errors import register_error_handlers
from tasks_api.app.middleware.access_log import AccessLogMiddleware
from tasks_api.app.routes import tasks
from tasks_api.config import CORS_HEADERS, CORS_MAX_AGE, CORS_METHODS, CORS_ORIGINS, Settings
from tasks_api.infra.db.engine import make_engine, make_sessionmaker, make_store_url
from tasks_api.infra.db.task_repo_sql import SQLTaskRepo
from tasks_api.observability.logging import setup_logging
from tasks_api.services.task_service import TaskService

logger = logging.getLogger("tasks_api.system")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # missing store settings raise ConfigError here, before anything is served
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_dir)
    logger.info("system.start", extra={"category": "system", "event": "system.start"})

    app = FastAPI(title="Tasks API")
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        allow_credentials=True,
        max_age=CORS_MAX_AGE,
    )
    register_error_handlers(app)

    # --- store wiring ---
    engine = make_engine(make_store_url(settings.store_url, settings.store_key))
    sessionmaker = make_sessionmaker(engine)

    repo = SQLTaskRepo(sessionmaker)
    app.state.task_service = TaskService(repo)

    app.include_router(tasks.router)

    @app.on_event("startup")
    async def _startup():
        await repo.create_schema()
        logger.info(
            "db.ready",
            extra={"category": "system", "event": "db.ready", "backend": engine.url.get_backend_name()},
        )

    @app.on_event("shutdown")
    async def _shutdown():
        await engine.dispose()

    @app.get("/", response_class=PlainTextResponse)
    def home():
        return "Hello World!"

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "tasks_api.app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
