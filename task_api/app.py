"""
FastAPI application factory for the Task API.

Usage:
    python -m task_api.app                   # server on 127.0.0.1:8080
    APP_DB_PATH=/data/tasks.sqlite task-api

OpenAPI docs available at http://localhost:8080/docs after starting.

The ``TaskStore`` is built here and connected in the lifespan.  A failed
connection is logged and the server keeps running; store-backed requests then
answer 500 until the process is restarted with a reachable database.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from task_api.config import AppConfig
from task_api.database import StoreError, TaskStore
from task_api.routes import tasks
from task_api.validation import request_validation_handler

_logger = logging.getLogger("task_api")


# ── Logging ───────────────────────────────────────────────────────────────────

class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(cfg: AppConfig) -> None:
    """Install a single stream handler on the root logger."""
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=cfg.log_level, force=True)


# ── Lifecycle ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the task store on startup and close it on shutdown."""
    cfg: AppConfig = app.state.config
    store: TaskStore = app.state.store
    _logger.info("Starting with config %s", cfg.to_dict())
    try:
        store.connect()
    except StoreError:
        _logger.exception("Database connection failed path=%s", store.db_path)
    else:
        _logger.info("Database connected path=%s", store.db_path)
    _logger.info("Server live at http://%s:%d", cfg.api_host, cfg.api_port)
    yield
    store.close()


def create_app(db_path: Path | None = None, config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the database path (useful for testing).
        config: Pre-built configuration; read from the environment if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or AppConfig.from_env()
    if db_path is not None:
        cfg.db_path = Path(db_path)
    configure_logging(cfg)

    app = FastAPI(
        title="CRUD API",
        summary="Create, read, update and delete tasks.",
        description=(
            "A minimal task service backed by SQLite.\n\n"
            "- Validation failures return **400** with an `errors` list.\n"
            "- Store failures, including an unknown task id on update or "
            "delete, return **500** with the failure detail."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "tasks", "description": "Task CRUD operations."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.config = cfg
    app.state.store = TaskStore(cfg.db_path)

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request ID."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, request.url.path, response.status_code,
                duration_ms, request_id,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        """Report a failed store operation as 500 with its detail."""
        _logger.warning(
            "store_error method=%s path=%s detail=%s",
            request.method, request.url.path, exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Store error", "detail": str(exc), "status_code": 500},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of a traceback."""
        _logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the task store is connected and readable."""
        store: TaskStore = app.state.store
        if not store.connected:
            return JSONResponse(
                status_code=503,
                content={"status": "no_database", "database": str(store.db_path)},
            )
        try:
            count = store.count_tasks()
        except StoreError as e:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        return {"status": "ok", "database": str(store.db_path), "tasks": count}

    app.include_router(tasks.router)

    return app


def main() -> None:
    """Run the API under uvicorn with host/port from the environment."""
    import uvicorn

    cfg = AppConfig.from_env()
    uvicorn.run(
        "task_api.app:create_app",
        factory=True,
        host=cfg.api_host,
        port=cfg.api_port,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
