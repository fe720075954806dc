from __future__ import annotations

import os
import time
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from journal_app.api import auth_router, entries_router, files_router
from journal_app.core.config import ConfigManager
from journal_app.core.logging import init_logging


def _as_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _expose_error_detail() -> bool:
    return _as_bool_env("JOURNAL_DEBUG_ERRORS", default=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = ConfigManager.get()
    config = manager.config
    init_logging(config)
    logger.info("Configuration loaded from {}", manager.config_path)
    if not config.supabase_url or not config.supabase_anon_key:
        logger.warning("Supabase project is not configured; API calls will fail")
    yield


app = FastAPI(title="Journal API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request {} {}: {}", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    error_id = uuid.uuid4().hex[:12]
    logger.error(
        "Unhandled exception id={} {} {}: {}",
        error_id,
        request.method,
        request.url.path,
        exc,
    )
    logger.debug("Traceback:\n{}", "".join(tb))
    detail = "Internal Server Error"
    if _expose_error_detail():
        detail = f"{type(exc).__name__}: {exc}"
    return JSONResponse(
        status_code=500,
        content={
            "error": detail,
            "error_id": error_id,
            "path": str(request.url.path),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=ConfigManager.get().config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(entries_router)
app.include_router(files_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    start = time.time()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Request failed: {} {}", request.method, path)
        raise
    duration_ms = (time.time() - start) * 1000
    logger.info(
        "{} {} -> {} ({:.1f} ms)",
        request.method,
        path,
        response.status_code,
        duration_ms,
    )
    return response


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    return {"status": "ok"}
