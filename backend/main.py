"""
FastAPI application bootstrap with: \n
- Logging configured from `settings.LOG_LEVEL` \n
- Lifespan-managed schema creation \n
- CORS configured for the frontend \n
- Error handlers rendering the `{"status": "error", "message": ...}` envelope \n
- The `/api/v1` routers \n

Environment contract (from `settings`): \n
- INIT_MODE: if 'create', create missing tables during app startup. \n
- FRONTEND_URL: allowed CORS origin. \n
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.api.fast_api import router
from backend.database.config.config import settings
from backend.database.config.connection_engine import connection_engine, metadata
from backend.database.core.exceptions import AppError
import backend.database.entities  # noqa: F401  registers the models on `metadata`

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("uvicorn")
"""Logger instance for application lifecycle messages."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: if INIT_MODE == 'create', create any missing tables.
    - On shutdown: dispose of the engine's connection pool.
    """
    if settings.INIT_MODE == "create":
        metadata.create_all(connection_engine)
        logger.info("Database schema ready.")
    else:
        logger.info(f"Skipping schema creation (INIT_MODE={settings.INIT_MODE}).")
    try:
        yield
    finally:
        connection_engine.dispose()
        logger.info("App shutting down.")


def error_body(message: str) -> dict:
    return {"status": "error", "message": message}


def register_error_handlers(app: FastAPI) -> None:
    """Map domain, HTTP and validation errors onto the error envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(part) for part in error['loc'][1:]) or error['loc'][0]}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(status_code=422, content=error_body(f"Validation failed: {', '.join(messages)}"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body("Something went wrong"))


def create_app() -> FastAPI:
    app = FastAPI(title="Venue Reviews API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
"""Application object served by uvicorn (`uvicorn backend.main:app`)."""
