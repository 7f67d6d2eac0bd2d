"""FastAPI trigger service for the article pipeline.

Exposes a health check and manual triggers for the acquisition and rewrite
jobs so an external scheduler or operator can start runs over HTTP.

Usage:
    Development: uvicorn article_pipeline.api.main:app --reload --port 3001
    CLI: article-pipeline serve
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from article_pipeline import __version__
from article_pipeline.api.routes.jobs import router as jobs_router
from article_pipeline.shared.config import get_settings
from article_pipeline.shared.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager for startup and shutdown events."""
    settings = get_settings()
    configure_logging(settings)
    logger.info(
        "Starting article pipeline API",
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
        generation_backend=settings.GENERATION_BACKEND.value,
        search_provider=settings.SEARCH_PROVIDER.value,
    )

    yield

    logger.info("Shutting down article pipeline API")


app = FastAPI(
    title="Article Pipeline API",
    description="Manual triggers for article acquisition and rewrite jobs",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    """Add request processing time header and structured logging."""
    start_time = time.time()
    correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    logger.info(
        "Request started",
        correlation_id=correlation_id,
        method=request.method,
        path=request.url.path,
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Correlation-ID"] = correlation_id

    logger.info(
        "Request completed",
        correlation_id=correlation_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time=process_time
    )
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured logging."""
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')

    logger.warning(
        "HTTP exception",
        correlation_id=correlation_id,
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP Exception",
            "detail": exc.detail,
            "status_code": exc.status_code,
            "correlation_id": correlation_id
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with detailed information."""
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')

    logger.warning(
        "Request validation error",
        correlation_id=correlation_id,
        errors=exc.errors(),
        path=request.url.path
    )

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "detail": "Request validation failed",
            "validation_errors": exc.errors(),
            "correlation_id": correlation_id
        }
    )


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness endpoint for the trigger service."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "article-pipeline",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "generation_backend": settings.GENERATION_BACKEND.value,
        "search_provider": settings.SEARCH_PROVIDER.value,
    }


app.include_router(jobs_router)
